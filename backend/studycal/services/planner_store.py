"""Database side of the planner: snapshots in, engine proposals committed out.

The scheduling engine works on in-memory snapshots and never writes. This
module loads those snapshots from the database and commits whatever the engine
proposes, one transaction per batch, so a failure leaves no partial schedule.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studycal.core.config import SchedulerConfig
from studycal.models.availability import AvailabilitySlot
from studycal.models.study_session import StudySession
from studycal.models.task import Task
from studycal.schemas.common import SessionStatus
from studycal.schemas.recurrence import ExpandedSession
from studycal.schemas.session import PlannedSession, SessionBase
from studycal.services.availability import AvailabilityCalendar
from studycal.services.backlog import TaskBacklog
from studycal.services.conflicts import find_conflicts
from studycal.services.scheduling import ScheduleResult, auto_schedule
from studycal.services.timeutils import add_minutes, target_week

logger = logging.getLogger(__name__)


class SessionConflictError(ValueError):
    """Raised when a manual save overlaps existing sessions and was not forced."""

    def __init__(self, conflicts: list[StudySession]) -> None:
        self.conflicts = conflicts
        names = ", ".join(
            f"{c.title} ({c.start} - {add_minutes(c.start, c.duration_min)})"
            for c in conflicts
        )
        super().__init__(f"This time conflicts with: {names}")


def load_backlog(db: Session) -> TaskBacklog:
    tasks = db.query(Task).order_by(Task.id.asc()).all()
    return TaskBacklog.from_tasks(tasks)


def load_sessions(
    db: Session, start: date | None = None, end: date | None = None
) -> list[StudySession]:
    query = db.query(StudySession)
    if start is not None:
        query = query.filter(StudySession.date >= start)
    if end is not None:
        query = query.filter(StudySession.date <= end)
    return query.order_by(StudySession.date.asc(), StudySession.start.asc()).all()


def load_availability(db: Session) -> AvailabilityCalendar:
    return AvailabilityCalendar.from_rows(db.query(AvailabilitySlot).all())


def seed_default_availability(db: Session) -> bool:
    """Store the default weekly windows when none are configured."""
    if db.query(AvailabilitySlot).first() is not None:
        return False
    for entry in AvailabilityCalendar.default().to_entries():
        for position, slot in enumerate(entry["slots"]):
            db.add(
                AvailabilitySlot(
                    dow=entry["dow"], position=position, start=slot["start"], end=slot["end"]
                )
            )
    db.commit()
    logger.info("Seeded default availability")
    return True


def replace_availability(db: Session, dow: int, windows: Iterable[Any]) -> None:
    db.query(AvailabilitySlot).filter(AvailabilitySlot.dow == dow).delete(
        synchronize_session=False
    )
    for position, window in enumerate(windows):
        db.add(
            AvailabilitySlot(dow=dow, position=position, start=window.start, end=window.end)
        )
    db.commit()


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Rolled back {action}: {exc}")
        raise


def save_session(
    db: Session,
    payload: SessionBase,
    session: StudySession | None = None,
    force: bool = False,
) -> StudySession:
    """Create ``payload`` as a new session, or apply it to ``session``.

    Raises:
        SessionConflictError: the session would overlap another one and
            ``force`` is not set.
    """
    exclude_id = session.id if session is not None else None
    candidates = db.query(StudySession).filter(StudySession.date == payload.date).all()
    conflicts = find_conflicts(payload, candidates, exclude_id=exclude_id)
    if conflicts and not force:
        raise SessionConflictError(conflicts)
    if conflicts:
        logger.info(f"Saving session over {len(conflicts)} conflicting session(s) by request")

    if session is None:
        session = StudySession(generated_by="manual")
    for key, value in payload.dict().items():
        setattr(session, key, value)
    db.add(session)
    _commit(db, "session save")
    db.refresh(session)
    return session


def complete_session(db: Session, session: StudySession, minutes: int) -> StudySession:
    """Mark ``session`` done and add the timed ``minutes`` to its actual time."""
    session.status = SessionStatus.DONE
    session.actual_min = (session.actual_min or 0) + minutes
    _commit(db, "session completion")
    db.refresh(session)
    logger.info(f"Session {session.id} completed with {minutes} min")
    return session


def _to_row(planned: PlannedSession) -> StudySession:
    return StudySession(**planned.dict())


def commit_recurrence(
    db: Session, expanded: Iterable[ExpandedSession], keep_conflicts: bool = False
) -> tuple[list[PlannedSession], list[PlannedSession]]:
    """Persist expanded instances; conflicting ones only with ``keep_conflicts``."""
    created: list[PlannedSession] = []
    skipped: list[PlannedSession] = []
    for item in expanded:
        if item.has_conflict and not keep_conflicts:
            skipped.append(item.session)
        else:
            created.append(item.session)

    created_ids = {s.id for s in created}
    rows = {
        row.id: row
        for row in db.query(StudySession).filter(StudySession.id.in_(created_ids)).all()
    }
    for planned in created:
        row = rows.get(planned.id)
        if row is None:
            db.add(_to_row(planned))
        else:
            for key, value in planned.dict().items():
                setattr(row, key, value)
    _commit(db, f"recurrence of {len(created)} sessions")
    return created, skipped


def apply_schedule(db: Session, result: ScheduleResult) -> None:
    """Commit generated sessions and the consumed backlog in one transaction."""
    remaining = {task.id: task.est_min for task in result.backlog}
    touched = set(result.minutes_by_task)
    tasks = db.query(Task).filter(Task.id.in_(touched)).all() if touched else []

    finished: set[int] = set()
    for task in tasks:
        if task.id in remaining:
            task.est_min = remaining[task.id]
            task.updated_at = datetime.utcnow()
        else:
            finished.add(task.id)
            db.delete(task)
    if finished:
        db.query(StudySession).filter(StudySession.task_id.in_(finished)).update(
            {StudySession.task_id: None}, synchronize_session=False
        )

    for planned in result.sessions:
        row = _to_row(planned)
        if row.task_id in finished:
            row.task_id = None
        db.add(row)

    _commit(db, f"auto-schedule for {result.week_start}")
    logger.info(
        f"Applied auto-schedule: {len(result.sessions)} sessions, "
        f"{len(finished)} tasks completed"
    )


def run_auto_schedule(
    db: Session, today: date, config: SchedulerConfig | None = None
) -> ScheduleResult:
    week = target_week(today)
    result = auto_schedule(
        today,
        load_availability(db),
        load_backlog(db),
        load_sessions(db, week[0], week[-1]),
        config=config,
    )
    if result.sessions:
        apply_schedule(db, result)
    return result
