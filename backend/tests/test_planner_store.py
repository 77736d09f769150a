from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studycal.models.availability import AvailabilitySlot
from studycal.models.study_session import StudySession
from studycal.models.subject import Subject
from studycal.models.task import Task
from studycal.schemas.recurrence import RecurrenceRule
from studycal.schemas.session import SessionCreate, SessionDraft
from studycal.services import planner_store
from studycal.services.availability import TimeWindow
from studycal.services.recurrence import expand_recurrence
from studycal.services.timeutils import Weekday

WEDNESDAY = date(2025, 1, 1)
MONDAY = date(2025, 1, 6)


def _subject(db: Session, name: str = "AFO") -> Subject:
    subject = Subject(name=name, color="#2962ff")
    db.add(subject)
    db.flush()
    return subject


def _task(db: Session, subject: Subject, title: str, est_min: int, priority: int) -> Task:
    task = Task(subject_id=subject.id, title=title, est_min=est_min, priority=priority, tags=[])
    db.add(task)
    db.flush()
    return task


def _monday_only(db: Session, start: str = "08:00", end: str = "10:00") -> None:
    planner_store.replace_availability(db, Weekday.MONDAY, [TimeWindow(start, end)])


def _session(subject: Subject, start: str, duration: int, day: date = MONDAY) -> SessionCreate:
    return SessionCreate(
        subject_id=subject.id, title="Manual", date=day, start=start, duration_min=duration
    )


def test_run_auto_schedule_commits_sessions_and_backlog(db_session: Session):
    subject = _subject(db_session)
    task_a = _task(db_session, subject, "Princípios", 90, 1)
    task_b = _task(db_session, subject, "Controle", 60, 2)
    _monday_only(db_session)

    result = planner_store.run_auto_schedule(db_session, WEDNESDAY)

    assert len(result.sessions) == 2
    stored = planner_store.load_sessions(db_session)
    assert [(s.start, s.duration_min) for s in stored] == [("08:00", 90), ("09:30", 30)]
    assert all(s.generated_by == "auto" for s in stored)
    assert db_session.get(Task, task_a.id) is None
    assert db_session.get(Task, task_b.id).est_min == 30
    # finished task is gone, so its session no longer links to it
    assert stored[0].task_id is None
    assert stored[1].task_id == task_b.id


def test_auto_schedule_respects_stored_sessions(db_session: Session):
    subject = _subject(db_session)
    _task(db_session, subject, "Crase", 30, 1)
    _monday_only(db_session, "08:00", "09:00")
    planner_store.save_session(db_session, _session(subject, "08:00", 30))

    result = planner_store.run_auto_schedule(db_session, WEDNESDAY)

    assert [(s.start, s.duration_min) for s in result.sessions] == [("08:30", 30)]


def test_failed_commit_leaves_no_partial_schedule(db_session: Session, monkeypatch: pytest.MonkeyPatch):
    subject = _subject(db_session)
    task = _task(db_session, subject, "Princípios", 150, 1)
    _monday_only(db_session)

    def failing_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(SQLAlchemyError):
        planner_store.run_auto_schedule(db_session, WEDNESDAY)
    monkeypatch.undo()

    assert db_session.query(StudySession).count() == 0
    assert db_session.get(Task, task.id).est_min == 150


def test_save_session_rejects_overlap_unless_forced(db_session: Session):
    subject = _subject(db_session)
    planner_store.save_session(db_session, _session(subject, "08:00", 60))

    with pytest.raises(planner_store.SessionConflictError) as excinfo:
        planner_store.save_session(db_session, _session(subject, "08:30", 60))
    assert len(excinfo.value.conflicts) == 1
    assert "Manual (08:00 - 09:00)" in str(excinfo.value)

    forced = planner_store.save_session(db_session, _session(subject, "08:30", 60), force=True)
    assert forced.id
    assert db_session.query(StudySession).count() == 2


def test_editing_a_session_does_not_conflict_with_itself(db_session: Session):
    subject = _subject(db_session)
    stored = planner_store.save_session(db_session, _session(subject, "08:00", 60))

    updated = planner_store.save_session(
        db_session, _session(subject, "08:15", 60), session=stored
    )

    assert updated.id == stored.id
    assert updated.start == "08:15"


def test_deleting_subject_removes_tasks_and_sessions(db_session: Session):
    subject = _subject(db_session)
    other = _subject(db_session, "Português")
    _task(db_session, subject, "Princípios", 60, 1)
    _task(db_session, other, "Crase", 40, 3)
    planner_store.save_session(db_session, _session(subject, "08:00", 60))

    db_session.delete(subject)
    db_session.commit()

    assert [t.title for t in db_session.query(Task).all()] == ["Crase"]
    assert db_session.query(StudySession).count() == 0


def test_commit_recurrence_skips_conflicts_unless_kept(db_session: Session):
    subject = _subject(db_session)
    planner_store.save_session(db_session, _session(subject, "19:30", 30, day=date(2025, 1, 3)))
    template = SessionDraft(
        subject_id=subject.id, title="Revisão", date=date(2025, 1, 1), start="19:00", duration_min=60
    )
    rule = RecurrenceRule(frequency="daily", until=date(2025, 1, 5))
    expanded = expand_recurrence(template, rule, planner_store.load_sessions(db_session))

    created, skipped = planner_store.commit_recurrence(db_session, expanded)
    assert len(created) == 4
    assert [s.date for s in skipped] == [date(2025, 1, 3)]

    created, skipped = planner_store.commit_recurrence(
        db_session, [item for item in expanded if item.has_conflict], keep_conflicts=True
    )
    assert len(created) == 1 and not skipped
    assert db_session.query(StudySession).count() == 6


def test_seed_default_availability_only_once(db_session: Session):
    assert planner_store.seed_default_availability(db_session) is True
    assert planner_store.seed_default_availability(db_session) is False
    # five weekdays with two windows, two weekend days with one
    assert db_session.query(AvailabilitySlot).count() == 12

    calendar = planner_store.load_availability(db_session)
    assert calendar.get_windows(Weekday.MONDAY) == [
        TimeWindow("08:00", "10:00"),
        TimeWindow("19:00", "21:00"),
    ]
