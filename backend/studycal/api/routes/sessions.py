import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from studycal.api.routes.subjects import _get_subject_or_404
from studycal.db.session import get_db
from studycal.models.study_session import StudySession
from studycal.schemas.recurrence import (
    ExpandedSession,
    RecurrenceCommitResult,
    RecurrenceRequest,
)
from studycal.schemas.session import (
    SessionCompletion,
    SessionCreate,
    SessionPublic,
    SessionUpdate,
)
from studycal.services import planner_store
from studycal.services.recurrence import expand_recurrence

logger = logging.getLogger(__name__)

router = APIRouter()

NULLABLE_FIELDS = {"notes", "actual_min"}


def _get_session_or_404(db: Session, session_id: str) -> StudySession:
    session = db.query(StudySession).filter(StudySession.id == session_id).first()
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return session


def _save_or_409(
    db: Session,
    payload: SessionCreate,
    session: StudySession | None,
    force: bool,
) -> StudySession:
    try:
        return planner_store.save_session(db, payload, session=session, force=force)
    except planner_store.SessionConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc


@router.get("/", response_model=list[SessionPublic])
def list_sessions(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[SessionPublic]:
    return planner_store.load_sessions(db, start, end)


@router.post("/", response_model=SessionPublic, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    force: bool = Query(default=False, description="Save even if it overlaps another session"),
    db: Session = Depends(get_db),
) -> SessionPublic:
    _get_subject_or_404(db, payload.subject_id)
    session = _save_or_409(db, payload, None, force)
    logger.info(f"StudySession added: {session.id}")
    return session


@router.put("/{session_id}", response_model=SessionPublic)
def update_session(
    session_id: str,
    payload: SessionUpdate,
    force: bool = Query(default=False, description="Save even if it overlaps another session"),
    db: Session = Depends(get_db),
) -> SessionPublic:
    session = _get_session_or_404(db, session_id)
    data = payload.dict(exclude_unset=True)
    if data.get("subject_id") is not None:
        _get_subject_or_404(db, data["subject_id"])

    merged = {name: getattr(session, name) for name in SessionCreate.model_fields}
    merged.update(
        {key: value for key, value in data.items() if value is not None or key in NULLABLE_FIELDS}
    )
    session = _save_or_409(db, SessionCreate(**merged), session, force)
    logger.info(f"StudySession edited: {session.id}")
    return session


@router.post("/{session_id}/complete", response_model=SessionPublic)
def complete_session(
    session_id: str,
    payload: SessionCompletion,
    db: Session = Depends(get_db),
) -> SessionPublic:
    """Stop the timer on a session: mark it done and add the studied minutes."""
    session = _get_session_or_404(db, session_id)
    return planner_store.complete_session(db, session, payload.minutes)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
) -> None:
    session = _get_session_or_404(db, session_id)
    db.delete(session)
    db.commit()
    logger.info(f"StudySession deleted: {session_id}")


def _expand(db: Session, payload: RecurrenceRequest) -> list[ExpandedSession]:
    _get_subject_or_404(db, payload.template.subject_id)
    existing = planner_store.load_sessions(db, start=payload.template.date)
    return expand_recurrence(payload.template, payload.rule, existing)


@router.post("/recurrence/preview", response_model=list[ExpandedSession])
def preview_recurrence(
    payload: RecurrenceRequest,
    db: Session = Depends(get_db),
) -> list[ExpandedSession]:
    """Expand a template without saving; conflicting instances are flagged."""
    return _expand(db, payload)


@router.post(
    "/recurrence",
    response_model=RecurrenceCommitResult,
    status_code=status.HTTP_201_CREATED,
)
def create_recurring_sessions(
    payload: RecurrenceRequest,
    db: Session = Depends(get_db),
) -> RecurrenceCommitResult:
    """Expand a template and save the instances in one transaction.

    Instances overlapping existing sessions are saved only when the request
    confirms them with ``keep_conflicts``; otherwise they are returned under
    ``skipped``.
    """
    expanded = _expand(db, payload)
    created, skipped = planner_store.commit_recurrence(
        db, expanded, keep_conflicts=payload.keep_conflicts
    )
    return RecurrenceCommitResult(created=created, skipped=skipped)
