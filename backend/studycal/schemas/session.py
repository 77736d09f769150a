import datetime as dt

from pydantic import BaseModel, Field, field_validator

from studycal.schemas.common import GeneratedBy, SessionStatus, new_session_id
from studycal.services.timeutils import from_minutes, parse_hhmm


def _normalize_hhmm(value: str) -> str:
    minutes = parse_hhmm(value)
    if minutes is None:
        raise ValueError("time must be in HH:MM format")
    return from_minutes(minutes)


class SessionBase(BaseModel):
    subject_id: int
    task_id: int | None = None
    title: str
    date: dt.date
    start: str
    duration_min: int = Field(gt=0)
    pomos: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.OPEN
    notes: str | None = None
    actual_min: int | None = Field(default=None, ge=0)

    @field_validator("start")
    @classmethod
    def _check_start(cls, value: str) -> str:
        return _normalize_hhmm(value)


class SessionCreate(SessionBase):
    pass


class SessionDraft(SessionBase):
    """A session that may not exist yet; used as a recurrence template."""

    id: str | None = None


class PlannedSession(SessionBase):
    """A session proposed by the engine, with its id already assigned."""

    id: str = Field(default_factory=new_session_id)
    generated_by: GeneratedBy = "manual"


class SessionUpdate(BaseModel):
    subject_id: int | None = None
    title: str | None = None
    date: dt.date | None = None
    start: str | None = None
    duration_min: int | None = Field(default=None, gt=0)
    pomos: int | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    status: SessionStatus | None = None
    notes: str | None = None
    actual_min: int | None = Field(default=None, ge=0)

    @field_validator("start")
    @classmethod
    def _check_start(cls, value: str | None) -> str | None:
        return _normalize_hhmm(value) if value is not None else None


class SessionPublic(SessionBase):
    id: str
    generated_by: str | None = None

    class Config:
        from_attributes = True


class SessionCompletion(BaseModel):
    minutes: int = Field(ge=0, description="Minutes studied, as measured by the timer")
