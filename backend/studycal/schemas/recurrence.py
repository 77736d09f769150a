import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from studycal.schemas.session import PlannedSession, SessionDraft
from studycal.services.timeutils import Weekday


class RecurrenceRule(BaseModel):
    frequency: Literal["none", "daily", "weekly"] = "none"
    weekdays: list[Weekday] | None = Field(
        default=None, description="0=Sunday, 6=Saturday; weekly only"
    )
    until: dt.date | None = None


class ExpandedSession(BaseModel):
    session: PlannedSession
    has_conflict: bool = False


class RecurrenceRequest(BaseModel):
    template: SessionDraft
    rule: RecurrenceRule = Field(default_factory=RecurrenceRule)
    keep_conflicts: bool = Field(
        default=False,
        description="Persist instances that overlap existing sessions",
    )


class RecurrenceCommitResult(BaseModel):
    created: list[PlannedSession]
    skipped: list[PlannedSession]
