"""Progress figures over the study calendar."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from studycal.schemas.common import SessionStatus
from studycal.services.records import date_of, field_of
from studycal.services.timeutils import round_half_up


@dataclass(frozen=True)
class StudyStats:
    planned_min: int
    done_min: int
    adherence: int | None  # percent; None when nothing is planned
    total_pomos: int
    active_days: int
    streak: int


def _is_done(session: Any) -> bool:
    return field_of(session, "status") == SessionStatus.DONE


def _streak(done_days: set[date], today: date) -> int:
    """Consecutive days ending today with at least one completed session."""
    streak = 0
    day = today
    while day in done_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def study_stats(sessions: Iterable[Any], today: date) -> StudyStats:
    """Summarize planned against completed study time.

    A completed session counts its recorded ``actual_min`` when there is one and
    its planned duration otherwise.
    """
    sessions = list(sessions)
    planned = sum(field_of(s, "duration_min") for s in sessions)
    done = sum(
        field_of(s, "actual_min") or field_of(s, "duration_min")
        for s in sessions
        if _is_done(s)
    )
    return StudyStats(
        planned_min=planned,
        done_min=done,
        adherence=round_half_up(done / planned * 100) if planned > 0 else None,
        total_pomos=sum(field_of(s, "pomos") or 0 for s in sessions),
        active_days=len({date_of(s) for s in sessions}),
        streak=_streak({date_of(s) for s in sessions if _is_done(s)}, today),
    )
