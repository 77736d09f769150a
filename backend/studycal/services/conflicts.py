"""Overlap detection between study sessions.

A session is anything carrying ``date``, ``start`` (``HH:MM``) and
``duration_min``; ``id`` is optional. ORM rows, API payloads, engine drafts and
plain dicts all qualify, so manual saves, the auto-scheduler and the
recurrence expander share this one predicate.
"""
from __future__ import annotations

from typing import Any, Iterable

from studycal.services.records import date_of, field_of
from studycal.services.timeutils import to_minutes


def _interval(session: Any) -> tuple[int, int]:
    start = to_minutes(field_of(session, "start"))
    return start, start + field_of(session, "duration_min")


def sessions_overlap(first: Any, second: Any) -> bool:
    if date_of(first) != date_of(second):
        return False
    first_start, first_end = _interval(first)
    second_start, second_end = _interval(second)
    return not (first_end <= second_start or second_end <= first_start)


def find_conflicts(
    candidate: Any,
    existing: Iterable[Any],
    exclude_id: str | None = None,
) -> list[Any]:
    """Return the sessions in ``existing`` that overlap ``candidate``.

    Args:
        candidate: Session being placed or saved.
        existing: Sessions already on the calendar.
        exclude_id: Id to ignore, normally the session being edited. Defaults
            to the candidate's own id so re-saving never self-conflicts.
    """
    if exclude_id is None:
        exclude_id = field_of(candidate, "id")
    return [
        other
        for other in existing
        if not (exclude_id is not None and field_of(other, "id") == exclude_id)
        and sessions_overlap(candidate, other)
    ]


def has_conflict(
    candidate: Any,
    existing: Iterable[Any],
    exclude_id: str | None = None,
) -> bool:
    if exclude_id is None:
        exclude_id = field_of(candidate, "id")
    return any(
        sessions_overlap(candidate, other)
        for other in existing
        if exclude_id is None or field_of(other, "id") != exclude_id
    )
