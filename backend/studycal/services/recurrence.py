"""Expands a session template and a recurrence rule into dated sessions"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Iterable

from studycal.core.config import SchedulerConfig, get_scheduler_config
from studycal.schemas.common import new_session_id
from studycal.schemas.recurrence import ExpandedSession, RecurrenceRule
from studycal.schemas.session import PlannedSession, SessionDraft
from studycal.services.conflicts import has_conflict
from studycal.services.timeutils import iter_dates, weekday_of

logger = logging.getLogger(__name__)


def _daily_dates(start: date, rule: RecurrenceRule) -> list[date]:
    """Every date from start to the end date, inclusive; only start without one."""
    return list(iter_dates(start, rule.until or start))


def _weekly_dates(
    start: date, rule: RecurrenceRule, config: SchedulerConfig
) -> list[date]:
    """Dates on the rule's weekdays, bounded by the end date or the default horizon."""
    last = rule.until or start + timedelta(days=config.weekly_horizon_days)
    weekdays = set(rule.weekdays or [weekday_of(start)])
    return [day for day in iter_dates(start, last) if weekday_of(day) in weekdays]


def recurrence_dates(
    start: date, rule: RecurrenceRule, config: SchedulerConfig | None = None
) -> list[date]:
    config = config or get_scheduler_config()
    if rule.frequency == "daily":
        return _daily_dates(start, rule)
    if rule.frequency == "weekly":
        return _weekly_dates(start, rule, config)
    return [start]


def _materialize(
    template: SessionDraft, day: date, session_id: str, generated_by: str
) -> PlannedSession:
    data = template.dict(exclude={"id"})
    data["date"] = day
    return PlannedSession(id=session_id, generated_by=generated_by, **data)


def expand_recurrence(
    template: SessionDraft,
    rule: RecurrenceRule,
    existing_sessions: Iterable[Any] = (),
    config: SchedulerConfig | None = None,
) -> list[ExpandedSession]:
    """
    Materialize ``template`` once per date selected by ``rule``.

    A non-recurring rule returns the template itself, keeping its id when it is
    an edit of a stored session. Recurring rules give every instance a fresh id.
    Each instance is checked against ``existing_sessions`` only, never against
    its siblings; an overlap is reported through ``has_conflict`` and does not
    stop generation.
    """
    config = config or get_scheduler_config()
    existing = list(existing_sessions)

    if rule.frequency == "none":
        session = _materialize(
            template, template.date, template.id or new_session_id(), "manual"
        )
        return [
            ExpandedSession(
                session=session,
                has_conflict=has_conflict(session, existing, exclude_id=template.id),
            )
        ]

    expanded = []
    for day in recurrence_dates(template.date, rule, config):
        session = _materialize(template, day, new_session_id(), "recurrence")
        expanded.append(
            ExpandedSession(session=session, has_conflict=has_conflict(session, existing))
        )

    conflicts = sum(1 for item in expanded if item.has_conflict)
    logger.info(
        f"Expanded {rule.frequency} recurrence from {template.date}: "
        f"{len(expanded)} instances, {conflicts} conflicting"
    )
    return expanded
