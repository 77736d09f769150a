"""Auto-scheduler: packs backlog tasks into next week's availability windows.

The run is a fold over pure steps. Each step takes a ``ScheduleState`` (the
backlog snapshot plus the cursor inside the current window) and returns the
next state together with the session it emitted, if any. Nothing the caller
passes in is mutated; the consumed backlog comes back in ``ScheduleResult``.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from studycal.core.config import SchedulerConfig, get_scheduler_config
from studycal.schemas.session import PlannedSession
from studycal.services.availability import AvailabilityCalendar, TimeWindow
from studycal.services.backlog import BacklogTask, TaskBacklog
from studycal.services.conflicts import has_conflict
from studycal.services.records import date_of
from studycal.services.timeutils import (
    add_minutes,
    minutes_between,
    round_half_up,
    target_week,
    weekday_of,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleState:
    backlog: TaskBacklog
    cursor: str


@dataclass(frozen=True)
class ScheduleResult:
    sessions: list[PlannedSession]
    backlog: TaskBacklog
    week_start: date
    week_end: date
    minutes_by_task: dict[int, int] = field(default_factory=dict)


def pomodoros_for(minutes: int, config: SchedulerConfig) -> int:
    return round_half_up(minutes / config.pomodoro_minutes)


def _build_candidate(
    task: BacklogTask, day: date, start: str, chunk: int, config: SchedulerConfig
) -> PlannedSession:
    return PlannedSession(
        subject_id=task.subject_id,
        task_id=task.id,
        title=task.title,
        date=day,
        start=start,
        duration_min=chunk,
        pomos=pomodoros_for(chunk, config),
        tags=list(task.tags),
        generated_by="auto",
    )


def schedule_step(
    state: ScheduleState,
    day: date,
    window: TimeWindow,
    occupied: Iterable[Any],
    config: SchedulerConfig,
) -> tuple[ScheduleState, PlannedSession | None]:
    """Try to place the head of the backlog at the cursor.

    On a conflict the cursor moves ``retry_step_minutes`` forward and the task
    stays untouched. Otherwise the chunk is emitted, the cursor moves past it
    and the task's remaining estimate shrinks by the chunk.
    """
    task = state.backlog.peek_highest_priority()
    if task is None:
        return state, None

    available = minutes_between(state.cursor, window.end)
    chunk = min(task.est_min, available)
    candidate = _build_candidate(task, day, state.cursor, chunk, config)

    if has_conflict(candidate, occupied):
        logger.debug(
            f"Conflict for task {task.id} on {day} at {state.cursor}; "
            f"retrying in {config.retry_step_minutes} min"
        )
        return (
            ScheduleState(
                backlog=state.backlog,
                cursor=add_minutes(state.cursor, config.retry_step_minutes),
            ),
            None,
        )

    return (
        ScheduleState(
            backlog=state.backlog.reduce(task.id, chunk),
            cursor=add_minutes(state.cursor, chunk),
        ),
        candidate,
    )


def _fill_window(
    backlog: TaskBacklog,
    day: date,
    window: TimeWindow,
    occupied: list[Any],
    config: SchedulerConfig,
) -> tuple[TaskBacklog, list[PlannedSession]]:
    """Run steps until the window has less than a minimum chunk left."""
    state = ScheduleState(backlog=backlog, cursor=window.start)
    emitted: list[PlannedSession] = []

    # The cursor advances on every step, so this always terminates
    while (
        minutes_between(state.cursor, window.end) >= config.min_chunk_minutes
        and not state.backlog.is_empty()
    ):
        state, session = schedule_step(state, day, window, occupied, config)
        if session is not None:
            emitted.append(session)
            occupied.append(session)

    return state.backlog, emitted


def _coerce_inputs(
    availability: AvailabilityCalendar | Iterable[Any],
    backlog: TaskBacklog | Iterable[Any],
) -> tuple[AvailabilityCalendar, TaskBacklog]:
    if not isinstance(availability, AvailabilityCalendar):
        availability = AvailabilityCalendar.from_entries(availability)
    if not isinstance(backlog, TaskBacklog):
        backlog = TaskBacklog.from_tasks(backlog)
    return availability, backlog


def auto_schedule(
    today: date,
    availability: AvailabilityCalendar | Iterable[Any],
    backlog: TaskBacklog | Iterable[Any],
    existing_sessions: Iterable[Any] = (),
    config: SchedulerConfig | None = None,
) -> ScheduleResult:
    """Plan backlog tasks into the week starting on the Monday on/after ``today``.

    Args:
        today: Reference date; only used to find the target week.
        availability: Weekly windows, as a calendar or ``{dow, slots}`` entries.
        backlog: Pending tasks, as a snapshot or task records in insertion order.
        existing_sessions: Sessions already on the calendar, as rows, models or
            dicts; new sessions never overlap them.
        config: Policy constants. Defaults to the configured settings.

    Returns:
        The proposed sessions in chronological order and the backlog left
        after assigning them. Empty availability or backlog yields no sessions.
    """
    config = config or get_scheduler_config()
    availability, backlog = _coerce_inputs(availability, backlog)
    week = target_week(today)
    week_start, week_end = week[0], week[-1]

    occupied_by_day: dict[date, list[Any]] = defaultdict(list)
    for session in existing_sessions:
        day = date_of(session)
        if week_start <= day <= week_end:
            occupied_by_day[day].append(session)

    sessions: list[PlannedSession] = []
    for day in week:
        for window in availability.get_windows(weekday_of(day)):
            if backlog.is_empty():
                break
            backlog, placed = _fill_window(
                backlog, day, window, occupied_by_day[day], config
            )
            sessions.extend(placed)

    minutes_by_task: dict[int, int] = defaultdict(int)
    for session in sessions:
        minutes_by_task[session.task_id] += session.duration_min

    logger.info(
        f"Auto-schedule {week_start}..{week_end}: {len(sessions)} sessions, "
        f"{sum(minutes_by_task.values())} min planned, {len(backlog)} tasks left"
    )
    return ScheduleResult(
        sessions=sessions,
        backlog=backlog,
        week_start=week_start,
        week_end=week_end,
        minutes_by_task=dict(minutes_by_task),
    )
