"""Minute-granularity time-of-day math and the week calendar conventions.

Times of day are zero-padded ``HH:MM`` strings. Scheduling never crosses
midnight, so there is no wrap-around: values are plain minute offsets from the
start of the day and compare correctly as strings.
"""
from __future__ import annotations

import math
from datetime import date, timedelta
from enum import IntEnum

MINUTES_PER_HOUR = 60


class Weekday(IntEnum):
    """Day-of-week numbering used by availability and recurrence (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


def parse_hhmm(value: str) -> int | None:
    """Parse ``HH:MM`` into minutes since midnight, ``None`` when malformed."""
    try:
        parts = value.split(":")
        if len(parts) != 2 or len(parts[1]) != 2:
            return None
        hours, minutes = int(parts[0]), int(parts[1])
    except (ValueError, AttributeError):
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < MINUTES_PER_HOUR):
        return None
    if hours == 24 and minutes:
        return None
    return hours * MINUTES_PER_HOUR + minutes


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * MINUTES_PER_HOUR + int(minutes)


def from_minutes(total: int) -> str:
    total = max(total, 0)
    return f"{total // MINUTES_PER_HOUR:02d}:{total % MINUTES_PER_HOUR:02d}"


def add_minutes(value: str, minutes: int) -> str:
    return from_minutes(to_minutes(value) + minutes)


def minutes_between(start: str, end: str) -> int:
    """``end - start`` in minutes. Negative means there is no room."""
    return to_minutes(end) - to_minutes(start)


def weekday_of(day: date) -> Weekday:
    # date.weekday() counts from Monday = 0
    return Weekday((day.weekday() + 1) % 7)


def next_monday(today: date) -> date:
    """The Monday on or after ``today``."""
    return today + timedelta(days=(Weekday.MONDAY - weekday_of(today)) % 7)


def target_week(today: date) -> list[date]:
    monday = next_monday(today)
    return [monday + timedelta(days=offset) for offset in range(7)]


def iter_dates(first: date, last: date):
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``round`` uses banker's rounding)."""
    return math.floor(value + 0.5)
