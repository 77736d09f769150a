from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from studycal.services.timeutils import Weekday


@dataclass(frozen=True)
class TimeWindow:
    start: str
    end: str


DEFAULT_WEEKDAY_WINDOWS = (TimeWindow("08:00", "10:00"), TimeWindow("19:00", "21:00"))
DEFAULT_WEEKEND_WINDOWS = (TimeWindow("09:00", "11:00"),)


def _to_window(value: Any) -> TimeWindow:
    if isinstance(value, TimeWindow):
        return value
    if isinstance(value, dict):
        return TimeWindow(start=value["start"], end=value["end"])
    return TimeWindow(start=value.start, end=value.end)


class AvailabilityCalendar:
    """Seven ordered lists of weekly study windows, indexed by ``Weekday``.

    The calendar does not validate its windows. Callers guarantee that each
    window has ``start < end`` and that windows on the same day do not overlap;
    the API schemas enforce this before anything reaches the engine.
    """

    def __init__(self, windows: dict[int, Iterable[Any]] | None = None) -> None:
        self._windows: dict[Weekday, list[TimeWindow]] = {day: [] for day in Weekday}
        for dow, slots in (windows or {}).items():
            self.set_windows(dow, slots)

    @classmethod
    def from_entries(cls, entries: Iterable[Any]) -> AvailabilityCalendar:
        """Build from ``{dow, slots}`` entries (dicts or objects)."""
        calendar = cls()
        for entry in entries:
            if isinstance(entry, dict):
                calendar.set_windows(entry["dow"], entry.get("slots") or [])
            else:
                calendar.set_windows(entry.dow, entry.slots or [])
        return calendar

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> AvailabilityCalendar:
        """Build from stored slot rows carrying ``dow``, ``position``, ``start``, ``end``."""
        grouped: dict[int, list[Any]] = {}
        for row in sorted(rows, key=lambda r: (r.dow, r.position)):
            grouped.setdefault(row.dow, []).append(row)
        return cls(grouped)

    @classmethod
    def default(cls) -> AvailabilityCalendar:
        calendar = cls()
        for day in Weekday:
            if day in (Weekday.SATURDAY, Weekday.SUNDAY):
                calendar.set_windows(day, DEFAULT_WEEKEND_WINDOWS)
            else:
                calendar.set_windows(day, DEFAULT_WEEKDAY_WINDOWS)
        return calendar

    def get_windows(self, dow: int) -> list[TimeWindow]:
        return list(self._windows[Weekday(dow)])

    def set_windows(self, dow: int, slots: Iterable[Any]) -> None:
        self._windows[Weekday(dow)] = [_to_window(slot) for slot in slots]

    def is_empty(self) -> bool:
        return not any(self._windows.values())

    def to_entries(self) -> list[dict[str, Any]]:
        return [
            {
                "dow": int(day),
                "slots": [{"start": w.start, "end": w.end} for w in self._windows[day]],
            }
            for day in Weekday
        ]
