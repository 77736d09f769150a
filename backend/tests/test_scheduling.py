import inspect
from collections import defaultdict
from datetime import date
from types import SimpleNamespace

from studycal.core.config import SchedulerConfig
from studycal.services.availability import AvailabilityCalendar
from studycal.services.backlog import TaskBacklog
from studycal.schemas import session as session_module
from studycal.services import backlog as backlog_module
from studycal.services import conflicts as conflicts_module
from studycal.services import recurrence as recurrence_module
from studycal.services import scheduling as scheduling_module
from studycal.services.conflicts import sessions_overlap
from studycal.services.scheduling import auto_schedule, pomodoros_for
from studycal.services.timeutils import Weekday, add_minutes, weekday_of

WEDNESDAY = date(2025, 1, 1)
MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)
CONFIG = SchedulerConfig()


def _task(id: int, est_min: int, priority: int, subject_id: int = 1) -> dict:
    return {
        "id": id,
        "subject_id": subject_id,
        "title": f"Task {id}",
        "est_min": est_min,
        "priority": priority,
        "tags": [],
    }


def _availability(windows: dict[int, list[tuple[str, str]]]) -> AvailabilityCalendar:
    return AvailabilityCalendar(
        {dow: [{"start": s, "end": e} for s, e in slots] for dow, slots in windows.items()}
    )


def _existing(day: date, start: str, duration: int, id: str = "manual"):
    return SimpleNamespace(id=id, date=day, start=start, duration_min=duration)


def _summary(sessions):
    return [(s.date, s.start, s.duration_min, s.task_id) for s in sessions]


def test_scenario_a_splits_second_task_at_window_end():
    availability = _availability({Weekday.MONDAY: [("08:00", "10:00")]})
    backlog = TaskBacklog.from_tasks([_task(1, 90, 1), _task(2, 60, 2)])

    result = auto_schedule(WEDNESDAY, availability, backlog, [], CONFIG)

    assert _summary(result.sessions) == [
        (MONDAY, "08:00", 90, 1),
        (MONDAY, "09:30", 30, 2),
    ]
    assert result.backlog.get(1) is None
    assert result.backlog.get(2).est_min == 30
    # caller's snapshot is untouched
    assert backlog.get(1).est_min == 90


def test_scenario_b_skips_past_existing_session_in_steps():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})
    existing = [_existing(MONDAY, "08:00", 30)]

    result = auto_schedule(WEDNESDAY, availability, [_task(3, 30, 1)], existing, CONFIG)

    assert _summary(result.sessions) == [(MONDAY, "08:30", 30, 3)]
    assert result.backlog.is_empty()


def test_generated_session_fields_follow_task():
    availability = _availability({Weekday.MONDAY: [("08:00", "10:00")]})
    task = dict(_task(1, 50, 1, subject_id=9), tags=["#lei", "#juris"], title="Controle")

    (session,) = auto_schedule(WEDNESDAY, availability, [task], [], CONFIG).sessions

    assert session.subject_id == 9
    assert session.title == "Controle"
    assert session.tags == ["#lei", "#juris"]
    assert session.status.value == "open"
    assert session.pomos == 2
    assert session.generated_by == "auto"
    assert session.id


def test_no_availability_or_no_backlog_schedules_nothing():
    backlog = [_task(1, 60, 1)]
    assert auto_schedule(WEDNESDAY, AvailabilityCalendar(), backlog, [], CONFIG).sessions == []

    availability = AvailabilityCalendar.default()
    result = auto_schedule(WEDNESDAY, availability, [], [], CONFIG)
    assert result.sessions == []
    assert result.backlog.is_empty()


def test_window_shorter_than_minimum_chunk_is_abandoned():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})
    backlog = [_task(1, 50, 1), _task(2, 30, 2)]

    result = auto_schedule(WEDNESDAY, availability, backlog, [], CONFIG)

    assert _summary(result.sessions) == [(MONDAY, "08:00", 50, 1)]
    assert result.backlog.get(2).est_min == 30


def test_smaller_minimum_chunk_uses_short_windows():
    availability = _availability({Weekday.MONDAY: [("08:00", "08:10")]})
    backlog = [_task(1, 30, 1)]

    assert auto_schedule(WEDNESDAY, availability, backlog, [], CONFIG).sessions == []

    small = SchedulerConfig(min_chunk_minutes=5, retry_step_minutes=5)
    result = auto_schedule(WEDNESDAY, availability, backlog, [], small)
    assert _summary(result.sessions) == [(MONDAY, "08:00", 10, 1)]
    assert result.backlog.get(1).est_min == 20


def test_retry_step_is_configurable():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})
    existing = [_existing(MONDAY, "08:00", 10)]
    config = SchedulerConfig(retry_step_minutes=5)

    result = auto_schedule(WEDNESDAY, availability, [_task(1, 30, 1)], existing, config)

    assert _summary(result.sessions) == [(MONDAY, "08:10", 30, 1)]


def test_unfinished_task_resumes_on_the_next_day():
    availability = _availability(
        {Weekday.MONDAY: [("08:00", "09:00")], Weekday.TUESDAY: [("08:00", "09:00")]}
    )

    result = auto_schedule(WEDNESDAY, availability, [_task(1, 90, 1)], [], CONFIG)

    assert _summary(result.sessions) == [(MONDAY, "08:00", 60, 1), (TUESDAY, "08:00", 30, 1)]
    assert result.backlog.is_empty()


def test_equal_priority_tasks_run_in_insertion_order():
    availability = _availability({Weekday.MONDAY: [("08:00", "10:00")]})
    backlog = [_task(5, 30, 2), _task(2, 30, 2), _task(9, 30, 1)]

    result = auto_schedule(WEDNESDAY, availability, backlog, [], CONFIG)

    assert [s.task_id for s in result.sessions] == [9, 5, 2]


def test_small_task_is_scheduled_whole():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})

    result = auto_schedule(WEDNESDAY, availability, [_task(1, 10, 1), _task(2, 20, 2)], [], CONFIG)

    assert _summary(result.sessions) == [(MONDAY, "08:00", 10, 1), (MONDAY, "08:10", 20, 2)]


def test_week_starts_today_when_today_is_monday():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})

    result = auto_schedule(MONDAY, availability, [_task(1, 30, 1)], [], CONFIG)

    assert result.week_start == MONDAY
    assert result.week_end == date(2025, 1, 12)
    assert result.sessions[0].date == MONDAY


def test_sessions_outside_target_week_do_not_block():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})
    last_monday = date(2024, 12, 30)

    result = auto_schedule(
        WEDNESDAY, availability, [_task(1, 60, 1)], [_existing(last_monday, "08:00", 60)], CONFIG
    )

    assert _summary(result.sessions) == [(MONDAY, "08:00", 60, 1)]


def test_fully_booked_week_schedules_nothing():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})

    result = auto_schedule(
        WEDNESDAY, availability, [_task(1, 30, 1)], [_existing(MONDAY, "07:00", 180)], CONFIG
    )

    assert result.sessions == []
    assert result.backlog.get(1).est_min == 30


def test_running_twice_keeps_consuming_the_backlog():
    availability = _availability({Weekday.MONDAY: [("08:00", "09:00")]})
    first = auto_schedule(WEDNESDAY, availability, [_task(1, 100, 1)], [], CONFIG)
    assert first.backlog.get(1).est_min == 40

    # Same week, the first run's sessions now occupy the only window
    blocked = auto_schedule(WEDNESDAY, availability, first.backlog, first.sessions, CONFIG)
    assert blocked.sessions == []

    # A week later the remainder gets placed
    second = auto_schedule(date(2025, 1, 8), availability, first.backlog, first.sessions, CONFIG)
    assert _summary(second.sessions) == [(date(2025, 1, 13), "08:00", 40, 1)]
    assert second.backlog.is_empty()


def test_schedule_properties_hold_on_a_busy_week():
    availability = _availability(
        {
            Weekday.SUNDAY: [("09:00", "11:00")],
            Weekday.MONDAY: [("08:00", "10:00"), ("19:00", "21:00")],
            Weekday.TUESDAY: [("08:00", "10:00"), ("19:00", "21:00")],
            Weekday.WEDNESDAY: [("07:00", "07:20"), ("19:00", "21:00")],
            Weekday.FRIDAY: [("13:00", "17:00")],
        }
    )
    tasks = [
        _task(1, 200, 2),
        _task(2, 45, 1),
        _task(3, 130, 3),
        _task(4, 25, 2),
        _task(5, 600, 4),
    ]
    existing = [
        _existing(MONDAY, "08:40", 20, id="m1"),
        _existing(TUESDAY, "19:00", 90, id="m2"),
        _existing(date(2025, 1, 10), "14:00", 45, id="m3"),
    ]
    original = {task["id"]: task["est_min"] for task in tasks}

    result = auto_schedule(WEDNESDAY, availability, tasks, existing, CONFIG)
    sessions = result.sessions

    assert sessions
    for session in sessions:
        assert session.duration_min > 0
        assert result.week_start <= session.date <= result.week_end
        end = add_minutes(session.start, session.duration_min)
        windows = availability.get_windows(weekday_of(session.date))
        assert any(w.start <= session.start and end <= w.end for w in windows)
        assert not any(sessions_overlap(session, other) for other in existing)

    for i, first in enumerate(sessions):
        for second in sessions[i + 1:]:
            assert not sessions_overlap(first, second)

    assigned = defaultdict(int)
    for session in sessions:
        assigned[session.task_id] += session.duration_min
    for task_id, minutes in assigned.items():
        assert minutes <= original[task_id]
        remaining = result.backlog.get(task_id)
        if remaining is None:
            assert minutes == original[task_id]
        else:
            assert minutes + remaining.est_min == original[task_id]
    assert assigned == result.minutes_by_task


def test_existing_sessions_may_be_plain_records():
    availability = [{"dow": Weekday.MONDAY, "slots": [{"start": "08:00", "end": "09:00"}]}]
    existing = [
        {"id": "x", "date": MONDAY, "start": "08:00", "duration_min": 30},
        {"id": "y", "date": "2025-01-07", "start": "08:00", "duration_min": 30},
    ]

    result = auto_schedule(WEDNESDAY, availability, [_task(1, 30, 1)], existing, CONFIG)

    assert _summary(result.sessions) == [(MONDAY, "08:30", 30, 1)]


def test_pomodoros_round_halves_up():
    assert pomodoros_for(25, SchedulerConfig(pomodoro_minutes=10)) == 3
    assert pomodoros_for(30, CONFIG) == 1
    assert pomodoros_for(10, CONFIG) == 0


def test_engine_modules_do_not_import_orm_models():
    engine_modules = (
        backlog_module,
        conflicts_module,
        recurrence_module,
        scheduling_module,
        session_module,
    )
    for module in engine_modules:
        assert "studycal.models" not in inspect.getsource(module)
