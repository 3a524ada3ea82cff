from datetime import datetime

from school_timetable.grid import TimeGrid
from school_timetable.models import Assignment, PeriodSlot
from school_timetable.query import (
    current_class,
    format_minutes_until,
    next_class,
    today_schedule,
    upcoming_classes,
)

DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
PERIODS = (
    PeriodSlot(id="P1", label="Period 1", start="08:00", end="08:45"),
    PeriodSlot(id="P2", label="Period 2", start="08:45", end="09:30"),
    PeriodSlot(id="BR", label="Break", start="09:30", end="09:45", is_break=True),
    PeriodSlot(id="P3", label="Period 3", start="09:45", end="10:30"),
    PeriodSlot(id="P4", label="Period 4", start="10:30", end="11:15"),
    PeriodSlot(id="P5", label="Period 5", start="13:00", end="13:45"),
)

MONDAY_0940 = datetime(2024, 5, 6, 9, 40)
SATURDAY = datetime(2024, 5, 11, 9, 0)


def lesson(subject):
    return Assignment(
        subject=subject,
        teacher="Mrs. Mwale",
        teacher_id="T1",
        room="Room 4",
        class_id="9A",
        class_name="Grade 9A",
    )


def monday_grid():
    # inserted out of period order on purpose
    return TimeGrid.build(
        DAYS,
        PERIODS,
        [
            ("Monday", "P5", lesson("Art")),
            ("Monday", "P3", lesson("Mathematics")),
            ("Monday", "P1", lesson("English")),
            ("Monday", "P2", lesson("Physics")),
            ("Monday", "P4", lesson("History")),
            ("Tuesday", "P1", lesson("Biology")),
        ],
        personal=True,
    )


def test_today_schedule_in_slot_order():
    today = today_schedule(monday_grid(), MONDAY_0940)
    assert [t.slot.id for t in today] == ["P1", "P2", "P3", "P4", "P5"]
    assert all(not t.slot.is_break for t in today)


def test_today_schedule_is_recomputed_each_call():
    grid = monday_grid()
    first = today_schedule(grid, MONDAY_0940)
    first.clear()
    assert len(today_schedule(grid, MONDAY_0940)) == 5


def test_weekend_has_no_schedule():
    assert today_schedule(monday_grid(), SATURDAY) == []
    assert upcoming_classes(monday_grid(), SATURDAY, 3) == []
    assert next_class(monday_grid(), SATURDAY) is None


def test_empty_grid_gives_empty_schedule():
    grid = TimeGrid.empty(DAYS, PERIODS)
    assert today_schedule(grid, MONDAY_0940) == []
    assert upcoming_classes(grid, MONDAY_0940, 3) == []


def test_upcoming_minutes_until_next_period():
    upcoming = upcoming_classes(monday_grid(), MONDAY_0940, 3)
    assert upcoming[0].slot.id == "P3"
    assert upcoming[0].minutes_until == 5
    assert "P2" not in [u.slot.id for u in upcoming]
    assert [u.slot.id for u in upcoming] == ["P3", "P4", "P5"]


def test_upcoming_sorted_and_strictly_future():
    for hour, minute in [(7, 0), (8, 0), (8, 44), (10, 30), (12, 59), (13, 0), (16, 0)]:
        now = datetime(2024, 5, 6, hour, minute)
        upcoming = upcoming_classes(monday_grid(), now, 10)
        minutes = [u.minutes_until for u in upcoming]
        assert minutes == sorted(minutes)
        assert all(m > 0 for m in minutes)


def test_class_starting_now_is_not_upcoming():
    upcoming = upcoming_classes(monday_grid(), datetime(2024, 5, 6, 9, 45), 3)
    assert upcoming[0].slot.id == "P4"


def test_upcoming_respects_limit():
    assert len(upcoming_classes(monday_grid(), datetime(2024, 5, 6, 7, 0), 2)) == 2
    assert upcoming_classes(monday_grid(), datetime(2024, 5, 6, 7, 0), 0) == []


def test_next_and_current_class():
    nxt = next_class(monday_grid(), MONDAY_0940)
    assert nxt.assignment.subject == "Mathematics"
    now = current_class(monday_grid(), datetime(2024, 5, 6, 10, 0))
    assert now.assignment.subject == "Mathematics"
    assert current_class(monday_grid(), MONDAY_0940) is None


def test_format_minutes_until():
    assert format_minutes_until(5) == "5m"
    assert format_minutes_until(60) == "1h 0m"
    assert format_minutes_until(125) == "2h 5m"
