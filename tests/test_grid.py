import pytest

from school_timetable.errors import InvalidGridError, ScheduleConflictError
from school_timetable.grid import TimeGrid
from school_timetable.models import Assignment, PeriodSlot

DAYS = ("Monday", "Tuesday")
PERIODS = (
    PeriodSlot(id="P1", label="Period 1", start="08:00", end="08:40"),
    PeriodSlot(id="B", label="Break", start="08:40", end="09:00", is_break=True),
    PeriodSlot(id="P2", label="Period 2", start="09:00", end="09:40"),
)


def make_assignment(**overrides):
    base = dict(
        subject="Mathematics",
        teacher="Mr. Banda",
        teacher_id="T1",
        room="Room 101",
        class_id="9A",
        class_name="Grade 9A",
        students=30,
    )
    base.update(overrides)
    return Assignment(**base)


def test_free_period_returns_empty_list():
    grid = TimeGrid.build(DAYS, PERIODS, [("Monday", "P1", make_assignment())])
    assert grid.get_slot("Monday", "P2") == []
    assert grid.get_slot("Saturday", "P1") == []
    assert grid.get_slot("Monday", "nope") == []


def test_is_break():
    grid = TimeGrid.empty(DAYS, PERIODS)
    assert grid.is_break("B")
    assert not grid.is_break("P1")
    assert not grid.is_break("unknown")


def test_assignment_on_break_rejected():
    with pytest.raises(InvalidGridError, match="break"):
        TimeGrid.build(DAYS, PERIODS, [("Monday", "B", make_assignment())])


def test_unknown_period_and_day_rejected():
    with pytest.raises(InvalidGridError):
        TimeGrid.build(DAYS, PERIODS, [("Monday", "P9", make_assignment())])
    with pytest.raises(InvalidGridError):
        TimeGrid.build(DAYS, PERIODS, [("Sunday", "P1", make_assignment())])


def test_personal_grid_rejects_double_booking():
    first = make_assignment()
    second = make_assignment(subject="Physics", teacher="Ms. Phiri", teacher_id="T2")
    with pytest.raises(ScheduleConflictError) as info:
        TimeGrid.build(
            DAYS, PERIODS, [("Monday", "P1", first), ("Monday", "P1", second)], personal=True
        )
    assert info.value.assignments == (first, second)
    assert info.value.day == "Monday"
    assert "Mathematics" in str(info.value) and "Physics" in str(info.value)


def test_aggregate_grid_keeps_parallel_assignments():
    a = make_assignment()
    b = make_assignment(class_id="9B", class_name="Grade 9B", teacher_id="T2")
    grid = TimeGrid.build(DAYS, PERIODS, [("Monday", "P1", a), ("Monday", "P1", b)])
    assert grid.get_slot("Monday", "P1") == [a, b]
    assert grid.assignment_count() == 2
    assert grid.assigned_slot_count() == 1


def test_personal_slots_hold_at_most_one():
    entries = [
        ("Monday", "P1", make_assignment()),
        ("Monday", "P2", make_assignment(subject="English")),
        ("Tuesday", "P2", make_assignment(subject="Biology")),
    ]
    grid = TimeGrid.build(DAYS, PERIODS, entries, personal=True)
    for day in DAYS:
        for period in PERIODS:
            assert len(grid.get_slot(day, period.id)) <= 1


def test_placements_follow_declared_period_order():
    entries = [
        ("Tuesday", "P1", make_assignment(subject="Art")),
        ("Monday", "P2", make_assignment(subject="English")),
        ("Monday", "P1", make_assignment(subject="History")),
    ]
    grid = TimeGrid.build(DAYS, PERIODS, entries)
    order = [(p.day, p.slot.id, p.assignment.subject) for p in grid.placements()]
    assert order == [
        ("Monday", "P1", "History"),
        ("Monday", "P2", "English"),
        ("Tuesday", "P1", "Art"),
    ]


def test_get_slot_returns_a_copy():
    grid = TimeGrid.build(DAYS, PERIODS, [("Monday", "P1", make_assignment())])
    grid.get_slot("Monday", "P1").clear()
    assert len(grid.get_slot("Monday", "P1")) == 1
