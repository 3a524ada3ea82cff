"""Exception types raised by the timetable engine."""

from __future__ import annotations

from typing import Sequence


class InvalidGridError(ValueError):
    """Raised when grid input references unknown days, periods or breaks."""


class ScheduleConflictError(ValueError):
    """Two assignments landed in one slot of a personal grid."""

    def __init__(self, day: str, period_id: str, assignments: Sequence) -> None:
        self.day = day
        self.period_id = period_id
        self.assignments = tuple(assignments)
        names = "; ".join(a.describe() for a in self.assignments)
        super().__init__(f"Schedule conflict on {day} period {period_id}: {names}")


class DataUnavailable(RuntimeError):
    """The source timetable could not be obtained."""


class InvalidUtilizationInput(ValueError):
    """A utilization ratio was requested against a missing or zero maximum."""
