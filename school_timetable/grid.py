"""Weekly timetable grid keyed by (day, period)."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidGridError, ScheduleConflictError
from .models import Assignment, PeriodSlot, ScheduledClass

Entry = Tuple[str, str, Assignment]  # (day, period_id, assignment)


class TimeGrid:
    """An immutable week of assignments.

    Personal grids (one student class, one teacher) hold at most one
    assignment per (day, period). Aggregate grids may hold parallel
    assignments. Cells are never overwritten: a second assignment in a
    personal cell raises ScheduleConflictError.
    """

    def __init__(
        self,
        days: Sequence[str],
        periods: Sequence[PeriodSlot],
        cells: Dict[Tuple[str, str], Tuple[Assignment, ...]],
        *,
        personal: bool = False,
        viewpoint: Optional[str] = None,
    ) -> None:
        self.days = tuple(days)
        self.periods = tuple(periods)
        self.personal = personal
        self.viewpoint = viewpoint
        self._cells = dict(cells)
        self._periods_by_id = {p.id: p for p in self.periods}

    @classmethod
    def build(
        cls,
        days: Sequence[str],
        periods: Sequence[PeriodSlot],
        entries: Iterable[Entry],
        *,
        personal: bool = False,
        viewpoint: Optional[str] = None,
    ) -> "TimeGrid":
        day_set = set(days)
        by_id = {p.id: p for p in periods}
        cells: Dict[Tuple[str, str], List[Assignment]] = {}
        for day, period_id, assignment in entries:
            period_id = str(period_id)
            if day not in day_set:
                raise InvalidGridError(f"Unknown day {day!r} for {assignment.describe()}")
            slot = by_id.get(period_id)
            if slot is None:
                raise InvalidGridError(
                    f"Unknown period {period_id!r} on {day} for {assignment.describe()}"
                )
            if slot.is_break:
                raise InvalidGridError(
                    f"{slot.label} on {day} is a break and cannot hold {assignment.describe()}"
                )
            cell = cells.setdefault((day, period_id), [])
            if personal and cell:
                raise ScheduleConflictError(day, period_id, [*cell, assignment])
            cell.append(assignment)
        return cls(
            days,
            periods,
            {k: tuple(v) for k, v in cells.items()},
            personal=personal,
            viewpoint=viewpoint,
        )

    @classmethod
    def empty(cls, days: Sequence[str], periods: Sequence[PeriodSlot], **kwargs) -> "TimeGrid":
        return cls(days, periods, {}, **kwargs)

    def get_slot(self, day: str, period_id: str) -> List[Assignment]:
        return list(self._cells.get((day, str(period_id)), ()))

    def is_break(self, period_id: str) -> bool:
        slot = self._periods_by_id.get(str(period_id))
        return bool(slot and slot.is_break)

    def period(self, period_id: str) -> Optional[PeriodSlot]:
        return self._periods_by_id.get(str(period_id))

    def teaching_periods(self) -> List[PeriodSlot]:
        return [p for p in self.periods if not p.is_break]

    def placements(self, day: Optional[str] = None) -> Iterator[ScheduledClass]:
        """Yield assignments in day order, then declared period order."""
        days = self.days if day is None else [d for d in self.days if d == day]
        for d in days:
            for slot in self.periods:
                if slot.is_break:
                    continue
                for assignment in self._cells.get((d, slot.id), ()):
                    yield ScheduledClass(day=d, slot=slot, assignment=assignment)

    def filter(
        self,
        predicate: Callable[[Assignment], bool],
        *,
        personal: bool = False,
        viewpoint: Optional[str] = None,
    ) -> "TimeGrid":
        entries = [
            (p.day, p.slot.id, p.assignment)
            for p in self.placements()
            if predicate(p.assignment)
        ]
        return TimeGrid.build(
            self.days, self.periods, entries, personal=personal, viewpoint=viewpoint
        )

    def assignment_count(self) -> int:
        return sum(1 for _ in self.placements())

    def assigned_slot_count(self) -> int:
        return sum(
            1
            for (day, period_id), cell in self._cells.items()
            if cell and not self.is_break(period_id)
        )

    def is_empty(self) -> bool:
        return not any(self._cells.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeGrid):
            return NotImplemented
        return (
            self.days == other.days
            and self.periods == other.periods
            and {k: v for k, v in self._cells.items() if v}
            == {k: v for k, v in other._cells.items() if v}
        )

    def __repr__(self) -> str:
        kind = "personal" if self.personal else "aggregate"
        return f"<TimeGrid {kind} {self.viewpoint or ''} assignments={self.assignment_count()}>"
