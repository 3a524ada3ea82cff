"""Aggregate statistics over projected grids."""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Dict, Iterable, Optional

from .errors import InvalidUtilizationInput
from .grid import TimeGrid
from .models import DepartmentOverview, Teacher, UtilizationStat, WeeklySummary


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def utilization_percentage(assigned: int, maximum: Optional[int]) -> int:
    if maximum is None or maximum <= 0:
        raise InvalidUtilizationInput(f"Cannot compute utilization against max={maximum!r}")
    return round_half_up(assigned / maximum * 100)


def teacher_utilization(
    grid: TimeGrid, teacher_max_periods: Optional[int], name: str = ""
) -> UtilizationStat:
    assigned = grid.assigned_slot_count()
    try:
        percentage = utilization_percentage(assigned, teacher_max_periods)
    except InvalidUtilizationInput as exc:
        logging.debug("%s", exc)
        return UtilizationStat(
            assigned_periods=assigned,
            max_periods=teacher_max_periods,
            percentage=0,
            invalid_max=True,
            name=name,
        )
    return UtilizationStat(
        assigned_periods=assigned,
        max_periods=teacher_max_periods,
        percentage=percentage,
        name=name,
    )


def subject_distribution(grid: TimeGrid) -> Dict[str, int]:
    counts = Counter(p.assignment.subject for p in grid.placements())
    return dict(sorted(counts.items()))


def department_overview(grid: TimeGrid, teacher_roster: Iterable[Teacher]) -> DepartmentOverview:
    per_teacher: Dict[str, UtilizationStat] = {}
    for teacher in teacher_roster:
        if teacher.id in per_teacher:
            raise ValueError(f"Teacher id {teacher.id!r} appears twice in the roster")
        teacher_grid = grid.filter(lambda a, tid=teacher.id: a.teacher_id == tid)
        per_teacher[teacher.id] = teacher_utilization(
            teacher_grid, teacher.max_periods, name=teacher.name
        )

    valid = [s.percentage for s in per_teacher.values() if not s.invalid_max]
    average = round_half_up(sum(valid) / len(valid)) if valid else 0
    return DepartmentOverview(
        total_periods=grid.assignment_count(),
        per_subject_counts=subject_distribution(grid),
        per_teacher_utilization=per_teacher,
        average_utilization=average,
    )


def weekly_summary(grid: TimeGrid) -> WeeklySummary:
    total = 0
    students = 0
    classes = set()
    for p in grid.placements():
        total += 1
        students += p.assignment.students
        classes.add(p.assignment.class_id)
    return WeeklySummary(
        total_periods=total,
        total_students=students,
        unique_classes=len(classes),
        per_subject_counts=subject_distribution(grid),
    )
