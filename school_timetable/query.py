"""Role-scoped projections and time-relative queries over a TimeGrid."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Set

from .grid import TimeGrid
from .models import (
    DEPARTMENT,
    STUDENT,
    TEACHER,
    WEEKDAY_NAMES,
    Catalog,
    ScheduledClass,
    UpcomingClass,
    ViewpointQuery,
)
from .util import minutes_since_midnight


def project_for_student(source: TimeGrid, class_id: str) -> TimeGrid:
    class_id = str(class_id)
    grid = source.filter(lambda a: a.class_id == class_id, personal=True, viewpoint=STUDENT)
    logging.debug("Projected %d periods for class %s", grid.assignment_count(), class_id)
    return grid


def project_for_teacher(source: TimeGrid, teacher_id: str) -> TimeGrid:
    teacher_id = str(teacher_id)
    grid = source.filter(
        lambda a: a.teacher_id == teacher_id, personal=True, viewpoint=TEACHER
    )
    logging.debug("Projected %d periods for teacher %s", grid.assignment_count(), teacher_id)
    return grid


def project_for_department(source: TimeGrid, subject_set: Iterable[str]) -> TimeGrid:
    subjects = set(subject_set)
    return source.filter(lambda a: a.subject in subjects, viewpoint=DEPARTMENT)


def department_subjects(catalog: Catalog, department: str) -> Set[str]:
    return {s.name for s in catalog.subjects.values() if s.department == department}


def project(
    source: TimeGrid, query: ViewpointQuery, catalog: Optional[Catalog] = None
) -> TimeGrid:
    """Dispatch a viewpoint query to the matching projection."""
    if query.kind == STUDENT:
        return project_for_student(source, query.id)
    if query.kind == TEACHER:
        return project_for_teacher(source, query.id)
    if catalog is None:
        raise ValueError("A catalog is required to resolve department subjects")
    return project_for_department(source, department_subjects(catalog, query.id))


def weekday_name(when: datetime) -> str:
    return WEEKDAY_NAMES[when.weekday()]


def today_schedule(grid: TimeGrid, now: datetime) -> List[ScheduledClass]:
    day = weekday_name(now)
    if day not in grid.days:
        return []
    return list(grid.placements(day))


def upcoming_classes(grid: TimeGrid, now: datetime, limit: int = 3) -> List[UpcomingClass]:
    """Classes later today that have not started yet, soonest first."""
    if limit <= 0:
        return []
    now_minutes = minutes_since_midnight(now)
    upcoming: List[UpcomingClass] = []
    for item in today_schedule(grid, now):
        start = item.slot.start_minutes
        if start > now_minutes:
            upcoming.append(
                UpcomingClass(
                    day=item.day,
                    slot=item.slot,
                    assignment=item.assignment,
                    minutes_until=start - now_minutes,
                )
            )
    upcoming.sort(key=lambda u: u.minutes_until)
    return upcoming[:limit]


def next_class(grid: TimeGrid, now: datetime) -> Optional[UpcomingClass]:
    upcoming = upcoming_classes(grid, now, limit=1)
    return upcoming[0] if upcoming else None


def current_class(grid: TimeGrid, now: datetime) -> Optional[ScheduledClass]:
    now_minutes = minutes_since_midnight(now)
    for item in today_schedule(grid, now):
        if item.slot.start_minutes <= now_minutes < item.slot.end_minutes:
            return item
    return None


def format_minutes_until(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    return f"{minutes // 60}h {minutes % 60}m"
