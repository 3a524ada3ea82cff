"""Role views assembled for dashboard pages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .api import TimetableProvider
from .config import SchoolConfig
from .errors import DataUnavailable
from .grid import TimeGrid
from .models import (
    DEPARTMENT,
    TEACHER,
    Catalog,
    DepartmentOverview,
    ScheduledClass,
    UpcomingClass,
    UtilizationStat,
    ViewpointQuery,
    WeeklySummary,
)
from .query import department_subjects, next_class, project, today_schedule, upcoming_classes
from .stats import department_overview, teacher_utilization, weekly_summary

NO_SCHEDULE = "no schedule available"


@dataclass
class RoleView:
    query: ViewpointQuery
    grid: TimeGrid
    available: bool = True
    message: str = ""
    today: List[ScheduledClass] = field(default_factory=list)
    upcoming: List[UpcomingClass] = field(default_factory=list)
    next_class: Optional[UpcomingClass] = None
    summary: Optional[WeeklySummary] = None
    utilization: Optional[UtilizationStat] = None
    overview: Optional[DepartmentOverview] = None


def department_roster(catalog: Catalog, department: str):
    subjects = department_subjects(catalog, department)
    return [t for t in catalog.teachers.values() if subjects.intersection(t.subjects)]


def derive_view(
    source: TimeGrid, query: ViewpointQuery, catalog: Catalog, limit: int = 3
) -> RoleView:
    grid = project(source, query, catalog)
    view = RoleView(
        query=query,
        grid=grid,
        today=today_schedule(grid, query.as_of),
        upcoming=upcoming_classes(grid, query.as_of, limit),
        next_class=next_class(grid, query.as_of),
        summary=weekly_summary(grid),
    )
    if query.kind == TEACHER:
        teacher = catalog.teachers.get(query.id)
        view.utilization = teacher_utilization(grid, teacher.max_periods if teacher else None)
    elif query.kind == DEPARTMENT:
        view.overview = department_overview(grid, department_roster(catalog, query.id))
    return view


def build_view(
    provider: TimetableProvider,
    query: ViewpointQuery,
    school_config: SchoolConfig,
    limit: int = 3,
) -> RoleView:
    """Fetch the source grid and derive a fresh view from it.

    A missing source yields an empty, unavailable view. Conflicts in a
    personal projection are raised to the caller.
    """
    try:
        catalog = provider.fetch_catalog()
        source = provider.fetch_timetable(catalog=catalog)
    except DataUnavailable as exc:
        logging.warning("Timetable unavailable: %s", exc)
        empty = TimeGrid.empty(school_config.days, school_config.periods, viewpoint=query.kind)
        return RoleView(query=query, grid=empty, available=False, message=NO_SCHEDULE)
    return derive_view(source, query, catalog, limit)
