"""Data models for timetable entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .util import minutes_since_midnight, parse_clock

DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
DEFAULT_COLOR = "#6B7280"

STUDENT = "student"
TEACHER = "teacher"
DEPARTMENT = "department"
VIEWPOINTS = (STUDENT, TEACHER, DEPARTMENT)


@dataclass(frozen=True)
class PeriodSlot:
    id: str
    label: str
    start: str  # HH:MM
    end: str  # HH:MM
    is_break: bool = False

    @property
    def start_minutes(self) -> int:
        return minutes_since_midnight(parse_clock(self.start))

    @property
    def end_minutes(self) -> int:
        return minutes_since_midnight(parse_clock(self.end))

    @property
    def time_range(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Assignment:
    subject: str
    teacher: str
    teacher_id: str
    room: str
    class_id: str
    class_name: str
    students: int = 0
    color: str = DEFAULT_COLOR
    notes: str = ""
    subject_id: str = ""
    classroom_id: str = ""

    def counterpart(self, viewpoint: Optional[str]) -> str:
        """The entity on the other side of the lesson for a given view."""
        if viewpoint == TEACHER:
            return self.class_name
        return self.teacher

    def describe(self) -> str:
        return f"{self.subject} ({self.teacher}, {self.class_name}, {self.room})"


@dataclass(frozen=True)
class ScheduledClass:
    day: str
    slot: PeriodSlot
    assignment: Assignment


@dataclass(frozen=True)
class UpcomingClass(ScheduledClass):
    minutes_until: int


@dataclass(frozen=True)
class ViewpointQuery:
    kind: str
    id: str
    as_of: datetime

    def __post_init__(self) -> None:
        if self.kind not in VIEWPOINTS:
            raise ValueError(f"Unknown viewpoint {self.kind!r}")


@dataclass(frozen=True)
class UtilizationStat:
    assigned_periods: int
    max_periods: Optional[int]
    percentage: int
    invalid_max: bool = False
    name: str = ""


@dataclass
class DepartmentOverview:
    total_periods: int
    per_subject_counts: Dict[str, int]
    per_teacher_utilization: Dict[str, UtilizationStat]  # keyed by teacher id
    average_utilization: int


@dataclass
class WeeklySummary:
    total_periods: int
    total_students: int
    unique_classes: int
    per_subject_counts: Dict[str, int]


@dataclass(frozen=True)
class ScheduleConflict:
    kind: str  # class, teacher or classroom
    day: str
    period_id: str
    key: str
    assignments: tuple

    @property
    def message(self) -> str:
        if self.kind == "class":
            lessons = ", ".join(f"{a.subject} ({a.teacher})" for a in self.assignments)
            return f"Class {self.key} has multiple lessons: {lessons}"
        names = ", ".join(a.class_name for a in self.assignments)
        return f"{self.kind.capitalize()} {self.key} is assigned to multiple classes: {names}"


@dataclass(frozen=True)
class MasterFillStat:
    total_slots: int
    assigned_slots: int
    fill_percentage: int
    classroom_utilization: int


@dataclass
class Subject:
    id: str
    name: str
    color: str = DEFAULT_COLOR
    department: str = ""


@dataclass
class Teacher:
    id: str
    name: str
    subjects: List[str] = field(default_factory=list)
    max_periods: Optional[int] = None


@dataclass
class SchoolClass:
    id: str
    name: str
    students: int = 0


@dataclass
class Classroom:
    id: str
    name: str


@dataclass
class Catalog:
    subjects: Dict[str, Subject] = field(default_factory=dict)
    teachers: Dict[str, Teacher] = field(default_factory=dict)
    classes: Dict[str, SchoolClass] = field(default_factory=dict)
    classrooms: Dict[str, Classroom] = field(default_factory=dict)
