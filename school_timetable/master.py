"""Conversion and checks for the stored master timetable."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .config import SchoolConfig
from .grid import Entry, TimeGrid
from .models import (
    DEFAULT_COLOR,
    Assignment,
    Catalog,
    Classroom,
    MasterFillStat,
    ScheduleConflict,
    SchoolClass,
    Subject,
    Teacher,
)
from .stats import round_half_up

UNKNOWN_SUBJECT = "Unknown Subject"
UNKNOWN_TEACHER = "Unknown Teacher"
UNKNOWN_CLASS = "Unknown Class"
UNKNOWN_CLASSROOM = "Unknown Classroom"


def _pick(row: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key; the legacy store used camelCase."""
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return default


def _id(value: Any) -> str:
    return "" if value is None else str(value)


def _max_periods(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def load_catalog(
    subjects: Iterable[Dict[str, Any]] = (),
    teachers: Iterable[Dict[str, Any]] = (),
    classes: Iterable[Dict[str, Any]] = (),
    classrooms: Iterable[Dict[str, Any]] = (),
) -> Catalog:
    catalog = Catalog()
    for s in subjects:
        subject = Subject(
            id=_id(s["id"]),
            name=str(s.get("name", "")),
            color=s.get("color") or DEFAULT_COLOR,
            department=str(s.get("department") or ""),
        )
        catalog.subjects[subject.id] = subject
    for t in teachers:
        teacher = Teacher(
            id=_id(t["id"]),
            name=str(t.get("name", "")),
            subjects=[str(x) for x in t.get("subjects") or []],
            max_periods=_max_periods(_pick(t, "max_periods", "maxPeriods")),
        )
        catalog.teachers[teacher.id] = teacher
    for c in classes:
        school_class = SchoolClass(
            id=_id(c["id"]), name=str(c.get("name", "")), students=int(c.get("students") or 0)
        )
        catalog.classes[school_class.id] = school_class
    for r in classrooms:
        classroom = Classroom(id=_id(r["id"]), name=str(r.get("name", "")))
        catalog.classrooms[classroom.id] = classroom
    return catalog


def resolve_assignment(cell: Dict[str, Any], class_id: str, catalog: Catalog) -> Assignment:
    subject_id = _id(_pick(cell, "subject_id", "subjectId"))
    teacher_id = _id(_pick(cell, "teacher_id", "teacherId"))
    classroom_id = _id(_pick(cell, "classroom_id", "classroomId"))
    subject = catalog.subjects.get(subject_id)
    teacher = catalog.teachers.get(teacher_id)
    school_class = catalog.classes.get(class_id)
    classroom = catalog.classrooms.get(classroom_id)
    return Assignment(
        subject=subject.name if subject else UNKNOWN_SUBJECT,
        teacher=teacher.name if teacher else UNKNOWN_TEACHER,
        teacher_id=teacher_id,
        room=classroom.name if classroom else UNKNOWN_CLASSROOM,
        class_id=class_id,
        class_name=school_class.name if school_class else UNKNOWN_CLASS,
        students=school_class.students if school_class else 0,
        color=subject.color if subject else DEFAULT_COLOR,
        notes=str(cell.get("notes") or ""),
        subject_id=subject_id,
        classroom_id=classroom_id,
    )


def build_source_grid(
    raw_master: Dict[str, Any], catalog: Catalog, school_config: SchoolConfig
) -> TimeGrid:
    """Turn ``day -> slot -> class -> cell`` into an aggregate grid."""
    entries: List[Entry] = []
    for day, slots in (raw_master or {}).items():
        for period_id, by_class in (slots or {}).items():
            for class_id, cell in (by_class or {}).items():
                if not cell:
                    continue
                entries.append(
                    (day, _id(period_id), resolve_assignment(cell, _id(class_id), catalog))
                )
    grid = TimeGrid.build(school_config.days, school_config.periods, entries)
    logging.debug("Built source grid with %d assignments", len(entries))
    return grid


def find_conflicts(source: TimeGrid) -> List[ScheduleConflict]:
    """Report every class, teacher or classroom booked twice in one slot."""
    conflicts: List[ScheduleConflict] = []
    for day in source.days:
        for slot in source.teaching_periods():
            cell = source.get_slot(day, slot.id)
            if len(cell) < 2:
                continue
            checks = (
                ("class", lambda a: a.class_id, lambda a: a.class_name),
                ("teacher", lambda a: a.teacher_id, lambda a: a.teacher),
                ("classroom", lambda a: a.classroom_id, lambda a: a.room),
            )
            for kind, key_of, name_of in checks:
                groups: Dict[str, List[Assignment]] = {}
                for a in cell:
                    if key_of(a):
                        groups.setdefault(key_of(a), []).append(a)
                for members in groups.values():
                    if len(members) > 1:
                        conflicts.append(
                            ScheduleConflict(
                                kind=kind,
                                day=day,
                                period_id=slot.id,
                                key=name_of(members[0]),
                                assignments=tuple(members),
                            )
                        )
    return conflicts


def master_fill_stats(
    source: TimeGrid, class_ids: Iterable[str], classroom_count: int
) -> MasterFillStat:
    class_ids = {str(c) for c in class_ids}
    teaching = source.teaching_periods()
    total = len(source.days) * len(teaching) * len(class_ids)
    assigned = sum(
        1
        for day in source.days
        for slot in teaching
        for cid in class_ids
        if any(a.class_id == cid for a in source.get_slot(day, slot.id))
    )
    room_capacity = classroom_count * len(teaching) * len(source.days)
    return MasterFillStat(
        total_slots=total,
        assigned_slots=assigned,
        fill_percentage=round_half_up(assigned / total * 100) if total else 0,
        classroom_utilization=(
            round_half_up(assigned / room_capacity * 100) if room_capacity else 0
        ),
    )
