"""ICS calendar export for a personal timetable."""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from .grid import TimeGrid
from .models import WEEKDAY_NAMES, ViewpointQuery
from .util import parse_clock


def _format(dt: datetime) -> str:
    """Format a datetime in UTC with trailing Z."""
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _format_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def _escape_text(value: str) -> str:
    """Escape text for RFC5545 TEXT value."""

    normalized = value.replace("\r\n", "\n").replace("\r", "\n")
    escaped = normalized.replace("\\", "\\\\")
    escaped = escaped.replace("\n", "\\n")
    escaped = escaped.replace(",", "\\,")
    escaped = escaped.replace(";", "\\;")
    return escaped


def _fold_line(line: str, limit: int = 75) -> List[str]:
    """Fold a line according to RFC5545 (75 octets)."""

    if len(line.encode("utf-8")) <= limit:
        return [line]

    folded: List[str] = []
    current: List[str] = []
    size = 0
    for ch in line:
        ch_bytes = len(ch.encode("utf-8"))
        if size + ch_bytes > limit:
            folded.append("".join(current))
            current = [" "]
            size = 1
        current.append(ch)
        size += ch_bytes
    folded.append("".join(current))
    return folded


def _first_on_or_after(start: date, weekday: int) -> date:
    return start + timedelta(days=(weekday - start.weekday()) % 7)


def build_events(
    grid: TimeGrid,
    *,
    tz: ZoneInfo,
    term_start: date,
    term_end: date,
    exclude_dates: Optional[Iterable[date]] = None,
) -> List[dict]:
    """One weekly recurring event per occupied slot of the grid."""

    excluded = set(exclude_dates or ())
    events: List[dict] = []
    for item in grid.placements():
        if item.day not in WEEKDAY_NAMES:
            continue
        first = _first_on_or_after(term_start, WEEKDAY_NAMES.index(item.day))
        if first > term_end:
            continue
        last = first + timedelta(weeks=(term_end - first).days // 7)

        occurrences = []
        cur = first
        while cur <= last:
            occurrences.append(cur)
            cur += timedelta(days=7)
        if all(d in excluded for d in occurrences):
            continue

        start_time = parse_clock(item.slot.start)
        end_time = parse_clock(item.slot.end)
        a = item.assignment
        counterpart = a.counterpart(grid.viewpoint)
        description_parts = [
            a.subject,
            f"{item.slot.label} ({item.slot.time_range})",
            a.teacher,
            a.class_name,
            f"{a.students} students" if a.students else "",
            a.notes,
        ]
        uid_base = f"{a.class_id}|{a.teacher_id}|{a.subject}|{item.day}|{item.slot.id}|{first}"
        events.append(
            {
                "uid": hashlib.sha1(uid_base.encode()).hexdigest(),
                "summary": f"{a.subject} – {counterpart}",
                "location": a.room,
                "description": "\n".join(filter(None, description_parts)),
                "categories": a.subject,
                "start": datetime.combine(first, start_time, tz),
                "end": datetime.combine(first, end_time, tz),
                "rrule": f"FREQ=WEEKLY;WKST=MO;UNTIL={_format(datetime.combine(last, start_time, tz))}",
                "exdates": [
                    datetime.combine(d, start_time, tz) for d in occurrences if d in excluded
                ],
            }
        )
    return events


def build_ics(
    grid: TimeGrid,
    *,
    tz: ZoneInfo,
    term_start: date,
    term_end: date,
    exclude_dates: Optional[Iterable[date]] = None,
    calendar_name: str = "School timetable",
) -> Tuple[str, List[dict]]:
    events = build_events(
        grid, tz=tz, term_start=term_start, term_end=term_end, exclude_dates=exclude_dates
    )
    now = datetime.now(timezone.utc)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//School Timetable//EN",
        "CALSCALE:GREGORIAN",
        f"X-WR-CALNAME:{_escape_text(calendar_name)}",
        f"X-WR-TIMEZONE:{tz.key}",
    ]
    for e in events:
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{e['uid']}")
        lines.append(f"DTSTAMP:{_format(now)}")
        lines.append(f"SUMMARY:{_escape_text(e['summary'])}")
        lines.append(f"DTSTART;TZID={tz.key}:{_format_local(e['start'])}")
        lines.append(f"DTEND;TZID={tz.key}:{_format_local(e['end'])}")
        lines.append(f"RRULE:{e['rrule']}")
        if e["exdates"]:
            exdate_str = ",".join(_format_local(d) for d in e["exdates"])
            lines.append(f"EXDATE;TZID={tz.key}:{exdate_str}")
        if e["location"]:
            lines.append(f"LOCATION:{_escape_text(e['location'])}")
        if e["description"]:
            lines.append(f"DESCRIPTION:{_escape_text(e['description'])}")
        lines.append(f"CATEGORIES:{_escape_text(e['categories'])}")
        lines.append("STATUS:CONFIRMED")
        lines.append("TRANSP:OPAQUE")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    folded: List[str] = []
    for line in lines:
        folded.extend(_fold_line(line))
    return "\r\n".join(folded) + "\r\n", events


def output_filename(query: ViewpointQuery) -> str:
    ident = "".join(ch if ch.isalnum() else "-" for ch in query.id).strip("-") or "all"
    return f"timetable_{query.kind}_{ident}.ics"
