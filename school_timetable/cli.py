"""Command line interface for the school timetable."""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo

from . import api, config, dashboard, ics_builder, master, util
from .errors import DataUnavailable, InvalidGridError, ScheduleConflictError
from .models import VIEWPOINTS, ViewpointQuery
from .query import format_minutes_until


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="School timetable viewer")
    parser.add_argument("--role", choices=VIEWPOINTS, default="student")
    parser.add_argument("--id", help="class id, teacher id or department name")
    parser.add_argument("--at", help="ISO timestamp to evaluate 'today' against")
    parser.add_argument("--limit", type=int, default=3, help="number of next classes")
    parser.add_argument("--tz")
    parser.add_argument("--periods", help="JSON file with days and periods")
    parser.add_argument(
        "--offline", action="store_true", help="Use saved JSON fixtures"
    )
    parser.add_argument("--data-dir", default="out/json")
    parser.add_argument("--dump-json", action="store_true")
    parser.add_argument(
        "--conflicts",
        action="store_true",
        help="Check the master timetable for double bookings",
    )
    parser.add_argument("--ics", help="write the projected timetable to this file")
    parser.add_argument("--term-start")
    parser.add_argument("--term-end")
    parser.add_argument("--holiday", action="append", default=[])
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _as_of(value: str | None, tz: ZoneInfo) -> datetime:
    if not value:
        return util.now(tz)
    when = datetime.fromisoformat(value)
    if when.tzinfo is None:
        return when.replace(tzinfo=tz)
    return when.astimezone(tz)


def _check_conflicts(provider: api.TimetableProvider) -> None:
    try:
        catalog = provider.fetch_catalog()
        source = provider.fetch_timetable(catalog=catalog)
    except DataUnavailable as exc:
        logging.warning("Timetable unavailable: %s", exc)
        print("No schedule available for the conflict check")
        return
    fill = master.master_fill_stats(source, catalog.classes.keys(), len(catalog.classrooms))
    print(
        f"Assigned {fill.assigned_slots}/{fill.total_slots} slots "
        f"({fill.fill_percentage}%), classroom utilization {fill.classroom_utilization}%"
    )
    conflicts = master.find_conflicts(source)
    for c in conflicts:
        slot = source.period(c.period_id)
        print(f"CONFLICT {c.day} {slot.label if slot else c.period_id}: {c.message}")
    if conflicts:
        raise SystemExit(1)


def _print_view(view: dashboard.RoleView) -> None:
    viewpoint = view.grid.viewpoint
    print(f"Today ({len(view.today)} classes):")
    for item in view.today:
        a = item.assignment
        print(
            f"  {item.slot.time_range} {item.slot.label}: {a.subject} - "
            f"{a.counterpart(viewpoint)} [{a.room}]"
        )
    print("Next classes:")
    for item in view.upcoming:
        a = item.assignment
        print(
            f"  in {format_minutes_until(item.minutes_until)}: {a.subject} - "
            f"{a.counterpart(viewpoint)} ({item.slot.time_range})"
        )
    if view.summary:
        s = view.summary
        print(
            f"Week: {s.total_periods} periods, {s.unique_classes} classes, "
            f"{s.total_students} students"
        )
        for subject, count in s.per_subject_counts.items():
            print(f"  {subject}: {count}")
    if view.utilization:
        u = view.utilization
        if u.invalid_max:
            print(f"Utilization: n/a ({u.assigned_periods} periods, no maximum set)")
        else:
            print(f"Utilization: {u.percentage}% ({u.assigned_periods}/{u.max_periods})")
    if view.overview:
        o = view.overview
        print(f"Department average utilization: {o.average_utilization}%")
        for teacher_id, stat in o.per_teacher_utilization.items():
            pct = "n/a" if stat.invalid_max else f"{stat.percentage}%"
            name = stat.name or teacher_id
            print(f"  {name} [{teacher_id}]: {stat.assigned_periods} periods, {pct}")


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    util.configure_logging(args.verbose)
    settings = config.Settings.from_env()
    tz = util.parse_timezone(args.tz or settings.timezone)
    school_config = config.load_school_config(args.periods or settings.periods_file)

    token = None
    if not args.offline:
        from . import auth

        token = auth.acquire_token()
    client = api.APIClient(
        settings.api_url,
        token,
        api_key=settings.api_key,
        dump_json=args.dump_json,
        offline=args.offline,
        json_dir=args.data_dir,
    )
    provider = api.TimetableProvider(client, school_config)

    if args.conflicts:
        try:
            _check_conflicts(provider)
        except InvalidGridError as exc:
            logging.error("Invalid timetable: %s", exc)
            raise SystemExit(3)
        return

    if not args.id:
        raise SystemExit("--id is required unless --conflicts is given")
    query = ViewpointQuery(kind=args.role, id=args.id, as_of=_as_of(args.at, tz))
    try:
        view = dashboard.build_view(provider, query, school_config, limit=args.limit)
    except ScheduleConflictError as exc:
        logging.error("%s", exc)
        raise SystemExit(2)
    except InvalidGridError as exc:
        logging.error("Invalid timetable: %s", exc)
        raise SystemExit(3)

    if not view.available:
        print(f"No schedule available for {query.kind} {query.id}")
        return
    _print_view(view)

    if args.ics:
        if not (args.term_start and args.term_end):
            raise SystemExit("--ics needs --term-start and --term-end")
        ics, events = ics_builder.build_ics(
            view.grid,
            tz=tz,
            term_start=date.fromisoformat(args.term_start),
            term_end=date.fromisoformat(args.term_end),
            exclude_dates=[date.fromisoformat(d) for d in args.holiday],
            calendar_name=f"{query.kind.capitalize()} {query.id}",
        )
        out = Path(args.ics)
        if out.is_dir():
            out = out / ics_builder.output_filename(query)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(ics, encoding="utf-8", newline="")
        logging.info("Wrote %d events to %s", len(events), out)


if __name__ == "__main__":  # pragma: no cover
    main()
