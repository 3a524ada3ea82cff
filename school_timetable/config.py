"""School day structure and runtime settings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from .errors import InvalidGridError
from .models import DAYS_OF_WEEK, PeriodSlot
from .util import parse_clock, parse_time_range

DEFAULT_API_URL = "http://localhost:54321/rest/v1"
DEFAULT_TIMEZONE = "Africa/Lusaka"


@dataclass(frozen=True)
class SchoolConfig:
    days: Tuple[str, ...]
    periods: Tuple[PeriodSlot, ...]

    def period(self, period_id: str) -> Optional[PeriodSlot]:
        return next((p for p in self.periods if p.id == period_id), None)


def _slot(pid: int, time_range: str, label: str, is_break: bool = False) -> PeriodSlot:
    start, end = parse_time_range(time_range)
    return PeriodSlot(id=str(pid), label=label, start=start, end=end, is_break=is_break)


DEFAULT_SCHOOL_CONFIG = SchoolConfig(
    days=DAYS_OF_WEEK,
    periods=(
        _slot(1, "08:00-08:40", "Period 1"),
        _slot(2, "08:40-09:20", "Period 2"),
        _slot(3, "09:20-10:00", "Period 3"),
        _slot(4, "10:00-10:20", "Break", is_break=True),
        _slot(5, "10:20-11:00", "Period 4"),
        _slot(6, "11:00-11:40", "Period 5"),
        _slot(7, "11:40-12:20", "Period 6"),
        _slot(8, "12:20-13:00", "Lunch", is_break=True),
        _slot(9, "13:00-13:40", "Period 7"),
        _slot(10, "13:40-14:20", "Period 8"),
        _slot(11, "14:20-15:00", "Period 9"),
    ),
)


def _parse_period(raw: Dict[str, Any], ctx: str) -> PeriodSlot:
    if "id" not in raw:
        raise InvalidGridError(f"Missing required key 'id' in {ctx}")
    try:
        if "time" in raw:
            start, end = parse_time_range(str(raw["time"]))
        else:
            start = parse_clock(str(raw["start"])).strftime("%H:%M")
            end = parse_clock(str(raw["end"])).strftime("%H:%M")
    except (KeyError, ValueError) as exc:
        raise InvalidGridError(f"Bad time range in {ctx}: {exc}") from exc
    is_break = bool(raw.get("is_break", raw.get("isBreak", False)))
    return PeriodSlot(
        id=str(raw["id"]),
        label=str(raw.get("label", f"Period {raw['id']}")),
        start=start,
        end=end,
        is_break=is_break,
    )


def validate_periods(periods: Iterable[PeriodSlot]) -> None:
    seen = set()
    for p in periods:
        if p.id in seen:
            raise InvalidGridError(f"Duplicate period id {p.id!r}")
        seen.add(p.id)
        if p.start_minutes >= p.end_minutes:
            raise InvalidGridError(f"Period {p.id!r} ends before it starts ({p.time_range})")


def parse_school_config(raw: Dict[str, Any]) -> SchoolConfig:
    days = tuple(str(d) for d in raw.get("days") or DAYS_OF_WEEK)
    if len(set(days)) != len(days):
        raise InvalidGridError(f"Duplicate day names in {list(days)}")
    periods_raw = raw.get("periods", raw.get("timeSlots"))
    if periods_raw is None:
        periods = DEFAULT_SCHOOL_CONFIG.periods
    else:
        periods = tuple(
            _parse_period(p, f"periods[{i}]") for i, p in enumerate(periods_raw)
        )
    validate_periods(periods)
    return SchoolConfig(days=days, periods=periods)


def load_school_config(path: str | Path | None) -> SchoolConfig:
    """Load the day/period structure, falling back to the built-in school day."""
    if not path:
        return DEFAULT_SCHOOL_CONFIG
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    config = parse_school_config(raw)
    logging.debug(
        "Loaded %d days and %d periods from %s", len(config.days), len(config.periods), path
    )
    return config


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    periods_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.getenv("SCHOOL_TIMETABLE_API_URL", DEFAULT_API_URL).rstrip("/"),
            api_key=os.getenv("SCHOOL_TIMETABLE_API_KEY") or None,
            timezone=os.getenv("SCHOOL_TIMEZONE", DEFAULT_TIMEZONE),
            periods_file=os.getenv("SCHOOL_TIMETABLE_PERIODS") or None,
        )
