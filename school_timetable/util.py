"""Utility helpers."""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Tuple
from zoneinfo import ZoneInfo


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def parse_timezone(tz: str) -> ZoneInfo:
    return ZoneInfo(tz)


def now(tz: ZoneInfo) -> datetime:
    return datetime.now(tz)


def parse_clock(value: str) -> time:
    """Parse ``HH:MM`` (seconds are tolerated)."""
    value = value.strip()
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value, fmt).time()


def parse_time_range(value: str) -> Tuple[str, str]:
    """Split ``"08:00-08:40"`` into normalized ``("08:00", "08:40")``."""
    start, sep, end = value.partition("-")
    if not sep:
        raise ValueError(f"Expected a HH:MM-HH:MM range, got {value!r}")
    return parse_clock(start).strftime("%H:%M"), parse_clock(end).strftime("%H:%M")


def minutes_since_midnight(value: time | datetime) -> int:
    return value.hour * 60 + value.minute
