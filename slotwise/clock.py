"""Helpers for ``HH:MM`` wall-clock labels and Monday-start weeks."""

from __future__ import annotations

import calendar
import datetime as dt
import re

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_hhmm(value: str) -> str:
    """Return *value* unchanged if it is a zero-padded ``HH:MM`` label."""
    if not isinstance(value, str) or not _HHMM.match(value):
        raise ValueError(f"Expected HH:MM time, got {value!r}")
    return value


def parse_hhmm(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` label."""
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"Expected HH:MM time, got {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Inverse of :func:`parse_hhmm`."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def js_weekday(day: dt.date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def start_of_week(day: dt.date) -> dt.date:
    """Monday of the week containing *day*."""
    return day - dt.timedelta(days=day.weekday())


def end_of_week(day: dt.date) -> dt.date:
    """Sunday of the week containing *day*."""
    return start_of_week(day) + dt.timedelta(days=6)


def end_of_month(day: dt.date) -> dt.date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])
