"""Slot grid generation: which days and half-hour labels a week contains.

Every function here is pure; callers treat an empty result as
"no slots available" rather than an error.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from slotwise.clock import format_minutes, js_weekday, parse_hhmm, start_of_week
from slotwise.modules.availability.models import AvailabilitySettings, WorkingHours

SLOT_MINUTES = 30
DAYS_PER_WEEK = 7


def week_start(anchor: dt.date) -> dt.date:
    """Monday of the week containing *anchor*."""
    return start_of_week(anchor)


def week_days(anchor: dt.date, working_days: Iterable[int]) -> list[dt.date]:
    """Dates of the anchor's Monday-start week that fall on a working day.

    An empty ``working_days`` closes the whole week.
    """
    allowed = set(working_days)
    if not allowed:
        return []
    monday = week_start(anchor)
    days = (monday + dt.timedelta(days=i) for i in range(DAYS_PER_WEEK))
    return [day for day in days if js_weekday(day) in allowed]


def time_labels(working_hours: WorkingHours, step: int = SLOT_MINUTES) -> list[str]:
    """``HH:MM`` labels from ``start_time`` (inclusive) to ``end_time`` (exclusive)."""
    start = parse_hhmm(working_hours.start_time)
    end = parse_hhmm(working_hours.end_time)
    return [format_minutes(minute) for minute in range(start, end, step)]


def build_grid(settings: AvailabilitySettings, anchor: dt.date) -> tuple[list[dt.date], list[str]]:
    """Days and time labels of the admin grid for the anchor's week."""
    return week_days(anchor, settings.working_days), time_labels(settings.working_hours)
