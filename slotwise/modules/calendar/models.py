"""Data models for external calendar busy-time events."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Date-only strings ("YYYY-MM-DD") mark all-day events.
_DATE_ONLY_LENGTH = 10


class CalendarProvider(StrEnum):
    """Supported calendar backends."""

    GOOGLE = "google"
    OUTLOOK = "outlook"


class BusyInterval(BaseModel):
    """Half-open ``[start, end)`` interval of external busy time."""

    start: dt.datetime
    end: dt.datetime

    def overlaps(self, start: dt.datetime, end: dt.datetime) -> bool:
        """Check whether ``[start, end)`` intersects this interval."""
        return self.start < end and self.end > start


class CalendarEvent(BaseModel):
    """Event fetched from a connected Google or Outlook calendar.

    ``start_time`` and ``end_time`` are kept as the provider sent them:
    ISO 8601 datetimes for timed events, ``YYYY-MM-DD`` for all-day ones.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    provider: Optional[CalendarProvider] = None
    is_all_day: bool = Field(default=False, alias="isAllDay")

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_iso(cls, value: str) -> str:
        """Accept ``YYYY-MM-DD`` or an ISO 8601 datetime, nothing else."""
        try:
            if len(value) == _DATE_ONLY_LENGTH:
                dt.date.fromisoformat(value)
            else:
                dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Expected ISO date or datetime, got {value!r}")
        return value

    @property
    def is_date_only(self) -> bool:
        return len(self.start_time) == _DATE_ONLY_LENGTH

    def busy_interval(self, zone: Optional[ZoneInfo] = None) -> BusyInterval:
        """Reduce the event to the interval it keeps busy.

        All-day events cover ``[start 00:00:00Z, end 23:59:59Z)``. Timed
        events without an offset are read in *zone* (UTC by default).
        """
        if self.is_date_only:
            start = dt.datetime.combine(dt.date.fromisoformat(self.start_time), dt.time(0, 0, 0), dt.UTC)
            end = dt.datetime.combine(dt.date.fromisoformat(self.end_time[:_DATE_ONLY_LENGTH]), dt.time(23, 59, 59), dt.UTC)
            return BusyInterval(start=start, end=end)

        return BusyInterval(
            start=_parse_datetime(self.start_time, zone),
            end=_parse_datetime(self.end_time, zone),
        )


def _parse_datetime(value: str, zone: Optional[ZoneInfo]) -> dt.datetime:
    parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone or dt.UTC)
    return parsed
