"""Data models for per-tenant availability settings and slot statuses."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from slotwise.clock import parse_hhmm, validate_hhmm
from slotwise.modules.booking.models import Appointment

DEFAULT_WORKING_DAYS: list[int] = [1, 2, 3, 4, 5]
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"

# Document id used when no tenant is given.
LEGACY_DOCUMENT_ID = "main"


class TenantKey(BaseModel):
    """Multi-tenant key: one settings document per organization and calendar."""

    org_id: str
    calendar_id: str

    @model_validator(mode="after")
    def _require_both(self) -> "TenantKey":
        if not self.org_id or not self.calendar_id:
            raise ValueError("org_id and calendar_id are required")
        return self

    @property
    def document_id(self) -> str:
        return f"{self.org_id}_{self.calendar_id}"


class WorkingHours(BaseModel):
    """Daily half-open working window."""

    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_hhmm(value)


class BlockedSlot(BaseModel):
    """Recurring block; applies every day unless ``date`` is set."""

    key: str = Field(default_factory=lambda: str(uuid4()))
    start_time: str
    end_time: str
    label: str = ""
    date: Optional[dt.date] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_hhmm(value)

    def applies_to(self, day: dt.date, time: str) -> bool:
        """Whether a slot starting at *time* on *day* falls inside this block."""
        minutes = parse_hhmm(time)
        if not parse_hhmm(self.start_time) <= minutes < parse_hhmm(self.end_time):
            return False
        return self.date is None or self.date == day


class UnavailableSlot(BaseModel):
    """One-off admin override marking a single slot unavailable."""

    date: dt.date
    time: str
    label: Optional[str] = None

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_hhmm(value)

    def matches(self, day: dt.date, time: str) -> bool:
        return self.date == day and self.time == time


class CalendarSync(BaseModel):
    """Calendar write-back preferences."""

    auto_create_events: bool = True
    show_busy_times: bool = False
    sync_cancellations: bool = True


class AvailabilitySettings(BaseModel):
    """Availability configuration for one tenant."""

    id: Optional[str] = None
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    working_days: list[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    blocked_slots: list[BlockedSlot] = Field(default_factory=list)
    one_off_unavailable_slots: list[UnavailableSlot] = Field(default_factory=list)
    calendar_sync: CalendarSync = Field(default_factory=CalendarSync)
    updated_at: Optional[dt.datetime] = None

    def is_one_off_unavailable(self, day: dt.date, time: str) -> bool:
        return any(entry.matches(day, time) for entry in self.one_off_unavailable_slots)

    def is_time_blocked(self, day: dt.date, time: str) -> bool:
        return any(block.applies_to(day, time) for block in self.blocked_slots)


def normalize_working_days(raw: Any) -> list[int]:
    """Coerce a stored ``workingDays`` value into sorted weekday indexes.

    Accepts a list of 0–6 integers (0=Sunday) or the legacy
    ``{"startDay": n, "endDay": m}`` range, which may wrap past Saturday.
    Anything that yields no valid day falls back to Monday–Friday.
    """
    days: list[int] = []
    if isinstance(raw, (list, tuple)):
        days = [d for d in raw if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6]
    elif isinstance(raw, dict):
        start = raw.get("startDay", raw.get("start_day"))
        end = raw.get("endDay", raw.get("end_day"))
        try:
            start, end = int(start), int(end)
        except (TypeError, ValueError):
            start = end = -1
        if 0 <= start <= 6 and 0 <= end <= 6:
            if start <= end:
                days = list(range(start, end + 1))
            else:
                days = list(range(start, 7)) + list(range(0, end + 1))

    unique = sorted(set(days))
    return unique or list(DEFAULT_WORKING_DAYS)


class SlotState(StrEnum):
    """Display state of a grid cell, in resolution priority order."""

    PAST = "past"
    CALENDAR_BLOCKED = "calendarBlocked"
    BLOCKED = "blocked"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    AVAILABLE = "available"


class SlotStatus(BaseModel):
    """Resolved status of one ``(date, time)`` cell with every facet."""

    state: SlotState
    is_past: bool = False
    is_calendar_blocked: bool = False
    is_blocked: bool = False
    is_booked: bool = False
    is_unavailable: bool = False
    is_available: bool = True
    appointment: Optional[Appointment] = None


class DayCounts(BaseModel):
    """Per-day overlay tallies shown in the admin week header."""

    booked: int = 0
    blocked: int = 0
    unavailable: int = 0


class DaySummary(BaseModel):
    """One column of the admin week grid."""

    date: dt.date
    is_past: bool = False
    fully_unavailable: bool = False
    counts: DayCounts = Field(default_factory=DayCounts)
    slots: dict[str, SlotStatus] = Field(default_factory=dict)


class WeekView(BaseModel):
    """Fully resolved admin week grid."""

    week_start: dt.date
    time_labels: list[str] = Field(default_factory=list)
    days: list[DaySummary] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.days or not self.time_labels
