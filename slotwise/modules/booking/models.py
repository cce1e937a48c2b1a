"""Data models for appointments, bookable time slots and timeframes."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from slotwise.clock import validate_hhmm


class AppointmentStatus(StrEnum):
    """Appointment lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class LocationType(StrEnum):
    """Where an appointment takes place."""

    ZOOM = "zoom"
    YOUR_PREMISES = "your_premises"
    RESTAURANT = "restaurant"
    OTHER = "other"


class LocationDetails(BaseModel):
    """Meeting location chosen in the booking wizard."""

    type: LocationType = LocationType.OTHER
    details: Optional[str] = None


class Appointment(BaseModel):
    """A booking made against a time slot."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    slot_id: str = ""
    email: str
    location_details: LocationDetails = Field(default_factory=LocationDetails)
    status: AppointmentStatus = AppointmentStatus.PENDING
    appointment_date: dt.date
    date: Optional[dt.date] = None
    time: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    expires_at: Optional[dt.datetime] = None

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: Optional[str]) -> Optional[str]:
        return validate_hhmm(value) if value is not None else None

    @property
    def slot_date(self) -> dt.date:
        """Calendar day the appointment occupies."""
        return self.date or self.appointment_date

    @property
    def is_confirmed(self) -> bool:
        return self.status == AppointmentStatus.CONFIRMED


class TimeSlotStatus(StrEnum):
    """Status of a stored, bookable time slot."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    BOOKED = "booked"


class TimeSlot(BaseModel):
    """Flat booking-list slot shown by the public booking wizard."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    date: dt.date
    time: str
    status: TimeSlotStatus = TimeSlotStatus.AVAILABLE

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_hhmm(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        # Stored documents may carry an explicit null status.
        return TimeSlotStatus.AVAILABLE if value is None else value

    @property
    def is_bookable(self) -> bool:
        return self.status not in (TimeSlotStatus.UNAVAILABLE, TimeSlotStatus.BOOKED)


class Timeframe(StrEnum):
    """Booking wizard timeframe choices."""

    ASAP = "asap"
    THIS_WEEK = "this_week"
    NEXT_WEEK = "next_week"
    THIS_MONTH = "this_month"


class DateRange(BaseModel):
    """Inclusive range of calendar days."""

    start: dt.date
    end: dt.date

    def __contains__(self, day: dt.date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> list[dt.date]:
        """Every day in the range, in order."""
        count = (self.end - self.start).days + 1
        return [self.start + dt.timedelta(days=i) for i in range(max(count, 0))]
