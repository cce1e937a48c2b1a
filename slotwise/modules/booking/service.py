"""Bookable slot selection for the public booking wizard."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional, Sequence

from slotwise.clock import end_of_month, end_of_week, js_weekday, start_of_week
from slotwise.config import get_settings
from slotwise.logging_config import get_logger
from slotwise.modules.availability.grid import time_labels
from slotwise.modules.availability.models import AvailabilitySettings, TenantKey
from slotwise.modules.availability.repository import SettingsRepository
from slotwise.modules.booking.models import (
    Appointment,
    AppointmentStatus,
    DateRange,
    LocationDetails,
    Timeframe,
    TimeSlot,
)
from slotwise.modules.booking.repository import AppointmentRepository, TimeSlotRepository

logger = get_logger(__name__)

ASAP_WINDOW_DAYS = 30
FALLBACK_WINDOW_DAYS = 7


def timeframe_range(timeframe: Optional[str], today: dt.date) -> DateRange:
    """Inclusive date range covered by a wizard timeframe choice.

    Unknown or missing choices fall back to the next seven days.
    """
    try:
        choice = Timeframe(timeframe) if timeframe else None
    except ValueError:
        choice = None

    if choice == Timeframe.ASAP:
        return DateRange(start=today, end=today + dt.timedelta(days=ASAP_WINDOW_DAYS))
    if choice == Timeframe.THIS_WEEK:
        return DateRange(start=today, end=end_of_week(today))
    if choice == Timeframe.NEXT_WEEK:
        next_monday = start_of_week(today) + dt.timedelta(weeks=1)
        return DateRange(start=next_monday, end=end_of_week(next_monday))
    if choice == Timeframe.THIS_MONTH:
        return DateRange(start=today, end=end_of_month(today))
    return DateRange(start=today, end=today + dt.timedelta(days=FALLBACK_WINDOW_DAYS))


def _slot_order(slot: TimeSlot) -> tuple[str, str]:
    return slot.date.isoformat(), slot.time


def filter_bookable_slots(
    slots: Iterable[TimeSlot], timeframe: Optional[str], today: dt.date,
) -> list[TimeSlot]:
    """Slots inside the timeframe that are neither unavailable nor booked."""
    window = timeframe_range(timeframe, today)
    bookable = [slot for slot in slots if slot.date in window and slot.is_bookable]
    return sorted(bookable, key=_slot_order)


def generate_candidate_slots(
    settings: AvailabilitySettings,
    appointments: Sequence[Appointment],
    window: DateRange,
) -> list[TimeSlot]:
    """Derive bookable slots straight from settings.

    Used for tenants that have no stored time slots. Recurring blocks,
    one-off overrides and any appointment that is not cancelled remove a
    candidate.
    """
    working_days = set(settings.working_days)
    labels = time_labels(settings.working_hours)
    taken = {
        (appt.slot_date, appt.time)
        for appt in appointments
        if appt.status != AppointmentStatus.CANCELLED
    }

    candidates: list[TimeSlot] = []
    for day in window.days():
        if js_weekday(day) not in working_days:
            continue
        for time in labels:
            if settings.is_time_blocked(day, time) or settings.is_one_off_unavailable(day, time):
                continue
            if (day, time) in taken:
                continue
            candidates.append(TimeSlot(id=f"{day.isoformat()}-{time}", date=day, time=time))
    return candidates


class BookingService:
    """Lists what a visitor can book for a tenant and timeframe."""

    def __init__(
        self,
        settings_repository: Optional[SettingsRepository] = None,
        appointment_repository: Optional[AppointmentRepository] = None,
        time_slot_repository: Optional[TimeSlotRepository] = None,
    ) -> None:
        self._config = get_settings()
        self._settings_repository = settings_repository or SettingsRepository()
        self._appointment_repository = appointment_repository or AppointmentRepository()
        self._time_slot_repository = time_slot_repository or TimeSlotRepository()

    async def available_slots(
        self,
        tenant: Optional[TenantKey],
        timeframe: Optional[str],
        today: Optional[dt.date] = None,
        limit: Optional[int] = None,
    ) -> list[TimeSlot]:
        """Bookable slots, earliest first, capped at the display limit.

        Stored slots win when the tenant has any; otherwise candidates are
        generated from the tenant's settings. Unlike the booking wizard,
        stored slots are never merged with generated candidates.
        """
        today = today or dt.datetime.now(self._config.zone).date()
        limit = self._config.booking_display_limit if limit is None else limit

        stored = await self._time_slot_repository.list(tenant)
        if stored:
            slots = filter_bookable_slots(stored, timeframe, today)
            source = "stored"
        else:
            settings = await self._settings_repository.load(tenant)
            appointments = await self._appointment_repository.list(tenant)
            slots = generate_candidate_slots(settings, appointments, timeframe_range(timeframe, today))
            source = "generated"

        logger.info(
            "bookable_slots_listed",
            tenant=tenant.document_id if tenant else None,
            timeframe=timeframe,
            source=source,
            count=len(slots),
        )
        return slots[:limit] if limit > 0 else slots

    async def confirm_booking(
        self,
        tenant: Optional[TenantKey],
        slot: TimeSlot,
        email: str,
        location_details: Optional[LocationDetails] = None,
    ) -> Appointment:
        """Record a confirmed appointment for *slot* and mark the slot booked.

        Generated candidates have no stored row, so only the appointment is
        written for them.
        """
        appointment = Appointment(
            slot_id=slot.id,
            email=email,
            location_details=location_details or LocationDetails(),
            status=AppointmentStatus.CONFIRMED,
            appointment_date=slot.date,
            date=slot.date,
            time=slot.time,
        )
        await self._appointment_repository.create(appointment, tenant)
        try:
            await self._time_slot_repository.mark_booked(slot.id)
        except LookupError:
            logger.debug("booked_slot_not_stored", slot_id=slot.id)
        return appointment
