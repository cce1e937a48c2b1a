"""Slot status resolution for the admin week grid.

A cell's display state is the first matching rule in a fixed order:
past, calendar-blocked, blocked, booked, unavailable, available. Past
dates and external calendar conflicts therefore always win over manual
overrides.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from slotwise.clock import parse_hhmm
from slotwise.modules.availability.grid import SLOT_MINUTES, time_labels
from slotwise.modules.availability.models import (
    AvailabilitySettings,
    DayCounts,
    SlotState,
    SlotStatus,
)
from slotwise.modules.booking.models import Appointment, TimeSlot
from slotwise.modules.calendar.models import BusyInterval, CalendarEvent


class SlotStatusResolver:
    """Resolves ``(date, time)`` cells against every availability overlay."""

    def __init__(
        self,
        settings: AvailabilitySettings,
        appointments: Sequence[Appointment] = (),
        calendar_events: Sequence[CalendarEvent] = (),
        today: Optional[dt.date] = None,
        slot_duration: int = SLOT_MINUTES,
        zone: Optional[ZoneInfo] = None,
    ) -> None:
        self._settings = settings
        self._appointments = list(appointments)
        self._zone = zone or ZoneInfo("UTC")
        self._today = today or dt.datetime.now(self._zone).date()
        self._slot_duration = dt.timedelta(minutes=slot_duration)
        self._busy: list[BusyInterval] = [event.busy_interval(self._zone) for event in calendar_events]

        # (state, facet name) pairs, highest priority first.
        self._rules: list[tuple[SlotState, str]] = [
            (SlotState.PAST, "is_past"),
            (SlotState.CALENDAR_BLOCKED, "is_calendar_blocked"),
            (SlotState.BLOCKED, "is_blocked"),
            (SlotState.BOOKED, "is_booked"),
            (SlotState.UNAVAILABLE, "is_unavailable"),
        ]

    @property
    def today(self) -> dt.date:
        return self._today

    # ── Individual facets ────────────────────────────────────────────

    def is_past(self, day: dt.date) -> bool:
        """Day granularity: today itself is never past."""
        return day < self._today

    def is_calendar_blocked(self, day: dt.date, time: str) -> bool:
        start = self._slot_start(day, time)
        end = start + self._slot_duration
        return any(interval.overlaps(start, end) for interval in self._busy)

    def is_time_blocked(self, day: dt.date, time: str) -> bool:
        return self._settings.is_time_blocked(day, time)

    def find_appointment(self, day: dt.date, time: str) -> Optional[Appointment]:
        """Confirmed appointment occupying the exact cell, if any."""
        return next(
            (
                appt for appt in self._appointments
                if appt.is_confirmed and appt.slot_date == day and appt.time == time
            ),
            None,
        )

    def is_unavailable(self, day: dt.date, time: str) -> bool:
        return self._settings.is_one_off_unavailable(day, time)

    # ── Resolution ───────────────────────────────────────────────────

    def resolve(self, day: dt.date, time: str) -> SlotStatus:
        """Compute the single display state and all boolean facets of a cell."""
        appointment = self.find_appointment(day, time)
        facets = {
            "is_past": self.is_past(day),
            "is_calendar_blocked": self.is_calendar_blocked(day, time),
            "is_blocked": self.is_time_blocked(day, time),
            "is_booked": appointment is not None,
            "is_unavailable": self.is_unavailable(day, time),
        }
        state = next((state for state, facet in self._rules if facets[facet]), SlotState.AVAILABLE)
        return SlotStatus(
            state=state,
            is_available=not (
                facets["is_blocked"]
                or facets["is_booked"]
                or facets["is_unavailable"]
                or facets["is_calendar_blocked"]
            ),
            appointment=appointment,
            **facets,
        )

    def resolve_day(self, day: dt.date, labels: Iterable[str]) -> dict[str, SlotStatus]:
        return {time: self.resolve(day, time) for time in labels}

    # ── Day-level aggregation ────────────────────────────────────────

    def is_day_fully_unavailable(self, day: dt.date) -> bool:
        """True when every working-hours label of *day* has a one-off entry.

        Only the one-off overlay counts; recurring blocks and bookings are
        ignored so that bulk day toggles never depend on them.
        """
        labels = time_labels(self._settings.working_hours)
        if not labels:
            return False
        return all(self._settings.is_one_off_unavailable(day, time) for time in labels)

    def day_counts(self, day: dt.date) -> DayCounts:
        booked = sum(
            1 for appt in self._appointments
            if appt.date == day or appt.appointment_date == day
        )
        blocked = sum(
            1 for block in self._settings.blocked_slots
            if block.date is None or block.date == day
        )
        unavailable = sum(
            1 for entry in self._settings.one_off_unavailable_slots if entry.date == day
        )
        return DayCounts(booked=booked, blocked=blocked, unavailable=unavailable)

    def calendar_blocked_slot_ids(self, slots: Iterable[TimeSlot]) -> list[str]:
        """Ids of flat booking slots that overlap external busy time."""
        return [slot.id for slot in slots if self.is_calendar_blocked(slot.date, slot.time)]

    # ── Internals ────────────────────────────────────────────────────

    def _slot_start(self, day: dt.date, time: str) -> dt.datetime:
        minutes = parse_hhmm(time)
        return dt.datetime.combine(day, dt.time(minutes // 60, minutes % 60), self._zone)
