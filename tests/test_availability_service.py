"""Tests for the resolved admin week view."""

from __future__ import annotations

import datetime as dt
from unittest.mock import AsyncMock, MagicMock

import pytest

from slotwise.modules.availability.models import AvailabilitySettings, SlotState, UnavailableSlot
from slotwise.modules.availability.repository import SettingsRepository
from slotwise.modules.availability.service import AvailabilityService
from slotwise.modules.booking.models import Appointment, AppointmentStatus
from slotwise.modules.booking.repository import AppointmentRepository
from slotwise.modules.calendar.models import CalendarEvent

TODAY = dt.date(2025, 1, 8)


@pytest.fixture
def calendar_service():
    service = MagicMock()
    service.get_events_for_week = AsyncMock(return_value=[
        CalendarEvent(id="offsite", startTime="2025-01-10", endTime="2025-01-10", isAllDay=True),
    ])
    return service


class TestAvailabilityService:
    """Week grid assembly from every collaborator."""

    @pytest.mark.asyncio
    async def test_week_view(self, session_factory, tenant, calendar_service) -> None:
        settings_repo = SettingsRepository(session_factory)
        appointment_repo = AppointmentRepository(session_factory)
        await settings_repo.save(AvailabilitySettings(
            one_off_unavailable_slots=[UnavailableSlot(date=dt.date(2025, 1, 9), time="09:00")],
        ), tenant)
        await appointment_repo.create(Appointment(
            email="guest@example.com",
            appointment_date=dt.date(2025, 1, 9),
            date=dt.date(2025, 1, 9),
            time="10:00",
            status=AppointmentStatus.CONFIRMED,
        ), tenant)

        service = AvailabilityService(settings_repo, appointment_repo, calendar_service)
        view = await service.week_view(tenant, dt.date(2025, 1, 9), today=TODAY)

        calendar_service.get_events_for_week.assert_awaited_once_with(
            tenant, dt.date(2025, 1, 6), dt.date(2025, 1, 12),
        )
        assert view.week_start == dt.date(2025, 1, 6)
        assert len(view.time_labels) == 16
        assert [d.date.day for d in view.days] == [6, 7, 8, 9, 10]

        monday, _, wednesday, thursday, friday = view.days
        assert monday.is_past is True
        assert monday.slots["09:00"].state == SlotState.PAST
        assert wednesday.slots["09:00"].state == SlotState.AVAILABLE
        assert thursday.slots["09:00"].state == SlotState.UNAVAILABLE
        assert thursday.slots["10:00"].state == SlotState.BOOKED
        assert thursday.counts.booked == 1
        assert thursday.counts.unavailable == 1
        assert {s.state for s in friday.slots.values()} == {SlotState.CALENDAR_BLOCKED}

    @pytest.mark.asyncio
    async def test_closed_week_is_empty(self, tenant, calendar_service) -> None:
        settings_repo = MagicMock()
        settings_repo.load = AsyncMock(return_value=AvailabilitySettings(working_days=[]))
        appointment_repo = MagicMock()
        appointment_repo.list = AsyncMock(return_value=[])

        view = await AvailabilityService(settings_repo, appointment_repo, calendar_service).week_view(
            tenant, TODAY, today=TODAY,
        )
        assert view.days == []
        assert view.is_empty is True
