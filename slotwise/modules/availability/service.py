"""Availability service: assembles the resolved admin week grid."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from slotwise.config import get_settings
from slotwise.logging_config import get_logger, tenant_context
from slotwise.modules.availability.grid import DAYS_PER_WEEK, build_grid, week_start
from slotwise.modules.availability.models import DaySummary, TenantKey, WeekView
from slotwise.modules.availability.repository import SettingsRepository
from slotwise.modules.availability.resolver import SlotStatusResolver
from slotwise.modules.booking.repository import AppointmentRepository
from slotwise.modules.calendar.service import CalendarService

logger = get_logger(__name__)


class AvailabilityService:
    """Reads settings, appointments and busy time, then resolves a week."""

    def __init__(
        self,
        settings_repository: Optional[SettingsRepository] = None,
        appointment_repository: Optional[AppointmentRepository] = None,
        calendar_service: Optional[CalendarService] = None,
    ) -> None:
        self._config = get_settings()
        self._settings_repository = settings_repository or SettingsRepository()
        self._appointment_repository = appointment_repository or AppointmentRepository()
        self._calendar_service = calendar_service or CalendarService()

    async def week_view(
        self,
        tenant: Optional[TenantKey],
        anchor: dt.date,
        today: Optional[dt.date] = None,
    ) -> WeekView:
        """Resolve every grid cell of the anchor's Monday-start week."""
        today = today or dt.datetime.now(self._config.zone).date()
        monday = week_start(anchor)
        sunday = monday + dt.timedelta(days=DAYS_PER_WEEK - 1)

        with tenant_context(tenant.document_id if tenant else None):
            settings = await self._settings_repository.load(tenant)
            appointments = await self._appointment_repository.list(tenant)
            events = await self._calendar_service.get_events_for_week(tenant, monday, sunday)

            resolver = SlotStatusResolver(
                settings,
                appointments,
                events,
                today=today,
                slot_duration=self._config.slot_duration_minutes,
                zone=self._config.zone,
            )
            days, labels = build_grid(settings, anchor)
            summaries = [
                DaySummary(
                    date=day,
                    is_past=resolver.is_past(day),
                    fully_unavailable=resolver.is_day_fully_unavailable(day),
                    counts=resolver.day_counts(day),
                    slots=resolver.resolve_day(day, labels),
                )
                for day in days
            ]

            logger.info(
                "week_view_resolved",
                week_start=monday.isoformat(),
                days=len(summaries),
                slots=len(labels),
                busy_events=len(events),
            )
        return WeekView(week_start=monday, time_labels=labels, days=summaries)
