"""Admin overrides: mark single slots or whole days unavailable.

Toggles only ever touch the one-off overlay (``one_off_unavailable_slots``).
Recurring blocks, bookings and calendar conflicts are left alone, so
re-enabling a slot does not make it bookable if another rule still holds.
"""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from slotwise.logging_config import get_logger, tenant_context
from slotwise.modules.availability.grid import time_labels
from slotwise.modules.availability.models import (
    AvailabilitySettings,
    TenantKey,
    UnavailableSlot,
)
from slotwise.modules.availability.repository import SettingsRepository

logger = get_logger(__name__)


class ToggleAction(StrEnum):
    """What a toggle did to the overlay."""

    MARKED_UNAVAILABLE = "marked_unavailable"
    MARKED_AVAILABLE = "marked_available"
    DAY_DISABLED = "day_disabled"
    DAY_ENABLED = "day_enabled"
    NOTHING = "nothing"


class ToggleResult(BaseModel):
    """Outcome of a persisted toggle."""

    success: bool
    action: ToggleAction
    settings: AvailabilitySettings


def toggle_slot_overlay(
    settings: AvailabilitySettings, day: dt.date, time: str,
) -> tuple[AvailabilitySettings, ToggleAction]:
    """Flip one ``(date, time)`` entry in the one-off overlay.

    Returns a new settings object; *settings* is left untouched.
    """
    entries = settings.one_off_unavailable_slots
    if settings.is_one_off_unavailable(day, time):
        remaining = [entry for entry in entries if not entry.matches(day, time)]
        return settings.model_copy(update={"one_off_unavailable_slots": remaining}), ToggleAction.MARKED_AVAILABLE

    added = [*entries, UnavailableSlot(date=day, time=time)]
    return settings.model_copy(update={"one_off_unavailable_slots": added}), ToggleAction.MARKED_UNAVAILABLE


def toggle_day_overlay(
    settings: AvailabilitySettings, day: dt.date,
) -> tuple[AvailabilitySettings, ToggleAction]:
    """Disable every slot of *day*, or re-enable them all if already disabled.

    The day's labels come from working hours alone, so a day outside the
    configured working days can still be toggled. After disabling, the date
    holds exactly one entry per label; labelled entries already present are
    kept as they were.
    """
    labels = time_labels(settings.working_hours)
    if not labels:
        return settings, ToggleAction.NOTHING

    entries = settings.one_off_unavailable_slots
    if all(settings.is_one_off_unavailable(day, time) for time in labels):
        remaining = [entry for entry in entries if entry.date != day]
        return settings.model_copy(update={"one_off_unavailable_slots": remaining}), ToggleAction.DAY_ENABLED

    existing = {entry.time: entry for entry in entries if entry.date == day}
    others = [entry for entry in entries if entry.date != day]
    day_entries = [existing.get(time) or UnavailableSlot(date=day, time=time) for time in labels]
    return settings.model_copy(update={"one_off_unavailable_slots": others + day_entries}), ToggleAction.DAY_DISABLED


class AvailabilityEditor:
    """Applies admin toggles to one tenant's settings document.

    Every toggle is a read-modify-write of the whole document with exactly
    one write. ``settings`` reflects the last successfully persisted state
    and is never updated when a write fails.
    """

    def __init__(
        self,
        tenant: Optional[TenantKey] = None,
        repository: Optional[SettingsRepository] = None,
    ) -> None:
        self._tenant = tenant
        self._repository = repository or SettingsRepository()
        self.settings: Optional[AvailabilitySettings] = None

    @property
    def _document_id(self) -> Optional[str]:
        return self._tenant.document_id if self._tenant else None

    async def load(self) -> AvailabilitySettings:
        self.settings = await self._repository.load(self._tenant)
        return self.settings

    async def toggle_slot(self, day: dt.date, time: str) -> ToggleResult:
        """Mark one slot unavailable, or available again if it already was."""
        current = await self._repository.load(self._tenant)
        updated, action = toggle_slot_overlay(current, day, time)
        return await self._persist(current, updated, action, date=day.isoformat(), time=time)

    async def toggle_day(self, day: dt.date) -> ToggleResult:
        """Disable a whole day, or re-enable it if every slot is already disabled."""
        current = await self._repository.load(self._tenant)
        updated, action = toggle_day_overlay(current, day)
        if action == ToggleAction.NOTHING:
            with tenant_context(self._document_id):
                logger.info("day_toggle_skipped", date=day.isoformat(), reason="empty_grid")
            self.settings = current
            return ToggleResult(success=True, action=action, settings=current)
        return await self._persist(current, updated, action, date=day.isoformat())

    async def _persist(
        self,
        current: AvailabilitySettings,
        updated: AvailabilitySettings,
        action: ToggleAction,
        **context,
    ) -> ToggleResult:
        saved = await self._repository.save(updated, self._tenant)
        with tenant_context(self._document_id):
            if not saved:
                logger.warning("availability_toggle_failed", action=action.value, **context)
                return ToggleResult(success=False, action=action, settings=current)
            logger.info("availability_toggled", action=action.value, **context)

        self.settings = updated
        return ToggleResult(success=True, action=action, settings=updated)
