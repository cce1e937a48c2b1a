"""Availability settings, slot grid generation and slot status resolution."""

from slotwise.modules.availability.models import (
    AvailabilitySettings,
    SlotState,
    SlotStatus,
    TenantKey,
)

__all__ = ["AvailabilitySettings", "SlotState", "SlotStatus", "TenantKey"]
