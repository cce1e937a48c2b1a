"""Appointments, bookable time slots and the booking availability filter."""

from slotwise.modules.booking.models import Appointment, Timeframe, TimeSlot

__all__ = ["Appointment", "Timeframe", "TimeSlot"]
