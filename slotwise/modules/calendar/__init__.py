"""External calendar busy time (Google / Outlook)."""

from slotwise.modules.calendar.models import CalendarEvent, CalendarProvider

__all__ = ["CalendarEvent", "CalendarProvider"]
