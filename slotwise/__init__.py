"""slotwise: appointment availability and slot resolution engine."""

__version__ = "0.4.0"
