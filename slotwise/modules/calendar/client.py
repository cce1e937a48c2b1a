"""HTTP client for the calendar busy-time endpoint.

The endpoint merges events from every connected Google/Outlook calendar
and answers ``POST /api/calendar/events`` with ``{"events": [...]}``.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from slotwise.config import get_settings
from slotwise.logging_config import get_logger
from slotwise.modules.calendar.models import CalendarEvent

logger = get_logger(__name__)

EVENTS_PATH = "/api/calendar/events"


class CalendarFetchError(Exception):
    """Raised when busy-time events could not be fetched."""


class CalendarEventsClient:
    """Fetches external calendar events for a date window."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url if base_url is not None else settings.calendar_api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.calendar_api_timeout
        self._max_attempts = max_attempts or settings.calendar_api_max_attempts
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    async def fetch_events(self, start: dt.datetime, end: dt.datetime) -> list[CalendarEvent]:
        """Events overlapping ``[start, end]``; raises :class:`CalendarFetchError`."""
        if not self.is_configured:
            raise CalendarFetchError("Calendar API base URL not configured")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(min=1, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    data = await self._post(start, end)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("calendar_events_fetch_failed", error=str(exc))
            raise CalendarFetchError(f"Failed to fetch calendar events: {exc}") from exc

        events: list[CalendarEvent] = []
        for raw in (data or {}).get("events") or []:
            try:
                events.append(CalendarEvent.model_validate(raw))
            except ValidationError:
                logger.warning("calendar_event_skipped", raw_event=raw)
        logger.info("calendar_events_fetched", count=len(events))
        return events

    async def _post(self, start: dt.datetime, end: dt.datetime) -> dict:
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport,
        ) as client:
            resp = await client.post(
                EVENTS_PATH,
                json={"startDate": start.isoformat(), "endDate": end.isoformat()},
                headers={"Content-Type": "application/json"},
            )
            resp.raise_for_status()
            return resp.json()
