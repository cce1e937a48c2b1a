"""Calendar busy-time service: live fetch with a local fallback cache."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from slotwise.logging_config import get_logger
from slotwise.modules.availability.models import LEGACY_DOCUMENT_ID, TenantKey
from slotwise.modules.calendar.cache import CalendarEventCache
from slotwise.modules.calendar.client import CalendarEventsClient, CalendarFetchError
from slotwise.modules.calendar.models import CalendarEvent

logger = get_logger(__name__)


class CalendarService:
    """Supplies external busy events for a tenant and date window."""

    def __init__(
        self,
        client: Optional[CalendarEventsClient] = None,
        cache: Optional[CalendarEventCache] = None,
    ) -> None:
        self._client = client or CalendarEventsClient()
        self._cache = cache or CalendarEventCache()

    async def get_events_for_week(
        self,
        tenant: Optional[TenantKey],
        start: dt.date,
        end: dt.date,
    ) -> list[CalendarEvent]:
        """Events touching ``[start, end]``.

        Fetches live when the endpoint is configured and refreshes the
        cache; otherwise, or when the fetch fails, serves cached events.
        """
        tenant_key = tenant.document_id if tenant else LEGACY_DOCUMENT_ID

        if self._client.is_configured:
            window_start = dt.datetime.combine(start, dt.time.min, dt.UTC)
            window_end = dt.datetime.combine(end, dt.time.max, dt.UTC)
            try:
                events = await self._client.fetch_events(window_start, window_end)
            except CalendarFetchError as exc:
                logger.warning("calendar_fetch_fallback_to_cache", tenant=tenant_key, error=str(exc))
            else:
                try:
                    await self._cache.sync_events(events, tenant_key, start, end)
                except (SQLAlchemyError, ValueError) as exc:
                    logger.warning("calendar_cache_sync_failed", tenant=tenant_key, error=str(exc))
                return events

        return await self._cache.get_events(tenant_key, start, end)
