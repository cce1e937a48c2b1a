"""Tests for calendar busy-time models, client, cache and service."""

from __future__ import annotations

import datetime as dt
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from slotwise.modules.calendar.cache import CalendarEventCache
from slotwise.modules.calendar.client import EVENTS_PATH, CalendarEventsClient, CalendarFetchError
from slotwise.modules.calendar.models import CalendarEvent, CalendarProvider
from slotwise.modules.calendar.service import CalendarService

WINDOW_START = dt.datetime(2025, 1, 6, tzinfo=dt.UTC)
WINDOW_END = dt.datetime(2025, 1, 12, 23, 59, 59, tzinfo=dt.UTC)


def _client(handler) -> CalendarEventsClient:
    return CalendarEventsClient(
        base_url="https://calendar.test",
        timeout=1.0,
        max_attempts=1,
        transport=httpx.MockTransport(handler),
    )


class TestCalendarEvent:
    """Busy interval derivation."""

    def test_all_day_event_spans_the_utc_day(self) -> None:
        event = CalendarEvent(startTime="2025-01-10", endTime="2025-01-10", isAllDay=True)
        interval = event.busy_interval()
        assert interval.start == dt.datetime(2025, 1, 10, 0, 0, 0, tzinfo=dt.UTC)
        assert interval.end == dt.datetime(2025, 1, 10, 23, 59, 59, tzinfo=dt.UTC)

    def test_multi_day_all_day_event(self) -> None:
        event = CalendarEvent(startTime="2025-01-10", endTime="2025-01-12")
        assert event.busy_interval().end.date() == dt.date(2025, 1, 12)

    def test_timed_event_with_zulu_suffix(self) -> None:
        event = CalendarEvent(startTime="2025-01-09T10:00:00Z", endTime="2025-01-09T11:00:00+01:00")
        interval = event.busy_interval()
        assert interval.start == dt.datetime(2025, 1, 9, 10, tzinfo=dt.UTC)
        assert interval.end == interval.start
        assert interval.overlaps(interval.start, interval.start + dt.timedelta(minutes=30)) is False

    @pytest.mark.parametrize("start", ["", "2025-13-01", "next tuesday"])
    def test_invalid_times_rejected(self, start) -> None:
        with pytest.raises(ValidationError):
            CalendarEvent(startTime=start, endTime="2025-01-09")

    def test_field_names_accepted(self) -> None:
        event = CalendarEvent(start_time="2025-01-09", end_time="2025-01-09", provider="outlook")
        assert event.provider == CalendarProvider.OUTLOOK
        assert event.is_date_only is True


class TestCalendarEventsClient:
    """Busy-time endpoint client."""

    @pytest.mark.asyncio
    async def test_fetch_events(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"events": [
                {"id": "e1", "title": "Standup", "startTime": "2025-01-09T09:00:00Z",
                 "endTime": "2025-01-09T09:15:00Z", "provider": "google"},
                {"id": "broken"},
            ]})

        events = await _client(handler).fetch_events(WINDOW_START, WINDOW_END)

        assert captured["path"] == EVENTS_PATH
        assert captured["body"]["startDate"].startswith("2025-01-06T00:00:00")
        assert [e.id for e in events] == ["e1"]
        assert events[0].provider == CalendarProvider.GOOGLE

    @pytest.mark.asyncio
    async def test_http_error_raises_fetch_error(self) -> None:
        client = _client(lambda request: httpx.Response(503, json={"error": "down"}))
        with pytest.raises(CalendarFetchError):
            await client.fetch_events(WINDOW_START, WINDOW_END)

    @pytest.mark.asyncio
    async def test_connection_error_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CalendarFetchError):
            await _client(handler).fetch_events(WINDOW_START, WINDOW_END)

    @pytest.mark.asyncio
    async def test_unparseable_times_skipped(self, session_factory) -> None:
        """Events with empty or non-ISO times are dropped before caching."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"events": [
                {"id": "bad", "startTime": "", "endTime": ""},
                {"id": "worse", "startTime": "tomorrow", "endTime": "2025-01-09T10:00:00Z"},
                {"id": "good", "startTime": "2025-01-09T09:00:00Z", "endTime": "2025-01-09T09:30:00Z"},
            ]})

        service = CalendarService(_client(handler), CalendarEventCache(session_factory))
        events = await service.get_events_for_week(None, dt.date(2025, 1, 6), dt.date(2025, 1, 12))

        assert [e.id for e in events] == ["good"]
        cached = await CalendarEventCache(session_factory).get_events("main", dt.date(2025, 1, 6), dt.date(2025, 1, 12))
        assert [e.id for e in cached] == ["good"]

    @pytest.mark.asyncio
    async def test_unconfigured_client(self) -> None:
        client = CalendarEventsClient(base_url="")
        assert client.is_configured is False
        with pytest.raises(CalendarFetchError):
            await client.fetch_events(WINDOW_START, WINDOW_END)


class TestCalendarEventCache:
    """Local busy-event cache."""

    @pytest.mark.asyncio
    async def test_sync_and_get(self, session_factory) -> None:
        cache = CalendarEventCache(session_factory)
        events = [
            CalendarEvent(id="a", startTime="2025-01-09T09:00:00Z", endTime="2025-01-09T10:00:00Z"),
            CalendarEvent(id="b", startTime="2025-01-20", endTime="2025-01-20", isAllDay=True),
        ]
        assert await cache.sync_events(events, "acme_primary", dt.date(2025, 1, 6), dt.date(2025, 1, 26)) == 2

        week = await cache.get_events("acme_primary", dt.date(2025, 1, 6), dt.date(2025, 1, 12))
        assert [e.id for e in week] == ["a"]
        assert await cache.get_events("other", dt.date(2025, 1, 6), dt.date(2025, 1, 12)) == []

    @pytest.mark.asyncio
    async def test_resync_replaces_window(self, session_factory) -> None:
        cache = CalendarEventCache(session_factory)
        start, end = dt.date(2025, 1, 6), dt.date(2025, 1, 12)
        await cache.sync_events(
            [CalendarEvent(id="old", startTime="2025-01-08", endTime="2025-01-08")], "main", start, end,
        )
        await cache.sync_events(
            [CalendarEvent(id="new", startTime="2025-01-09", endTime="2025-01-09")], "main", start, end,
        )
        assert [e.id for e in await cache.get_events("main", start, end)] == ["new"]

        await cache.clear("main")
        assert await cache.get_events("main", start, end) == []


class TestCalendarService:
    """Live fetch with cache fallback."""

    @pytest.mark.asyncio
    async def test_live_fetch_refreshes_cache(self, tenant) -> None:
        event = CalendarEvent(id="e1", startTime="2025-01-09", endTime="2025-01-09")
        client = MagicMock(is_configured=True)
        client.fetch_events = AsyncMock(return_value=[event])
        cache = MagicMock()
        cache.sync_events = AsyncMock(return_value=1)
        cache.get_events = AsyncMock(return_value=[])

        events = await CalendarService(client, cache).get_events_for_week(tenant, dt.date(2025, 1, 6), dt.date(2025, 1, 12))

        assert events == [event]
        cache.sync_events.assert_awaited_once_with([event], "acme_primary", dt.date(2025, 1, 6), dt.date(2025, 1, 12))
        cache.get_events.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_write_failure_keeps_live_events(self, tenant) -> None:
        event = CalendarEvent(id="e1", startTime="2025-01-09", endTime="2025-01-09")
        client = MagicMock(is_configured=True)
        client.fetch_events = AsyncMock(return_value=[event])
        cache = MagicMock()
        cache.sync_events = AsyncMock(side_effect=OperationalError("DELETE", {}, Exception("disk I/O error")))
        cache.get_events = AsyncMock(return_value=[])

        events = await CalendarService(client, cache).get_events_for_week(tenant, dt.date(2025, 1, 6), dt.date(2025, 1, 12))

        assert events == [event]
        cache.get_events.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_failure_uses_cache(self, tenant) -> None:
        cached = CalendarEvent(id="cached", startTime="2025-01-09", endTime="2025-01-09")
        client = MagicMock(is_configured=True)
        client.fetch_events = AsyncMock(side_effect=CalendarFetchError("down"))
        cache = MagicMock()
        cache.sync_events = AsyncMock()
        cache.get_events = AsyncMock(return_value=[cached])

        events = await CalendarService(client, cache).get_events_for_week(tenant, dt.date(2025, 1, 6), dt.date(2025, 1, 12))

        assert events == [cached]
        cache.sync_events.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_reads_legacy_cache(self, session_factory) -> None:
        cache = CalendarEventCache(session_factory)
        await cache.sync_events(
            [CalendarEvent(id="x", startTime="2025-01-07", endTime="2025-01-07")],
            "main", dt.date(2025, 1, 6), dt.date(2025, 1, 12),
        )
        service = CalendarService(CalendarEventsClient(base_url=""), cache)
        events = await service.get_events_for_week(None, dt.date(2025, 1, 6), dt.date(2025, 1, 12))
        assert [e.id for e in events] == ["x"]
