"""Local database cache for external calendar busy-time events.

Keeps the last fetched events per tenant so the week grid can still mark
calendar conflicts when the calendar endpoint is unreachable.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, String, delete, select

from slotwise.database import Base, SessionFactory, get_session
from slotwise.logging_config import get_logger
from slotwise.modules.calendar.models import CalendarEvent, CalendarProvider

logger = get_logger(__name__)


class CachedBusyEvent(Base):
    """SQLAlchemy model for locally cached calendar events."""

    __tablename__ = "cached_busy_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(512), nullable=False)
    tenant_key = Column(String(255), nullable=False)
    provider = Column(String(50), nullable=True)
    title = Column(String(1024), nullable=False, default="")
    start_time = Column(String(64), nullable=False)
    end_time = Column(String(64), nullable=False)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=False)
    is_all_day = Column(Boolean, default=False)
    synced_at = Column(DateTime, nullable=False, default=lambda: dt.datetime.now(dt.UTC).replace(tzinfo=None))

    __table_args__ = (
        Index("ix_cached_busy_events_window", "tenant_key", "starts_on"),
        Index("ix_cached_busy_events_event", "event_id", "tenant_key", unique=True),
    )


class CalendarEventCache:
    """Manages the local busy-event cache."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_db(event: CalendarEvent, tenant_key: str) -> dict:
        """Convert a CalendarEvent to a dict for DB insertion."""
        return {
            "event_id": event.id,
            "tenant_key": tenant_key,
            "provider": event.provider.value if event.provider else None,
            "title": event.title,
            "start_time": event.start_time,
            "end_time": event.end_time,
            "starts_on": dt.date.fromisoformat(event.start_time[:10]),
            "ends_on": dt.date.fromisoformat(event.end_time[:10]),
            "is_all_day": event.is_all_day,
            "synced_at": dt.datetime.now(dt.UTC).replace(tzinfo=None),
        }

    @staticmethod
    def _from_db(row: CachedBusyEvent) -> CalendarEvent:
        return CalendarEvent(
            id=row.event_id,
            title=row.title or "",
            start_time=row.start_time,
            end_time=row.end_time,
            provider=CalendarProvider(row.provider) if row.provider else None,
            is_all_day=row.is_all_day or False,
        )

    async def sync_events(
        self,
        events: list[CalendarEvent],
        tenant_key: str,
        window_start: dt.date,
        window_end: dt.date,
    ) -> int:
        """Replace the cached events of a tenant inside a window.

        Returns the number of events cached.
        """
        async with get_session(self._session_factory) as session:
            await session.execute(
                delete(CachedBusyEvent).where(
                    CachedBusyEvent.tenant_key == tenant_key,
                    CachedBusyEvent.starts_on >= window_start,
                    CachedBusyEvent.starts_on <= window_end,
                )
            )

            for event in events:
                db_data = self._to_db(event, tenant_key)
                # Events starting before the window survive the delete above.
                existing = (await session.execute(
                    select(CachedBusyEvent).where(
                        CachedBusyEvent.event_id == db_data["event_id"],
                        CachedBusyEvent.tenant_key == tenant_key,
                    )
                )).scalar_one_or_none()

                if existing:
                    for key, val in db_data.items():
                        setattr(existing, key, val)
                else:
                    session.add(CachedBusyEvent(**db_data))

        logger.info("calendar_cache_synced", tenant=tenant_key, events=len(events))
        return len(events)

    async def get_events(self, tenant_key: str, start: dt.date, end: dt.date) -> list[CalendarEvent]:
        """Cached events of a tenant that touch ``[start, end]``."""
        async with get_session(self._session_factory) as session:
            stmt = (
                select(CachedBusyEvent)
                .where(
                    CachedBusyEvent.tenant_key == tenant_key,
                    CachedBusyEvent.starts_on <= end,
                    CachedBusyEvent.ends_on >= start,
                )
                .order_by(CachedBusyEvent.starts_on, CachedBusyEvent.start_time)
            )
            rows = (await session.execute(stmt)).scalars().all()

        return [self._from_db(row) for row in rows]

    async def clear(self, tenant_key: Optional[str] = None) -> None:
        """Clear the cache (all or for a specific tenant)."""
        async with get_session(self._session_factory) as session:
            stmt = delete(CachedBusyEvent)
            if tenant_key:
                stmt = stmt.where(CachedBusyEvent.tenant_key == tenant_key)
            await session.execute(stmt)
        logger.info("calendar_cache_cleared", tenant=tenant_key or "all")
