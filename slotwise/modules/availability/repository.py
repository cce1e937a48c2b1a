"""Persistent store for per-tenant availability settings documents.

Each tenant owns exactly one settings document, stored as JSON and always
rewritten wholesale. Concurrent writers are not coordinated: the last
write wins.
"""

from __future__ import annotations

import datetime as dt
import json
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.exc import SQLAlchemyError

from slotwise.database import Base, SessionFactory, get_session
from slotwise.logging_config import get_logger
from slotwise.modules.availability.models import (
    LEGACY_DOCUMENT_ID,
    AvailabilitySettings,
    BlockedSlot,
    CalendarSync,
    TenantKey,
    UnavailableSlot,
    WorkingHours,
    normalize_working_days,
)

logger = get_logger(__name__)


class SettingsRecord(Base):
    """SQLAlchemy model holding one settings document per tenant."""

    __tablename__ = "availability_settings"

    document_id = Column(String(255), primary_key=True)
    org_id = Column(String(128), nullable=True)
    calendar_id = Column(String(128), nullable=True)
    document = Column(Text, nullable=False, default="{}")
    updated_at = Column(DateTime, nullable=False, default=lambda: dt.datetime.now(dt.UTC).replace(tzinfo=None))


def _document_id(tenant: Optional[TenantKey]) -> str:
    return tenant.document_id if tenant else LEGACY_DOCUMENT_ID


def settings_from_document(document_id: str, data: dict[str, Any]) -> AvailabilitySettings:
    """Build settings from a stored document, defaulting anything malformed."""
    try:
        working_hours = WorkingHours.model_validate(data.get("working_hours") or {})
    except ValidationError:
        logger.warning("invalid_working_hours", document_id=document_id, value=data.get("working_hours"))
        working_hours = WorkingHours()

    try:
        calendar_sync = CalendarSync.model_validate(data.get("calendar_sync") or {})
    except ValidationError:
        calendar_sync = CalendarSync()

    updated_at = None
    if data.get("updated_at"):
        try:
            updated_at = dt.datetime.fromisoformat(data["updated_at"])
        except (TypeError, ValueError):
            updated_at = None

    return AvailabilitySettings(
        id=document_id,
        working_hours=working_hours,
        working_days=normalize_working_days(data.get("working_days")),
        blocked_slots=_valid_entries(BlockedSlot, data.get("blocked_slots"), document_id),
        one_off_unavailable_slots=_valid_entries(
            UnavailableSlot, data.get("one_off_unavailable_slots"), document_id,
        ),
        calendar_sync=calendar_sync,
        updated_at=updated_at,
    )


def _valid_entries(model, raw: Any, document_id: str) -> list:
    entries = []
    for item in raw or []:
        try:
            entries.append(model.model_validate(item))
        except ValidationError:
            logger.warning("invalid_settings_entry", document_id=document_id, kind=model.__name__, value=item)
    return entries


class SettingsRepository:
    """Load and save availability settings documents."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    async def load(self, tenant: Optional[TenantKey] = None) -> AvailabilitySettings:
        """Fetch a tenant's settings; a missing document yields defaults."""
        document_id = _document_id(tenant)
        async with get_session(self._session_factory) as session:
            row = await session.get(SettingsRecord, document_id)
            raw = row.document if row else None

        if raw is None:
            logger.debug("settings_defaulted", document_id=document_id)
            return AvailabilitySettings()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("settings_document_unreadable", document_id=document_id)
            data = {}
        return settings_from_document(document_id, data if isinstance(data, dict) else {})

    async def save(self, settings: AvailabilitySettings, tenant: Optional[TenantKey] = None) -> bool:
        """Write the full settings document, replacing whatever was stored.

        Returns False when the write fails; the caller keeps its previous state.
        """
        document_id = _document_id(tenant)
        now = dt.datetime.now(dt.UTC)
        payload = settings.model_dump(mode="json", exclude={"id"})
        payload["updated_at"] = now.isoformat()

        try:
            async with get_session(self._session_factory) as session:
                row = await session.get(SettingsRecord, document_id)
                if row is None:
                    row = SettingsRecord(document_id=document_id)
                    session.add(row)
                row.org_id = tenant.org_id if tenant else None
                row.calendar_id = tenant.calendar_id if tenant else None
                row.document = json.dumps(payload)
                row.updated_at = now.replace(tzinfo=None)
        except SQLAlchemyError as exc:
            logger.error("settings_save_failed", document_id=document_id, error=str(exc))
            return False

        logger.info("settings_saved", document_id=document_id)
        return True
