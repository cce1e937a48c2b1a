"""Stores for appointments and bookable time slots."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Index, String, select
from sqlalchemy.exc import SQLAlchemyError

from slotwise.database import Base, SessionFactory, get_session
from slotwise.logging_config import get_logger
from slotwise.modules.availability.models import TenantKey
from slotwise.modules.booking.models import (
    Appointment,
    AppointmentStatus,
    LocationDetails,
    LocationType,
    TimeSlot,
    TimeSlotStatus,
)

logger = get_logger(__name__)


def _tenant_key(tenant: Optional[TenantKey]) -> Optional[str]:
    return tenant.document_id if tenant else None


def _same_tenant(column, tenant_key: Optional[str]):
    return column.is_(None) if tenant_key is None else column == tenant_key


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)


class AppointmentRecord(Base):
    """SQLAlchemy model for appointments."""

    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    tenant_key = Column(String(255), nullable=True)
    slot_id = Column(String(64), nullable=False, default="")
    email = Column(String(320), nullable=False)
    location_type = Column(String(32), nullable=False, default=LocationType.OTHER.value)
    location_details = Column(String(1024), nullable=True)
    status = Column(String(16), nullable=False, default=AppointmentStatus.PENDING.value)
    appointment_date = Column(Date, nullable=False)
    date = Column(Date, nullable=True)
    time = Column(String(5), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    expires_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_appointments_tenant_date", "tenant_key", "appointment_date"),
    )


class TimeSlotRecord(Base):
    """SQLAlchemy model for stored bookable time slots."""

    __tablename__ = "time_slots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    tenant_key = Column(String(255), nullable=True)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    status = Column(String(16), nullable=False, default=TimeSlotStatus.AVAILABLE.value)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_time_slots_tenant_date", "tenant_key", "date"),
    )


class AppointmentRepository:
    """Read and record appointments."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _from_db(row: AppointmentRecord) -> Appointment:
        return Appointment(
            id=row.id,
            slot_id=row.slot_id or "",
            email=row.email,
            location_details=LocationDetails(type=row.location_type, details=row.location_details),
            status=row.status,
            appointment_date=row.appointment_date,
            date=row.date,
            time=row.time,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    async def list(self, tenant: Optional[TenantKey] = None) -> list[Appointment]:
        """All appointments of a tenant, oldest day first."""
        stmt = (
            select(AppointmentRecord)
            .where(_same_tenant(AppointmentRecord.tenant_key, _tenant_key(tenant)))
            .order_by(AppointmentRecord.appointment_date, AppointmentRecord.time)
        )
        async with get_session(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._from_db(row) for row in rows]

    async def create(self, appointment: Appointment, tenant: Optional[TenantKey] = None) -> Appointment:
        async with get_session(self._session_factory) as session:
            session.add(AppointmentRecord(
                id=appointment.id,
                tenant_key=_tenant_key(tenant),
                slot_id=appointment.slot_id,
                email=appointment.email,
                location_type=appointment.location_details.type.value,
                location_details=appointment.location_details.details,
                status=appointment.status.value,
                appointment_date=appointment.appointment_date,
                date=appointment.date,
                time=appointment.time,
                created_at=appointment.created_at.replace(tzinfo=None),
                expires_at=appointment.expires_at.replace(tzinfo=None) if appointment.expires_at else None,
            ))
        logger.info("appointment_created", appointment_id=appointment.id, status=appointment.status.value)
        return appointment


class TimeSlotRepository:
    """Read and maintain the flat list of bookable time slots."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _from_db(row: TimeSlotRecord) -> TimeSlot:
        return TimeSlot(id=row.id, date=row.date, time=row.time, status=row.status)

    async def list(self, tenant: Optional[TenantKey] = None) -> list[TimeSlot]:
        """Slots of a tenant sorted by ``(date, time)``.

        A tenant without slots of its own sees the untenanted legacy slots.
        """
        async with get_session(self._session_factory) as session:
            rows = await self._rows(session, _tenant_key(tenant))
            if not rows and tenant is not None:
                rows = await self._rows(session, None)
        return [self._from_db(row) for row in rows]

    @staticmethod
    async def _rows(session, tenant_key: Optional[str]) -> list[TimeSlotRecord]:
        stmt = (
            select(TimeSlotRecord)
            .where(_same_tenant(TimeSlotRecord.tenant_key, tenant_key))
            .order_by(TimeSlotRecord.date, TimeSlotRecord.time)
        )
        return list((await session.execute(stmt)).scalars().all())

    async def create(self, slot: TimeSlot, tenant: Optional[TenantKey] = None) -> TimeSlot:
        return (await self.bulk_create([slot], tenant))[0]

    async def bulk_create(self, slots: Iterable[TimeSlot], tenant: Optional[TenantKey] = None) -> list[TimeSlot]:
        created = list(slots)
        async with get_session(self._session_factory) as session:
            for slot in created:
                session.add(TimeSlotRecord(
                    id=slot.id,
                    tenant_key=_tenant_key(tenant),
                    date=slot.date,
                    time=slot.time,
                    status=slot.status.value,
                ))
        logger.info("time_slots_created", count=len(created), tenant=_tenant_key(tenant))
        return created

    async def mark_booked(self, slot_id: str) -> TimeSlot:
        """Flip a slot to booked once its booking is confirmed."""
        async with get_session(self._session_factory) as session:
            row = await session.get(TimeSlotRecord, slot_id)
            if row is None:
                raise LookupError(f"Time slot not found: {slot_id}")
            row.status = TimeSlotStatus.BOOKED.value
            row.updated_at = _utcnow()
            slot = self._from_db(row)
        logger.info("time_slot_booked", slot_id=slot_id)
        return slot

    async def delete(self, slot_id: str) -> bool:
        try:
            async with get_session(self._session_factory) as session:
                row = await session.get(TimeSlotRecord, slot_id)
                if row is None:
                    return False
                await session.delete(row)
        except SQLAlchemyError as exc:
            logger.error("time_slot_delete_failed", slot_id=slot_id, error=str(exc))
            return False
        return True
