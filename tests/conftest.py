"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SLOTWISE_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SLOTWISE_LOG_LEVEL", "WARNING")
os.environ.setdefault("CALENDAR_API_BASE_URL", "")

from slotwise.config import Settings
from slotwise.database import Base

# Register every table on Base.metadata.
import slotwise.modules.availability.repository  # noqa: E402,F401
import slotwise.modules.booking.repository  # noqa: E402,F401
import slotwise.modules.calendar.cache  # noqa: E402,F401

from slotwise.modules.availability.models import AvailabilitySettings, TenantKey


@pytest.fixture
def settings() -> Settings:
    """Return test settings."""
    return Settings(
        slotwise_env="test",
        database_url="sqlite+aiosqlite:///:memory:",
        slotwise_log_level="WARNING",
        _env_file=None,
    )


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def tenant() -> TenantKey:
    return TenantKey(org_id="acme", calendar_id="primary")


@pytest.fixture
def availability() -> AvailabilitySettings:
    """Default Monday-Friday 09:00-17:00 settings."""
    return AvailabilitySettings()
