"""Async SQLAlchemy engine and session handling for the slotwise stores.

Settings documents, appointments, time slots and the busy-event cache all
live in one database (SQLite via aiosqlite unless ``DATABASE_URL`` says
otherwise). Repositories open short transactional scopes with
:func:`get_session`; tests hand them a factory bound to their own engine.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import MetaData
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from slotwise.config import get_settings
from slotwise.logging_config import get_logger

logger = get_logger(__name__)

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

SessionFactory = async_sessionmaker[AsyncSession]


class Base(DeclarativeBase):
    """Declarative base shared by every slotwise table."""

    metadata = MetaData(naming_convention=convention)


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[SessionFactory] = None


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _ensure_sqlite_directory(settings.database_url)
        _engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    return _engine


def get_session_factory() -> SessionFactory:
    """Return the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session(factory: Optional[SessionFactory] = None) -> AsyncGenerator[AsyncSession, None]:
    """Transactional scope: commit on normal exit, roll back and re-raise on error."""
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create every slotwise table that does not exist yet."""
    # Table modules register themselves on Base.metadata when imported.
    import slotwise.modules.availability.repository  # noqa: F401
    import slotwise.modules.booking.repository  # noqa: F401
    import slotwise.modules.calendar.cache  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", tables=sorted(Base.metadata.tables))


async def close_db() -> None:
    """Dispose of the engine and forget the singletons."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("database_closed")
