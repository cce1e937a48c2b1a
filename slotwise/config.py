"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings sourced from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────
    slotwise_env: str = "development"
    slotwise_log_level: str = "INFO"

    # ── Database ─────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///data/slotwise.db"

    # ── Availability ─────────────────────────────────────────────────
    timezone: str = "UTC"
    slot_duration_minutes: int = 30
    booking_display_limit: int = 8

    # ── Calendar busy-time API ───────────────────────────────────────
    calendar_api_base_url: str = ""
    calendar_api_timeout: float = 10.0
    calendar_api_max_attempts: int = 3

    # ── CLI defaults ─────────────────────────────────────────────────
    default_org_id: str = ""
    default_calendar_id: str = ""

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone {value!r}")
        return value

    @field_validator("slot_duration_minutes", "calendar_api_max_attempts")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    # ── Derived ──────────────────────────────────────────────────────
    @property
    def zone(self) -> ZoneInfo:
        """Timezone that slot labels are interpreted in."""
        return ZoneInfo(self.timezone)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
