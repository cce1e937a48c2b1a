"""Structured logging for slotwise, built on structlog.

Call :func:`setup_logging` once at process start (the CLI does this).
Module code only ever needs :func:`get_logger`; services bind the tenant
being worked on with :func:`tenant_context` so every event inside carries it.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from slotwise.config import get_settings

# Chatty third-party loggers that only matter when debugging.
_QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore", "sqlalchemy.engine")


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger from settings."""
    settings = get_settings()
    level = getattr(logging, settings.slotwise_log_level.upper(), logging.INFO)

    if settings.slotwise_env == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named structured logger."""
    return structlog.get_logger(name)


@contextmanager
def tenant_context(document_id: Optional[str]) -> Iterator[None]:
    """Bind ``tenant=<document id>`` to every log event in the block."""
    with structlog.contextvars.bound_contextvars(tenant=document_id):
        yield
