"""Structured logging with structlog.

JSON lines outside development, a colored console locally. Source
credentials travel through the sync path as plain dicts, so every event is
passed through ``redact_secrets`` before it is rendered.
"""

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from catalog_sync.config import settings

REDACTED = "***"

SECRET_KEYS = frozenset(
    {
        "password",
        "access_token",
        "api_key",
        "api_secret",
        "credentials",
        "authorization",
        "x-shopify-access-token",
        "x-amz-access-token",
    }
)

NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in SECRET_KEYS else _redact(item)
            for key, item in value.items()
        }
    if type(value) in (list, tuple):
        return type(value)(_redact(item) for item in value)
    return value


def redact_secrets(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """structlog processor masking credential values, including nested ones."""
    return _redact(event_dict)


def _processors(use_json: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if use_json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging() -> None:
    """Configure structlog and route stdlib logging to stdout."""
    level = logging.getLevelName(settings.log_level.upper())
    use_json = settings.log_json and settings.environment != "dev"

    structlog.configure(
        processors=_processors(use_json),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Return a structlog logger, optionally bound to ``initial_context``."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def sync_log_context(tenant_id: str, source: str, **extra: Any) -> Iterator[None]:
    """Attach tenant and source to every event logged inside the block."""
    tokens = structlog.contextvars.bind_contextvars(tenant_id=tenant_id, source=source, **extra)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
