"""Infrastructure - Database and logging."""

from catalog_sync.infra.database import close_db_engine, get_db_session
from catalog_sync.infra.logging import get_logger, setup_logging, sync_log_context

__all__ = [
    "get_db_session",
    "close_db_engine",
    "setup_logging",
    "get_logger",
    "sync_log_context",
]
