"""Async PostgreSQL access for the catalog store.

The ``products`` tables are shared by every tenant and guarded by Row Level
Security. Each transaction opened through ``get_db_session`` sets the
``app.current_tenant`` setting the RLS policies read, so a query can only
see the rows of the tenant the session was opened for.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog_sync.config import settings
from catalog_sync.infra.logging import get_logger

logger = get_logger(__name__)

TENANT_SETTING = "app.current_tenant"

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options() -> dict[str, Any]:
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_pool_max_overflow,
        "pool_pre_ping": True,
        # Sync runs can hold a connection for minutes; recycle before server idle timeouts
        "pool_recycle": 1800,
        "echo": settings.debug,
    }


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        options = _engine_options()
        logger.info(
            "Catalog database engine created",
            host=settings.db_host,
            database=settings.db_name,
            pool_size=options["pool_size"],
        )
        _engine = create_async_engine(settings.database_url, **options)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def set_tenant_context(session: AsyncSession, tenant_id: str) -> None:
    """Scope the current transaction to ``tenant_id`` for RLS policies."""
    await session.execute(
        text(f"SELECT set_config('{TENANT_SETTING}', :tenant_id, true)"),
        {"tenant_id": tenant_id},
    )


@asynccontextmanager
async def get_db_session(tenant_id: str | None = None) -> AsyncIterator[AsyncSession]:
    """Open one transaction, optionally scoped to a tenant.

    Commits when the block exits normally; any exception rolls the
    transaction back and propagates.

    Example:
        async with get_db_session("tenant-a") as session:
            await session.execute(select(ProductRecord))
    """
    async with get_session_factory()() as session:
        try:
            if tenant_id:
                await set_tenant_context(session, tenant_id)
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            logger.debug("Catalog transaction rolled back", tenant_id=tenant_id)
            raise


async def create_schema() -> None:
    """Create the catalog tables that do not exist yet (local development)."""
    from catalog_sync.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Catalog schema ensured", tables=sorted(Base.metadata.tables))


async def close_db_engine() -> None:
    """Dispose of the engine; the next ``get_engine`` call builds a new one."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Catalog database engine disposed")
    _engine = None
    _session_factory = None


async def verify_db_connection() -> bool:
    """Return True if the catalog database answers a trivial query."""
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Catalog database unreachable", error=str(e))
        return False
    return True
