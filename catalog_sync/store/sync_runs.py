"""Sync run repository - persists every reported Sync Result."""

from datetime import datetime

from sqlalchemy import select

from catalog_sync.domain.product import new_id
from catalog_sync.infra.logging import get_logger
from catalog_sync.models.sync_run import SyncRunRecord
from catalog_sync.schemas.sync import SyncResult
from catalog_sync.store.sql import SessionFactory

logger = get_logger(__name__)


class SyncRunRepository:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        tenant_id: str,
        source: str,
        result: SyncResult,
        started_at: datetime,
        finished_at: datetime,
        mode: str = "all",
    ) -> SyncRunRecord:
        """Store one finished run."""
        run = SyncRunRecord(
            id=new_id(),
            tenant_id=tenant_id,
            source=source,
            mode=mode,
            success=result.success,
            synced_count=result.synced_count,
            created_count=result.created_count,
            updated_count=result.updated_count,
            skipped_count=result.skipped_count,
            error_count=result.error_count,
            errors=list(result.errors),
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=int((finished_at - started_at).total_seconds() * 1000),
        )
        async with self._session_factory(tenant_id) as session:
            session.add(run)
            await session.flush()

        logger.debug("Sync run recorded", run_id=run.id, tenant_id=tenant_id, source=source)
        return run

    async def list_recent(
        self, tenant_id: str, source: str | None = None, limit: int = 20
    ) -> list[SyncRunRecord]:
        query = select(SyncRunRecord).where(SyncRunRecord.tenant_id == tenant_id)
        if source is not None:
            query = query.where(SyncRunRecord.source == source)
        query = query.order_by(SyncRunRecord.started_at.desc()).limit(limit)

        async with self._session_factory(tenant_id) as session:
            result = await session.execute(query)
            return list(result.scalars().all())
