"""Catalog Sync Service - the entry point callers use to run a sync.

A run:
1. Resolves the source mapper (unknown source -> failed result)
2. Acquires a source session (busy pair or failed handshake -> failed result)
3. Sweeps pages through the batch processor, bounded by ``max_pages``
4. Releases the session, records the run, returns a single ``SyncResult``

Batch-fatal conditions produce ``SyncResult.failed(...)`` with nothing
synced. A fetch failure after the first page stops the sweep but keeps the
counts of the pages already processed.
"""

import asyncio
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

import pydantic
from sqlalchemy.exc import SQLAlchemyError

from catalog_sync.config import settings
from catalog_sync.core.batch_processor import BatchProcessor
from catalog_sync.core.item_result import SyncResultBuilder
from catalog_sync.core.reconciliation import ReconciliationEngine
from catalog_sync.core.session_controller import ConnectionSessionController, SourceSession
from catalog_sync.domain.audit import AuditTrail
from catalog_sync.domain.errors import (
    CatalogSyncError,
    PersistenceError,
    SessionBusyError,
    SourceConnectionError,
    SourceFetchError,
    UnknownSourceError,
)
from catalog_sync.domain.product import utcnow
from catalog_sync.infra.logging import get_logger, sync_log_context
from catalog_sync.mappers.registry import MapperRegistry, get_mapper_registry
from catalog_sync.schemas.sync import SyncFilter, SyncResult
from catalog_sync.sources.base import ConnectionTestResult
from catalog_sync.sources.registry import SourceAdapterRegistry, get_adapter_registry
from catalog_sync.store.base import CatalogStore
from catalog_sync.store.sync_runs import SyncRunRepository

logger = get_logger(__name__)


class CatalogSyncService:
    """Runs full and filtered syncs from any registered source into a store."""

    def __init__(
        self,
        store: CatalogStore,
        *,
        mapper_registry: MapperRegistry | None = None,
        adapter_registry: SourceAdapterRegistry | None = None,
        sessions: ConnectionSessionController | None = None,
        run_repository: SyncRunRepository | None = None,
        max_pages: int | None = None,
        cost_estimate_ratio: Decimal | None = None,
    ) -> None:
        """Initialize sync service.

        Args:
            store: Catalog store products are reconciled into
            mapper_registry: Source mappers (defaults to the singleton)
            adapter_registry: Source adapters (defaults to the singleton)
            sessions: Session controller (one is built over ``adapter_registry`` if omitted)
            run_repository: Optional sink for finished runs
            max_pages: Page bound for a sweep (defaults to settings)
            cost_estimate_ratio: Cost placeholder ratio (defaults to settings)
        """
        self.store = store
        self.mappers = mapper_registry or get_mapper_registry()
        self.adapters = adapter_registry or get_adapter_registry()
        self.sessions = sessions or ConnectionSessionController(self.adapters)
        self.run_repository = run_repository
        self.max_pages = max_pages or settings.sync_max_pages
        self.cost_estimate_ratio = (
            cost_estimate_ratio if cost_estimate_ratio is not None else settings.cost_estimate_ratio
        )
        self.engine = ReconciliationEngine(store)

    def is_supported(self, source: str) -> bool:
        return self.mappers.is_registered(source) and self.adapters.is_registered(source)

    async def test_connection(self, source: str, credentials: Any) -> ConnectionTestResult:
        """Run the source handshake without syncing anything.

        Raises:
            UnknownSourceError: If the source is not registered
        """
        adapter = self.adapters.create(source)
        try:
            return await adapter.test_connection(credentials)
        finally:
            await adapter.close()

    async def sync_all(
        self,
        tenant_id: str,
        source: str,
        credentials: Any,
        filters: Any = None,
        *,
        cancel: asyncio.Event | None = None,
        audit: AuditTrail | None = None,
    ) -> SyncResult:
        """Sync every product the source returns for ``filters``."""
        return await self._run(
            tenant_id,
            source,
            credentials,
            query=filters,
            skus=None,
            max_pages=self.max_pages,
            mode="all",
            cancel=cancel,
            audit=audit,
        )

    async def sync_filtered(
        self,
        tenant_id: str,
        source: str,
        credentials: Any,
        filter_expr: SyncFilter | dict[str, Any],
        *,
        cancel: asyncio.Event | None = None,
        audit: AuditTrail | None = None,
    ) -> SyncResult:
        """Sync the subset of products selected by ``filter_expr``.

        ``filter_expr.query`` narrows what the source returns;
        ``filter_expr.skus`` narrows what is written, counting the rest as
        skipped.
        """
        if not isinstance(filter_expr, SyncFilter):
            try:
                filter_expr = SyncFilter.model_validate(filter_expr)
            except pydantic.ValidationError as e:
                logger.error(
                    "Sync rejected: invalid filter",
                    tenant_id=tenant_id,
                    source=source,
                    error_count=e.error_count(),
                )
                return SyncResult.failed(f"Invalid sync filter: {_describe_filter_errors(e)}")

        return await self._run(
            tenant_id,
            source,
            credentials,
            query=filter_expr.query,
            skus=filter_expr.skus,
            max_pages=filter_expr.max_pages or self.max_pages,
            mode="filtered",
            cancel=cancel,
            audit=audit,
        )

    async def _run(
        self,
        tenant_id: str,
        source: str,
        credentials: Any,
        *,
        query: Any,
        skus: set[str] | None,
        max_pages: int,
        mode: str,
        cancel: asyncio.Event | None,
        audit: AuditTrail | None,
    ) -> SyncResult:
        started_at = utcnow()
        start = time.perf_counter()
        log = logger.bind(tenant_id=tenant_id, source=source, mode=mode)
        log.info("Sync started", max_pages=max_pages, sku_filter=len(skus) if skus is not None else None)

        if audit is None:
            audit = AuditTrail(changed_by=f"sync:{source}")

        try:
            mapper = self.mappers.get(source, cost_estimate_ratio=self.cost_estimate_ratio)
            processor = BatchProcessor(mapper, self.engine)
            builder = SyncResultBuilder()

            with sync_log_context(tenant_id, source, mode=mode):
                async with self.sessions.session(tenant_id, source, credentials) as session:
                    await self._sweep(
                        session,
                        processor,
                        builder,
                        query=query,
                        skus=skus,
                        max_pages=max_pages,
                        cancel=cancel,
                        audit=audit,
                    )
            result = builder.build()

        except SourceConnectionError as e:
            log.error("Sync aborted: connection failed", failure=e.failure.value, error=e.user_message)
            result = SyncResult.failed(e.user_message)
        except SourceFetchError as e:
            log.error("Sync aborted: first page fetch failed", error=e.message)
            result = SyncResult.failed(e.message)
        except (SessionBusyError, UnknownSourceError) as e:
            log.error("Sync rejected", error=str(e))
            result = SyncResult.failed(str(e))
        except CatalogSyncError as e:
            log.error("Sync aborted", error=str(e), error_type=type(e).__name__)
            result = SyncResult.failed(str(e))

        duration_ms = int((time.perf_counter() - start) * 1000)
        log.info(
            "Sync finished",
            success=result.success,
            synced=result.synced_count,
            created=result.created_count,
            updated=result.updated_count,
            skipped=result.skipped_count,
            errors=result.error_count,
            duration_ms=duration_ms,
        )

        await self._record_run(tenant_id, source, result, started_at, utcnow(), mode)
        return result

    async def _sweep(
        self,
        session: SourceSession,
        processor: BatchProcessor,
        builder: SyncResultBuilder,
        *,
        query: Any,
        skus: set[str] | None,
        max_pages: int,
        cancel: asyncio.Event | None,
        audit: AuditTrail | None,
    ) -> None:
        cursor: str | None = None
        pages = 0

        while pages < max_pages:
            try:
                page = await session.fetch_page(query, cursor)
            except SourceFetchError as e:
                if pages == 0:
                    raise
                logger.warning(
                    "Sync stopped: page fetch failed",
                    tenant_id=session.tenant_id,
                    source=session.source,
                    pages=pages,
                    error=e.message,
                )
                builder.add_error(f"Sync stopped after {pages} page(s): {e.message}")
                return

            pages += 1
            await processor.process(
                page.items,
                session.tenant_id,
                skus=skus,
                cancel=cancel,
                audit=audit,
                builder=builder,
            )

            if builder.cancelled or not page.has_more:
                return
            cursor = page.next_cursor

        logger.warning(
            "Sync stopped at page limit",
            tenant_id=session.tenant_id,
            source=session.source,
            max_pages=max_pages,
        )

    async def _record_run(
        self,
        tenant_id: str,
        source: str,
        result: SyncResult,
        started_at: datetime,
        finished_at: datetime,
        mode: str,
    ) -> None:
        if self.run_repository is None:
            return
        try:
            await self.run_repository.record(tenant_id, source, result, started_at, finished_at, mode)
        except (SQLAlchemyError, PersistenceError) as e:
            # The result is still returned to the caller
            logger.error("Failed to record sync run", tenant_id=tenant_id, source=source, error=str(e))


def _describe_filter_errors(error: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'filter'}: {item['msg']}"
        for item in error.errors()
    )
