"""Fault-Tolerant Batch Processor.

Drives the reconciliation engine over a page of native records, one item
at a time. Any failure inside an item becomes an ``ItemErr`` tagged with the
stage it happened in; the next item is still processed.
"""

import asyncio
import time
from collections.abc import Sequence
from typing import Any

from catalog_sync.core.item_result import (
    ItemErr,
    ItemErrorKind,
    ItemOk,
    ItemResult,
    ItemSkipped,
    SyncResultBuilder,
)
from catalog_sync.core.reconciliation import ReconciliationEngine
from catalog_sync.domain.audit import AuditTrail
from catalog_sync.domain.errors import (
    MappingError,
    PersistenceError,
    SyncCancelled,
    ValidationError,
)
from catalog_sync.infra.logging import get_logger
from catalog_sync.mappers.base import SourceMapper

logger = get_logger(__name__)

UNKNOWN_IDENTIFIER = "<unknown>"


class BatchProcessor:
    """Maps and reconciles native records sequentially.

    Items are never processed concurrently: a source that returns the same
    SKU twice in one page must see the second record update the product the
    first one created.

    Attributes:
        mapper: Mapper for the source the records came from
        engine: Reconciliation engine bound to a catalog store
    """

    def __init__(self, mapper: SourceMapper[Any], engine: ReconciliationEngine) -> None:
        self.mapper = mapper
        self.engine = engine

    @property
    def source(self) -> str:
        return self.mapper.source

    async def process(
        self,
        records: Sequence[Any],
        tenant_id: str,
        *,
        skus: set[str] | None = None,
        cancel: asyncio.Event | None = None,
        audit: AuditTrail | None = None,
        builder: SyncResultBuilder | None = None,
    ) -> SyncResultBuilder:
        """Process every record and fold the outcomes into ``builder``.

        Args:
            records: Raw native records from one page
            tenant_id: Owning tenant
            skus: Optional allow-list; records mapping to other SKUs are skipped
            cancel: Event that stops the batch before the next write
            audit: Optional audit trail for created/updated records
            builder: Accumulator to continue (a new one is created if omitted)

        Returns:
            The builder, so callers can chain pages
        """
        builder = builder if builder is not None else SyncResultBuilder()
        start = time.perf_counter()
        log = logger.bind(tenant_id=tenant_id, source=self.source)

        for index, raw in enumerate(records):
            if cancel is not None and cancel.is_set():
                log.info("Batch cancelled", processed=index, remaining=len(records) - index)
                builder.cancel()
                break

            try:
                result = await self.process_item(raw, tenant_id, skus=skus, cancel=cancel, audit=audit)
            except SyncCancelled:
                log.info("Batch cancelled before write", processed=index)
                builder.cancel()
                break

            builder.add(result)
            if isinstance(result, ItemErr):
                log.warning(
                    "Item sync failed",
                    kind=result.kind.value,
                    identifier=result.identifier,
                    error=result.message,
                )

        log.info(
            "Batch processed",
            items=len(records),
            created=builder.created,
            updated=builder.updated,
            skipped=builder.skipped,
            errors=len(builder.errors),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return builder

    async def process_item(
        self,
        raw: Any,
        tenant_id: str,
        *,
        skus: set[str] | None = None,
        cancel: asyncio.Event | None = None,
        audit: AuditTrail | None = None,
    ) -> ItemResult:
        """Map and reconcile one record.

        Raises:
            SyncCancelled: If ``cancel`` is set before the item's write
        """
        identifier = self.mapper.identify(raw) or UNKNOWN_IDENTIFIER

        try:
            dto = self.mapper.map(raw)
        except MappingError as e:
            return ItemErr(ItemErrorKind.MAPPING, self.source, e.identifier or identifier, e.message)
        except Exception as e:
            logger.exception("Unexpected mapping failure", source=self.source, identifier=identifier)
            return ItemErr(ItemErrorKind.MAPPING, self.source, identifier, str(e) or type(e).__name__)

        if skus is not None and dto.sku not in skus:
            return ItemSkipped(dto.sku)

        label = dto.label
        try:
            result: ItemOk = await self.engine.reconcile(dto, tenant_id, audit=audit, cancel=cancel)
        except SyncCancelled:
            raise
        except ValidationError as e:
            return ItemErr(ItemErrorKind.VALIDATION, self.source, label, e.message)
        except PersistenceError as e:
            return ItemErr(ItemErrorKind.PERSISTENCE, self.source, label, str(e))
        except Exception as e:
            logger.exception("Unexpected persistence failure", source=self.source, sku=dto.sku)
            return ItemErr(ItemErrorKind.PERSISTENCE, self.source, label, str(e) or type(e).__name__)

        return result
