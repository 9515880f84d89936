"""Sync endpoints.

Every sync endpoint answers 200 with a camelCase ``SyncResult``; batch
failures are reported inside the result, not as HTTP errors.
"""

from fastapi import APIRouter

from catalog_sync.api.deps import SyncService, ValidSource
from catalog_sync.infra.logging import get_logger
from catalog_sync.schemas.sync import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    FilteredSyncRequest,
    SyncRequest,
    SyncResult,
)

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/sources/{source}/test-connection",
    response_model=ConnectionTestResponse,
    summary="Verify source credentials",
)
async def test_connection(
    request: ConnectionTestRequest,
    source: ValidSource,
    service: SyncService,
) -> ConnectionTestResponse:
    result = await service.test_connection(source, request.credentials)
    return ConnectionTestResponse(
        success=result.success,
        failure=result.failure.value if result.failure else None,
        error=result.error,
    )


@router.post(
    "/sync/{source}",
    response_model=SyncResult,
    summary="Sync all products from a source",
)
async def sync_all(
    request: SyncRequest,
    source: ValidSource,
    service: SyncService,
) -> SyncResult:
    logger.info("Sync requested", tenant_id=request.tenant_id, source=source)
    return await service.sync_all(
        request.tenant_id,
        source,
        request.credentials,
        request.filters,
    )


@router.post(
    "/sync/{source}/filtered",
    response_model=SyncResult,
    summary="Sync a filtered subset of products from a source",
)
async def sync_filtered(
    request: FilteredSyncRequest,
    source: ValidSource,
    service: SyncService,
) -> SyncResult:
    logger.info(
        "Filtered sync requested",
        tenant_id=request.tenant_id,
        source=source,
        sku_filter=len(request.filter.skus) if request.filter.skus is not None else None,
    )
    return await service.sync_filtered(
        request.tenant_id,
        source,
        request.credentials,
        request.filter,
    )
