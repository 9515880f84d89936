"""Sync result and sync request schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SyncResult(BaseModel):
    """Outcome of one batch run, the only artifact a run reports.

    Serialized with camelCase keys (``syncedCount``, ``createdCount``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = Field(description="True only when error_count is zero")
    synced_count: int = Field(default=0, description="Items created or updated")
    created_count: int = Field(default=0)
    updated_count: int = Field(default=0)
    skipped_count: int = Field(default=0, description="Items filtered out by a SKU allow-list")
    error_count: int = Field(default=0)
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def failed(cls, message: str) -> "SyncResult":
        """Result for a batch-fatal failure: nothing synced, one error."""
        return cls(success=False, error_count=1, errors=[message])


class SyncFilter(BaseModel):
    """Filter expression for a filtered sync.

    ``query`` is handed to the source adapter as-is (e.g. an Odoo domain or
    Shopify query parameters); ``skus`` is applied after normalization.
    """

    query: dict[str, Any] | list[Any] | None = None
    skus: set[str] | None = None
    max_pages: int | None = Field(default=None, ge=1)

    model_config = {"extra": "forbid"}


def _validate_tenant(v: str) -> str:
    if ".." in v or "/" in v or "\\" in v:
        raise ValueError("Invalid tenant_id format")
    return v


class SyncRequest(BaseModel):
    """Request body for ``POST /sync/{source}``."""

    tenant_id: str = Field(min_length=1, max_length=100, description="Tenant that owns the catalog")
    credentials: dict[str, Any] = Field(description="Source-specific credentials")
    filters: dict[str, Any] | list[Any] | None = Field(default=None, description="Passed to the source adapter")

    model_config = {"extra": "forbid"}

    @field_validator("tenant_id")
    @classmethod
    def validate_tenant_id(cls, v: str) -> str:
        return _validate_tenant(v)


class FilteredSyncRequest(BaseModel):
    """Request body for ``POST /sync/{source}/filtered``."""

    tenant_id: str = Field(min_length=1, max_length=100)
    credentials: dict[str, Any]
    filter: SyncFilter

    model_config = {"extra": "forbid"}

    @field_validator("tenant_id")
    @classmethod
    def validate_tenant_id(cls, v: str) -> str:
        return _validate_tenant(v)


class ConnectionTestRequest(BaseModel):
    credentials: dict[str, Any]

    model_config = {"extra": "forbid"}


class ConnectionTestResponse(BaseModel):
    success: bool
    failure: str | None = Field(default=None, description="Failure class when success is false")
    error: str | None = None
