"""Tests for sync request and result schemas."""

import pydantic
import pytest

from catalog_sync.schemas.sync import FilteredSyncRequest, SyncFilter, SyncRequest, SyncResult


class TestSyncResult:
    """Tests for SyncResult."""

    def test_camel_case_dump(self):
        data = SyncResult(success=True, synced_count=2, created_count=2).model_dump(by_alias=True)
        assert data["syncedCount"] == 2
        assert data["createdCount"] == 2
        assert "synced_count" not in data

    def test_populate_by_alias(self):
        assert SyncResult.model_validate({"success": True, "errorCount": 0}).error_count == 0

    def test_failed(self):
        result = SyncResult.failed("Connection to odoo timed out")
        assert result.success is False
        assert result.synced_count == 0
        assert result.error_count == 1


class TestSyncRequests:
    """Tests for sync request bodies."""

    @pytest.mark.parametrize("tenant", ["../x", "a/b", "a\\b"])
    def test_tenant_path_characters_rejected(self, tenant):
        with pytest.raises(pydantic.ValidationError):
            SyncRequest(tenant_id=tenant, credentials={})

    def test_filters_accept_list_or_dict(self):
        assert SyncRequest(tenant_id="t", credentials={}, filters=[["a", "=", 1]]).filters == [["a", "=", 1]]
        assert SyncRequest(tenant_id="t", credentials={}, filters={"status": "active"}).filters == {
            "status": "active"
        }

    def test_filter_skus_become_set(self):
        request = FilteredSyncRequest(
            tenant_id="t", credentials={}, filter={"skus": ["A", "A", "B"]}
        )
        assert request.filter.skus == {"A", "B"}

    def test_max_pages_positive(self):
        with pytest.raises(pydantic.ValidationError):
            SyncFilter(max_pages=0)
