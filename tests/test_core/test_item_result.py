"""Tests for item results and the Sync Result builder."""

from catalog_sync.core.item_result import (
    CANCELLED_MESSAGE,
    ItemEffect,
    ItemErr,
    ItemErrorKind,
    ItemOk,
    ItemSkipped,
    SyncResultBuilder,
)


class TestSyncResultBuilder:
    """Tests for SyncResultBuilder."""

    def test_empty_batch_succeeds(self):
        result = SyncResultBuilder().build()
        assert result.success is True
        assert result.synced_count == 0
        assert result.errors == []

    def test_counts(self):
        builder = SyncResultBuilder()
        builder.add(ItemOk(ItemEffect.CREATED, "A", "1"))
        builder.add(ItemOk(ItemEffect.UPDATED, "B", "2"))
        builder.add(ItemOk(ItemEffect.UPDATED, "C", "3"))
        builder.add(ItemSkipped("D"))
        builder.add(ItemErr(ItemErrorKind.MAPPING, "odoo", "E", "odoo record has no SKU"))

        result = builder.build()

        assert result.success is False
        assert result.synced_count == 3
        assert result.created_count == 1
        assert result.updated_count == 2
        assert result.skipped_count == 1
        assert result.error_count == 1
        assert result.errors == ["odoo item 'E' (mapping error): odoo record has no SKU"]

    def test_cancel_adds_one_error(self):
        builder = SyncResultBuilder()
        builder.cancel()
        builder.cancel()

        result = builder.build()
        assert result.errors == [CANCELLED_MESSAGE]
        assert result.success is False

    def test_run_level_error(self):
        builder = SyncResultBuilder()
        builder.add_error("Sync stopped after 1 page(s): boom")
        assert builder.build().error_count == 1
