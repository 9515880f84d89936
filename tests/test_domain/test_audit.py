"""Tests for audit trails."""

from catalog_sync.domain.audit import AuditAction, AuditTrail


class TestAuditTrail:
    """Tests for AuditTrail."""

    def test_record_stamps_actor_and_reason(self):
        trail = AuditTrail("sync:odoo", reason="nightly")

        entry = trail.record("p-1", AuditAction.CREATED, None, {"sku": "A"})

        assert entry.changed_by == "sync:odoo"
        assert entry.reason == "nightly"
        assert entry.old_values == {}
        assert trail.records == [entry]

    def test_sink_receives_each_record(self):
        received = []
        trail = AuditTrail("user-1", sink=received.append)

        trail.record("p-1", AuditAction.UPDATED)
        trail.record("p-2", AuditAction.UPDATED)

        assert [r.product_id for r in received] == ["p-1", "p-2"]

    def test_to_dict(self):
        data = AuditTrail("user-1").record("p-1", AuditAction.PRICE_CHANGED).to_dict()
        assert data["action"] == "price_changed"
        assert "timestamp" in data
