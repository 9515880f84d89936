"""Audit records emitted by product transitions.

The aggregate never persists audit data. A caller that wants a trail
passes an ``AuditTrail`` into a transition and decides what to do with the
collected records (log them, store them, forward them to a sink).
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RENAMED = "renamed"
    DESCRIPTION_CHANGED = "description_changed"
    STATUS_CHANGED = "status_changed"
    PRICE_CHANGED = "price_changed"
    STOCK_CHANGED = "stock_changed"
    VARIANT_ADDED = "variant_added"
    VARIANT_REMOVED = "variant_removed"
    IMAGE_ADDED = "image_added"
    IMAGE_REMOVED = "image_removed"
    PRIMARY_IMAGE_SET = "primary_image_set"


@dataclass(frozen=True)
class AuditRecord:
    """Immutable description of one product change."""

    product_id: str
    action: AuditAction
    old_values: dict[str, Any]
    new_values: dict[str, Any]
    changed_by: str
    reason: str | None
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "action": self.action.value,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "changed_by": self.changed_by,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class AuditTrail:
    """Collects audit records for one actor and reason.

    Attributes:
        changed_by: Actor recorded on every entry (user id or ``sync:<source>``)
        reason: Optional free-text reason
        sink: Optional callable receiving each record as it is emitted
        records: Records emitted so far, oldest first
    """

    changed_by: str
    reason: str | None = None
    sink: Callable[[AuditRecord], None] | None = None
    records: list[AuditRecord] = field(default_factory=list)

    def record(
        self,
        product_id: str,
        action: AuditAction,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditRecord:
        entry = AuditRecord(
            product_id=product_id,
            action=action,
            old_values=old_values or {},
            new_values=new_values or {},
            changed_by=self.changed_by,
            reason=self.reason,
            timestamp=datetime.now(timezone.utc),
        )
        self.records.append(entry)
        if self.sink is not None:
            self.sink(entry)
        return entry
