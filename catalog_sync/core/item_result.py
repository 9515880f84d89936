"""Per-item results and their fold into a Sync Result.

Every item a batch touches ends as exactly one of ``ItemOk``, ``ItemErr``
or ``ItemSkipped``. Only batch-fatal conditions use exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum

from catalog_sync.schemas.sync import SyncResult

CANCELLED_MESSAGE = "Sync cancelled before all items were processed"


class ItemEffect(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class ItemErrorKind(str, Enum):
    MAPPING = "mapping"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class ItemOk:
    effect: ItemEffect
    sku: str
    product_id: str
    changed_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemErr:
    kind: ItemErrorKind
    source: str
    identifier: str
    message: str

    def describe(self) -> str:
        return f"{self.source} item '{self.identifier}' ({self.kind.value} error): {self.message}"


@dataclass(frozen=True)
class ItemSkipped:
    """Item filtered out by a SKU allow-list; neither synced nor failed."""

    sku: str


ItemResult = ItemOk | ItemErr | ItemSkipped


@dataclass
class SyncResultBuilder:
    """Accumulates item results across one or more pages."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    def add(self, result: ItemResult) -> None:
        if isinstance(result, ItemOk):
            if result.effect is ItemEffect.CREATED:
                self.created += 1
            else:
                self.updated += 1
        elif isinstance(result, ItemErr):
            self.errors.append(result.describe())
        else:
            self.skipped += 1

    def add_error(self, message: str) -> None:
        """Record a run-level error that is not tied to one item."""
        self.errors.append(message)

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self.errors.append(CANCELLED_MESSAGE)

    @property
    def synced(self) -> int:
        return self.created + self.updated

    def build(self) -> SyncResult:
        return SyncResult(
            success=not self.errors,
            synced_count=self.synced,
            created_count=self.created,
            updated_count=self.updated,
            skipped_count=self.skipped,
            error_count=len(self.errors),
            errors=list(self.errors),
        )
