"""Core sync engine - reconciliation, batch processing and session control."""

from catalog_sync.core.batch_processor import BatchProcessor
from catalog_sync.core.item_result import (
    ItemEffect,
    ItemErr,
    ItemErrorKind,
    ItemOk,
    ItemResult,
    ItemSkipped,
    SyncResultBuilder,
)
from catalog_sync.core.reconciliation import ReconciliationEngine
from catalog_sync.core.session_controller import (
    ConnectionSessionController,
    SessionState,
    SourceSession,
)

__all__ = [
    "BatchProcessor",
    "ConnectionSessionController",
    "ItemEffect",
    "ItemErr",
    "ItemErrorKind",
    "ItemOk",
    "ItemResult",
    "ItemSkipped",
    "ReconciliationEngine",
    "SessionState",
    "SourceSession",
    "SyncResultBuilder",
]
