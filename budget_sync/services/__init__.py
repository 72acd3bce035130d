"""Services package."""

from budget_sync.services.store import (
    AuditSinkInterface,
    DuplicateError,
    InMemoryAuditSink,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)
from budget_sync.services.sync import (
    FlushReport,
    Outbox,
    PendingWrite,
    SheetsSyncClient,
    SyncResponse,
)

__all__ = [
    # Local store
    "AuditSinkInterface",
    "DuplicateError",
    "InMemoryAuditSink",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "StoreError",
    # Remote sync
    "FlushReport",
    "Outbox",
    "PendingWrite",
    "SheetsSyncClient",
    "SyncResponse",
]
