"""
Data Models Package

This package contains all Pydantic models used in Budget Sync.
"""

from budget_sync.models.ledger import (
    Category,
    LedgerEntry,
    PaymentMethod,
    Transaction,
    new_remote_id,
)
from budget_sync.models.remote import (
    Envelope,
    RawEnvelope,
    RemoteCategory,
    RemotePaymentMethod,
    RemoteTransaction,
)
from budget_sync.models.report import (
    BreakdownEntry,
    CatalogResult,
    MonthlyReport,
    SummaryResult,
    SyncErrorKind,
    SyncOutcome,
)
from budget_sync.models.audit import (
    SyncEvent,
    SyncEventBuilder,
    SyncEventType,
    SyncSeverity,
)

__all__ = [
    # Local models
    "Category",
    "LedgerEntry",
    "PaymentMethod",
    "Transaction",
    "new_remote_id",
    # Wire models
    "Envelope",
    "RawEnvelope",
    "RemoteCategory",
    "RemotePaymentMethod",
    "RemoteTransaction",
    # Reports
    "BreakdownEntry",
    "CatalogResult",
    "MonthlyReport",
    "SummaryResult",
    "SyncErrorKind",
    "SyncOutcome",
    # Sync audit
    "SyncEvent",
    "SyncEventBuilder",
    "SyncEventType",
    "SyncSeverity",
]
