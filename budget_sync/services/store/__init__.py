"""
Local Store Package

Provides the abstract store interface and an in-memory implementation.
"""

from budget_sync.services.store.interface import (
    AuditSinkInterface,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)
from budget_sync.services.store.memory import (
    InMemoryAuditSink,
    InMemoryLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditSinkInterface",
    "LedgerStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StoreError",
    # In-memory implementation
    "InMemoryAuditSink",
    "InMemoryLedgerStore",
]
