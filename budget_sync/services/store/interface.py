"""
Abstract Store Interface

DESIGN DECISION: The ledger flows talk to an abstract store, not to a
persistence engine. This allows us to:
1. Keep the engine (on-device database, file, whatever) swappable
2. Use in-memory storage for testing
3. Keep business rules (seeding, signs, renumbering) out of storage

Local mutations are synchronous and committed immediately. The store
never talks to the network.
"""

from abc import ABC, abstractmethod
from typing import Optional

from budget_sync.models.audit import SyncEvent
from budget_sync.models.ledger import Category, PaymentMethod, Transaction


class LedgerStoreInterface(ABC):
    """
    Abstract interface for the local ledger.

    Any store implementation must implement these methods.
    """

    # --- Categories ---------------------------------------------------------

    @abstractmethod
    def add_category(self, category: Category) -> Category:
        """
        Insert a category.

        Raises:
            DuplicateError: a category with the same name (case-insensitive) exists
        """
        pass

    @abstractmethod
    def get_category(self, remote_id: str) -> Optional[Category]:
        """Category by remote_id, or None."""
        pass

    @abstractmethod
    def find_category(self, name: str) -> Optional[Category]:
        """Category by name (case-insensitive), or None."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """All categories ordered by sort_index, then name."""
        pass

    @abstractmethod
    def delete_category(self, remote_id: str) -> int:
        """
        Delete a category.

        Transactions referencing it keep existing with category=None.

        Returns:
            Number of transactions detached

        Raises:
            NotFoundError: no such category
        """
        pass

    @abstractmethod
    def renumber_categories(self, order: Optional[list[str]] = None) -> int:
        """
        Assign sort_index 0..N-1.

        Args:
            order: remote_ids in the wanted order. None keeps list order.

        Returns:
            Number of categories renumbered
        """
        pass

    # --- Payment methods ----------------------------------------------------

    @abstractmethod
    def add_payment_method(self, method: PaymentMethod) -> PaymentMethod:
        """Insert a payment method. Raises DuplicateError on name clash."""
        pass

    @abstractmethod
    def get_payment_method(self, remote_id: str) -> Optional[PaymentMethod]:
        pass

    @abstractmethod
    def find_payment_method(self, name: str) -> Optional[PaymentMethod]:
        pass

    @abstractmethod
    def list_payment_methods(self) -> list[PaymentMethod]:
        """All payment methods ordered by sort_index, then name."""
        pass

    @abstractmethod
    def delete_payment_method(self, remote_id: str) -> int:
        """Delete a payment method, detaching transactions. Returns detached count."""
        pass

    @abstractmethod
    def renumber_payment_methods(self, order: Optional[list[str]] = None) -> int:
        pass

    # --- Transactions -------------------------------------------------------

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    def get_transaction(self, remote_id: str) -> Optional[Transaction]:
        pass

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        """All transactions, newest first."""
        pass

    @abstractmethod
    def delete_transaction(self, remote_id: str) -> bool:
        """
        Delete a transaction.

        Raises:
            NotFoundError: no such transaction
        """
        pass


class AuditSinkInterface(ABC):
    """
    Where sync events are persisted besides the structured log.

    Append-only: we never delete or modify events.
    """

    @abstractmethod
    def append_event(self, event: SyncEvent) -> bool:
        """Append an event. Returns True if stored."""
        pass

    @abstractmethod
    def get_events_by_entity(self, entity_id: str) -> list[SyncEvent]:
        """Events for one record, chronological."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[SyncEvent]:
        """Most recent events, newest first."""
        pass


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class NotFoundError(StoreError):
    """Entity not found in store."""
    pass


class DuplicateError(StoreError):
    """Attempted to insert a duplicate entity."""
    pass
