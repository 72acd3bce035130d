"""
In-Memory Store Implementation

Keeps the ledger in plain dicts keyed by remote_id. Insertion order is
preserved, which makes listing deterministic when sort indices tie.

TRADEOFFS:
- Nothing survives a restart (the device database is out of scope)
- No locking: only ever mutated from the single control flow
"""

from typing import Optional, TypeVar

from budget_sync.models.audit import SyncEvent
from budget_sync.models.ledger import Category, PaymentMethod, Transaction
from budget_sync.reports.aggregator import wall_clock
from budget_sync.services.store.interface import (
    AuditSinkInterface,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
)


OrderedT = TypeVar("OrderedT", Category, PaymentMethod)


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _ordered(items: dict[str, OrderedT]) -> list[OrderedT]:
    return sorted(items.values(), key=lambda item: (item.sort_index, _name_key(item.name)))


def _renumber(items: dict[str, OrderedT], order: Optional[list[str]]) -> int:
    if order is None:
        sequence = _ordered(items)
    else:
        missing = [remote_id for remote_id in order if remote_id not in items]
        if missing:
            raise NotFoundError(f"Unknown remote_ids in order: {missing}")
        sequence = [items[remote_id] for remote_id in order]
        # Anything left out keeps its relative order after the given ones
        listed = set(order)
        sequence += [item for item in _ordered(items) if item.remote_id not in listed]

    for index, item in enumerate(sequence):
        item.sort_index = index
    return len(sequence)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Dictionary-backed ledger store."""

    def __init__(self):
        self._categories: dict[str, Category] = {}
        self._methods: dict[str, PaymentMethod] = {}
        self._transactions: dict[str, Transaction] = {}

    # --- Categories ---------------------------------------------------------

    def add_category(self, category: Category) -> Category:
        if self.find_category(category.name) is not None:
            raise DuplicateError(f'A category named "{category.name}" already exists.')
        if category.remote_id in self._categories:
            raise DuplicateError(f"Category already stored: {category.remote_id}")
        self._categories[category.remote_id] = category
        return category

    def get_category(self, remote_id: str) -> Optional[Category]:
        return self._categories.get(remote_id)

    def find_category(self, name: str) -> Optional[Category]:
        key = _name_key(name)
        for category in self._categories.values():
            if _name_key(category.name) == key:
                return category
        return None

    def list_categories(self) -> list[Category]:
        return _ordered(self._categories)

    def delete_category(self, remote_id: str) -> int:
        if remote_id not in self._categories:
            raise NotFoundError(f"Category not found: {remote_id}")
        del self._categories[remote_id]

        detached = 0
        for transaction in self._transactions.values():
            if transaction.category is not None and transaction.category.remote_id == remote_id:
                transaction.category = None
                detached += 1
        return detached

    def renumber_categories(self, order: Optional[list[str]] = None) -> int:
        return _renumber(self._categories, order)

    # --- Payment methods ----------------------------------------------------

    def add_payment_method(self, method: PaymentMethod) -> PaymentMethod:
        if self.find_payment_method(method.name) is not None:
            raise DuplicateError(f'A payment method named "{method.name}" already exists.')
        if method.remote_id in self._methods:
            raise DuplicateError(f"Payment method already stored: {method.remote_id}")
        self._methods[method.remote_id] = method
        return method

    def get_payment_method(self, remote_id: str) -> Optional[PaymentMethod]:
        return self._methods.get(remote_id)

    def find_payment_method(self, name: str) -> Optional[PaymentMethod]:
        key = _name_key(name)
        for method in self._methods.values():
            if _name_key(method.name) == key:
                return method
        return None

    def list_payment_methods(self) -> list[PaymentMethod]:
        return _ordered(self._methods)

    def delete_payment_method(self, remote_id: str) -> int:
        if remote_id not in self._methods:
            raise NotFoundError(f"Payment method not found: {remote_id}")
        del self._methods[remote_id]

        detached = 0
        for transaction in self._transactions.values():
            method = transaction.payment_method
            if method is not None and method.remote_id == remote_id:
                transaction.payment_method = None
                detached += 1
        return detached

    def renumber_payment_methods(self, order: Optional[list[str]] = None) -> int:
        return _renumber(self._methods, order)

    # --- Transactions -------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.remote_id in self._transactions:
            raise DuplicateError(f"Transaction already stored: {transaction.remote_id}")
        self._transactions[transaction.remote_id] = transaction
        return transaction

    def get_transaction(self, remote_id: str) -> Optional[Transaction]:
        return self._transactions.get(remote_id)

    def list_transactions(self) -> list[Transaction]:
        return sorted(
            self._transactions.values(),
            key=lambda t: wall_clock(t.date),
            reverse=True,
        )

    def delete_transaction(self, remote_id: str) -> bool:
        if remote_id not in self._transactions:
            raise NotFoundError(f"Transaction not found: {remote_id}")
        del self._transactions[remote_id]
        return True


class InMemoryAuditSink(AuditSinkInterface):
    """Append-only list of sync events."""

    def __init__(self):
        self._events: list[SyncEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def append_event(self, event: SyncEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(self, entity_id: str) -> list[SyncEvent]:
        events = [e for e in self._events if e.entity_id == entity_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[SyncEvent]:
        # reversed() keeps newest-first even when timestamps tie
        return list(reversed(self._events))[:limit]
