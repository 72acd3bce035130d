"""
Tests for the in-memory store and the sync audit logger.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from budget_sync.audit import SyncAuditLogger
from budget_sync.models.audit import SyncEventBuilder
from budget_sync.models.ledger import Category, PaymentMethod, Transaction
from budget_sync.services.store import (
    AuditSinkInterface,
    DuplicateError,
    InMemoryAuditSink,
    InMemoryLedgerStore,
    NotFoundError,
)


class TestInMemoryLedgerStore:
    """Tests for the dictionary-backed store."""

    def test_list_orders_by_sort_index(self):
        """Listing follows sort_index."""
        store = InMemoryLedgerStore()
        store.add_category(Category(name="Later", sort_index=5))
        store.add_category(Category(name="First", sort_index=0))

        assert [c.name for c in store.list_categories()] == ["First", "Later"]

    def test_find_is_case_insensitive(self):
        """Lookup by name ignores case and surrounding space."""
        store = InMemoryLedgerStore()
        pix = store.add_payment_method(PaymentMethod(name="Pix"))

        assert store.find_payment_method(" PIX ") is pix

    def test_duplicate_payment_method(self):
        """Names are unique per collection."""
        store = InMemoryLedgerStore()
        store.add_payment_method(PaymentMethod(name="Cash"))

        with pytest.raises(DuplicateError):
            store.add_payment_method(PaymentMethod(name="cash"))

    def test_same_name_in_different_collections(self):
        """A category and a payment method may share a name."""
        store = InMemoryLedgerStore()
        store.add_category(Category(name="Cash"))
        store.add_payment_method(PaymentMethod(name="Cash"))

    def test_renumber_with_order(self):
        """Items in the given order come first, the rest follow."""
        store = InMemoryLedgerStore()
        a = store.add_category(Category(name="A", sort_index=0))
        b = store.add_category(Category(name="B", sort_index=1))
        c = store.add_category(Category(name="C", sort_index=2))

        count = store.renumber_categories([c.remote_id])

        assert count == 3
        assert [x.name for x in store.list_categories()] == ["C", "A", "B"]
        assert (a.sort_index, b.sort_index, c.sort_index) == (1, 2, 0)

    def test_renumber_unknown_id(self):
        """Unknown ids in the order are rejected."""
        store = InMemoryLedgerStore()
        store.add_category(Category(name="A"))

        with pytest.raises(NotFoundError):
            store.renumber_categories(["missing"])

    def test_transactions_newest_first(self):
        """Transactions list newest first."""
        store = InMemoryLedgerStore()
        old = store.add_transaction(Transaction(amount=Decimal("-1"), date=datetime(2025, 1, 1)))
        new = store.add_transaction(Transaction(amount=Decimal("-2"), date=datetime(2025, 2, 1)))

        assert store.list_transactions() == [new, old]

    def test_transactions_mixed_naive_and_aware(self):
        """Naive and aware dates sort together by wall-clock reading."""
        store = InMemoryLedgerStore()
        naive = store.add_transaction(Transaction(amount=Decimal("-1"), date=datetime(2025, 3, 5)))
        aware = store.add_transaction(
            Transaction(amount=Decimal("-2"), date=datetime(2025, 3, 6, tzinfo=timezone.utc))
        )

        assert store.list_transactions() == [aware, naive]

    def test_delete_missing_transaction(self):
        """Deleting an unknown transaction raises."""
        with pytest.raises(NotFoundError):
            InMemoryLedgerStore().delete_transaction("missing")


class BrokenSink(AuditSinkInterface):
    """A sink that always fails."""

    def append_event(self, event):
        raise RuntimeError("disk full")

    def get_events_by_entity(self, entity_id):
        return []

    def get_recent_events(self, limit=100):
        return []


class TestSyncAuditLogger:
    """Tests for the audit logger."""

    def test_events_reach_the_sink(self):
        """Logged events are appended to the sink."""
        sink = InMemoryAuditSink()
        audit = SyncAuditLogger(sink)

        assert audit.log(SyncEventBuilder.local_saved("category", "c-1", "Food")) is True
        audit.log_post_result("category", "c-1", -1, "offline")

        events = sink.get_recent_events()
        assert len(events) == 2
        assert events[0].event_type.value == "remote_post_failed"

    def test_fetch_with_drops_logs_two_events(self):
        """Dropped rows get their own warning event."""
        sink = InMemoryAuditSink()

        SyncAuditLogger(sink).log_fetch("getCategories", 3, 1)

        assert len(sink) == 2

    def test_sink_failure_does_not_raise(self):
        """A broken sink never breaks the caller."""
        audit = SyncAuditLogger(BrokenSink())

        assert audit.log(SyncEventBuilder.sort_renumbered("category", 3)) is False

    def test_without_sink(self):
        """No sink means local logging only."""
        assert SyncAuditLogger().log(SyncEventBuilder.defaults_seeded(20, 4)) is True

    def test_empty_sink_receives_first_event(self):
        """An empty sink is still a sink."""
        sink = InMemoryAuditSink()
        assert len(sink) == 0

        SyncAuditLogger(sink).log(SyncEventBuilder.local_saved("category", "c-1", "Food"))

        assert len(sink) == 1
