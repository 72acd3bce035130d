"""
Main Orchestrator for Budget Sync

This module ties together the store, the sync client, the outbox and
the aggregator, and defines the end-to-end flows for:
1. Ledger edits (validate → commit locally → mirror → outbox on failure)
2. Summary reads (fetch → decode → aggregate)

DESIGN DECISION: The orchestrator enforces the boundaries:
- A local commit is final; a failed mirror never rolls it back
- A failed mirror is never silent: it is logged, audited and queued
- A failed read never raises to the caller; it comes back tagged so
  previously loaded data can stay on screen
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

import structlog

from budget_sync.audit import SyncAuditLogger, configure_logging
from budget_sync.config import get_settings
from budget_sync.decoding.records import sort_by_index
from budget_sync.errors import (
    DecodeError,
    EmptyBodyError,
    HTMLErrorPageError,
    HTTPStatusError,
    SyncError,
)
from budget_sync.models.audit import SyncEventBuilder
from budget_sync.models.ledger import Category, PaymentMethod, Transaction
from budget_sync.models.report import (
    CatalogResult,
    MonthlyReport,
    SummaryResult,
    SyncErrorKind,
    SyncOutcome,
)
from budget_sync.reports import aggregate, api_date_range, recent_months
from budget_sync.services.store import (
    InMemoryAuditSink,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
)
from budget_sync.services.sync import (
    DEFAULT_FETCH_LIMIT,
    FlushReport,
    Outbox,
    SheetsSyncClient,
    SyncResponse,
    category_payload,
    payment_payload,
    transaction_payload,
)


logger = structlog.get_logger(__name__)


# (name, emoji, is_income)
DEFAULT_CATEGORIES: list[tuple[str, str, bool]] = [
    # Expenses
    ("Food", "🍽️", False),
    ("Transport", "🚕", False),
    ("Bills", "💡", False),
    ("Shopping", "🛍️", False),
    ("Leisure", "🎬", False),
    ("Groceries", "🛒", False),
    ("Healthcare", "🏥", False),
    ("Education", "📚", False),
    ("Rent", "🏠", False),
    ("Insurance", "🛡️", False),
    ("Pets", "🐾", False),
    ("Gym", "💪", False),
    ("Subscriptions", "📱", False),
    ("Coffee", "☕", False),
    # Income
    ("Salary", "💼", True),
    ("Gifts", "🎁", True),
    ("Freelance", "💻", True),
    ("Investments", "📈", True),
    ("Bonus", "💰", True),
    ("Refunds", "💵", True),
]

DEFAULT_PAYMENT_METHODS: list[str] = ["Credit Card", "Debit Card", "Pix", "Cash"]


def parse_amount_text(text: str) -> Optional[Decimal]:
    """
    Parse what the user typed in the amount field.

    Handles "R$ 1.234,56" style input: the currency marker and spaces
    are dropped, and when there is exactly one comma the dots before it
    are thousands separators and the comma is the decimal mark.

    Returns None when the text is not a number.
    """
    clean = text.replace("R$", "").replace(" ", "").strip()

    if "," in clean:
        parts = clean.split(",")
        if len(parts) == 2:
            integer_part = parts[0].replace(".", "")
            clean = f"{integer_part}.{parts[1]}"

    try:
        value = Decimal(clean)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _error_kind(error: SyncError) -> SyncErrorKind:
    if isinstance(error, DecodeError):
        return SyncErrorKind.DECODE
    if isinstance(error, HTMLErrorPageError):
        return SyncErrorKind.HTML_ERROR_PAGE
    if isinstance(error, EmptyBodyError):
        return SyncErrorKind.EMPTY_BODY
    if isinstance(error, HTTPStatusError):
        return SyncErrorKind.HTTP_STATUS
    return SyncErrorKind.NETWORK


def _trimmed(value: Optional[str]) -> str:
    return (value or "").strip()


class LedgerFlow:
    """
    Orchestrates local ledger edits and their remote mirror.

    Flow for every add:
    1. Validate input
    2. Commit to the local store
    3. POST the record to the sheet
    4. On a non-2xx response: warn, audit, queue in the outbox

    Deletes are local only; the sheet has no delete action.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        sync_client: Optional[SheetsSyncClient] = None,
        outbox: Optional[Outbox] = None,
        audit_logger: Optional[SyncAuditLogger] = None,
    ):
        self._store = store
        self._sync_client = sync_client
        self._outbox = outbox if outbox is not None else Outbox()
        self._audit_logger = audit_logger or SyncAuditLogger()

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    @property
    def outbox(self) -> Outbox:
        return self._outbox

    # -------------------------------------------------------------------------
    # Mirror helpers
    # -------------------------------------------------------------------------

    async def _mirror(self, payload: dict) -> SyncOutcome:
        """POST a payload, audit the response and queue it if it failed."""
        entity_type = payload["type"]
        remote_id = payload["remoteID"]
        response: SyncResponse = await self._sync_client.post_payload(payload)
        self._audit_logger.log_post_result(
            entity_type, remote_id, response.status, response.body
        )
        queued = False
        if not response.ok:
            self._outbox.record(payload, response)
            self._audit_logger.log(
                SyncEventBuilder.outbox_queued(entity_type, remote_id, len(self._outbox))
            )
            queued = True
        return SyncOutcome(
            entity_type=entity_type,
            remote_id=remote_id,
            status=response.status,
            body=response.body,
            queued=queued,
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        emoji: Optional[str] = None,
        is_income: bool = False,
    ) -> tuple[Category, Optional[SyncOutcome]]:
        """
        Create a category at the end of the list and mirror it.

        Returns:
            (category, outcome). outcome is None when no sync client is set.

        Raises:
            ValueError: empty name
            DuplicateError: name already used (case-insensitive)
        """
        name = _trimmed(name)
        if not name:
            raise ValueError("Category name is required")
        emoji = _trimmed(emoji) or None

        existing = self._store.list_categories()
        next_index = max((c.sort_index for c in existing), default=-1) + 1
        category = self._store.add_category(
            Category(name=name, emoji=emoji, sort_index=next_index, is_income=is_income)
        )
        self._audit_logger.log(
            SyncEventBuilder.local_saved("category", category.remote_id, category.name)
        )

        if self._sync_client is None:
            return category, None

        outcome = await self._mirror(
            category_payload(
                category.remote_id,
                category.name,
                category.emoji,
                category.sort_index,
                category.is_income,
            )
        )
        return category, outcome

    def delete_category(self, remote_id: str) -> int:
        """
        Delete a category. Its transactions stay, uncategorized.

        Returns:
            Number of transactions detached
        """
        category = self._store.get_category(remote_id)
        if category is None:
            raise NotFoundError(f"Category not found: {remote_id}")
        detached = self._store.delete_category(remote_id)
        self._outbox.discard("category", remote_id)
        self._audit_logger.log(
            SyncEventBuilder.local_deleted("category", remote_id, category.name, detached)
        )
        return detached

    def move_category(self, remote_id: str, position: int) -> list[Category]:
        """Move a category to position (clamped) and renumber 0..N-1."""
        order = self._moved([c.remote_id for c in self._store.list_categories()], remote_id, position)
        count = self._store.renumber_categories(order)
        self._audit_logger.log(SyncEventBuilder.sort_renumbered("category", count))
        return self._store.list_categories()

    # -------------------------------------------------------------------------
    # Payment methods
    # -------------------------------------------------------------------------

    async def add_payment_method(
        self,
        name: str,
        emoji: Optional[str] = None,
    ) -> tuple[PaymentMethod, Optional[SyncOutcome]]:
        """Create a payment method at the end of the list and mirror it."""
        name = _trimmed(name)
        if not name:
            raise ValueError("Payment method name is required")
        emoji = _trimmed(emoji) or None

        existing = self._store.list_payment_methods()
        next_index = max((m.sort_index for m in existing), default=-1) + 1
        method = self._store.add_payment_method(
            PaymentMethod(name=name, emoji=emoji, sort_index=next_index)
        )
        self._audit_logger.log(
            SyncEventBuilder.local_saved("paymentMethod", method.remote_id, method.name)
        )

        if self._sync_client is None:
            return method, None

        outcome = await self._mirror(
            payment_payload(method.remote_id, method.name, method.emoji, method.sort_index)
        )
        return method, outcome

    def delete_payment_method(self, remote_id: str) -> int:
        """Delete a payment method. Its transactions stay, with no method."""
        method = self._store.get_payment_method(remote_id)
        if method is None:
            raise NotFoundError(f"Payment method not found: {remote_id}")
        detached = self._store.delete_payment_method(remote_id)
        self._outbox.discard("paymentMethod", remote_id)
        self._audit_logger.log(
            SyncEventBuilder.local_deleted("paymentMethod", remote_id, method.name, detached)
        )
        return detached

    def move_payment_method(self, remote_id: str, position: int) -> list[PaymentMethod]:
        """Move a payment method to position (clamped) and renumber 0..N-1."""
        order = self._moved(
            [m.remote_id for m in self._store.list_payment_methods()], remote_id, position
        )
        count = self._store.renumber_payment_methods(order)
        self._audit_logger.log(SyncEventBuilder.sort_renumbered("paymentMethod", count))
        return self._store.list_payment_methods()

    @staticmethod
    def _moved(order: list[str], remote_id: str, position: int) -> list[str]:
        if remote_id not in order:
            raise NotFoundError(f"Not found: {remote_id}")
        order = [item for item in order if item != remote_id]
        position = max(0, min(position, len(order)))
        order.insert(position, remote_id)
        return order

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def record_transaction(
        self,
        amount: Union[Decimal, str],
        when: Optional[datetime] = None,
        category: Optional[Category] = None,
        payment_method: Optional[PaymentMethod] = None,
        note: Optional[str] = None,
        merchant_name: Optional[str] = None,
    ) -> tuple[Transaction, Optional[SyncOutcome]]:
        """
        Save a transaction and mirror it.

        The sign comes from the category as it is right now: income
        categories give a positive amount, anything else (including no
        category) a negative one. Changing the category later does not
        re-sign this transaction.

        Raises:
            ValueError: amount text is not a number
        """
        if isinstance(amount, str):
            parsed = parse_amount_text(amount)
            if parsed is None:
                raise ValueError(f"Not an amount: {amount!r}")
            amount = parsed

        magnitude = abs(Decimal(amount))
        signed = magnitude if (category is not None and category.is_income) else -magnitude

        transaction = self._store.add_transaction(
            Transaction(
                amount=signed,
                date=when or datetime.now(),
                note=_trimmed(note) or None,
                merchant_name=_trimmed(merchant_name) or None,
                category=category,
                payment_method=payment_method,
            )
        )
        self._audit_logger.log(
            SyncEventBuilder.local_saved(
                "transaction", transaction.remote_id, f"{transaction.amount}"
            )
        )

        if self._sync_client is None:
            return transaction, None

        outcome = await self._mirror(
            transaction_payload(
                transaction.remote_id,
                transaction.amount,
                transaction.date,
                category.name if category else None,
                payment_method.name if payment_method else None,
                merchant_name=transaction.merchant_name,
                note=transaction.note,
            )
        )
        return transaction, outcome

    def delete_transaction(self, remote_id: str) -> None:
        """Delete a transaction from the local ledger."""
        transaction = self._store.get_transaction(remote_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {remote_id}")
        self._store.delete_transaction(remote_id)
        self._outbox.discard("transaction", remote_id)
        self._audit_logger.log(
            SyncEventBuilder.local_deleted("transaction", remote_id, f"{transaction.amount}")
        )

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def seed_defaults(self) -> tuple[int, int]:
        """
        Insert the default categories and payment methods.

        Only collections that are empty get seeded. Seeds are local only.

        Returns:
            (categories_added, payment_methods_added)
        """
        categories_added = 0
        methods_added = 0

        if not self._store.list_categories():
            for offset, (name, emoji, is_income) in enumerate(DEFAULT_CATEGORIES):
                self._store.add_category(
                    Category(name=name, emoji=emoji, sort_index=offset, is_income=is_income)
                )
                categories_added += 1

        if not self._store.list_payment_methods():
            for offset, name in enumerate(DEFAULT_PAYMENT_METHODS):
                self._store.add_payment_method(PaymentMethod(name=name, sort_index=offset))
                methods_added += 1

        if categories_added or methods_added:
            self._audit_logger.log(
                SyncEventBuilder.defaults_seeded(categories_added, methods_added)
            )
        return categories_added, methods_added

    def normalize_sort_indices(self) -> dict[str, bool]:
        """
        Renumber a collection 0..N-1 when all of its sort indices are equal.

        That state means the indices were never set (e.g. imported rows),
        so the current listing order is the best order we have.
        """
        result = {"category": False, "paymentMethod": False}

        categories = self._store.list_categories()
        if categories and len({c.sort_index for c in categories}) == 1:
            count = self._store.renumber_categories()
            self._audit_logger.log(SyncEventBuilder.sort_renumbered("category", count))
            result["category"] = True

        methods = self._store.list_payment_methods()
        if methods and len({m.sort_index for m in methods}) == 1:
            count = self._store.renumber_payment_methods()
            self._audit_logger.log(SyncEventBuilder.sort_renumbered("paymentMethod", count))
            result["paymentMethod"] = True

        return result

    def prepare(self, seed_defaults: bool = True) -> None:
        """What the input screen does on first appearance."""
        if seed_defaults:
            self.seed_defaults()
        self.normalize_sort_indices()

    def month_report(self, month: int, year: int) -> MonthlyReport:
        """Aggregate the local ledger for one month."""
        return aggregate(
            (t.to_entry() for t in self._store.list_transactions()), month, year
        )

    def current_month_report(self, today: Optional[date] = None) -> MonthlyReport:
        today = today or date.today()
        return self.month_report(today.month, today.year)

    async def flush_outbox(self) -> FlushReport:
        """Replay failed mirror writes once. Explicit, never automatic."""
        if self._sync_client is None or not len(self._outbox):
            return FlushReport(failed=len(self._outbox))
        report = await self._outbox.flush(self._sync_client)
        self._audit_logger.log(SyncEventBuilder.outbox_flushed(report.sent, report.failed))
        return report


class SummaryFlow:
    """
    Orchestrates the remote read path.

    Flow:
    1. GET the month's transactions from the sheet
    2. Decode (tolerant per field, per-row drop)
    3. Aggregate into a MonthlyReport

    Failures never raise. They come back as success=False with the
    error kind, so the caller keeps what it was showing.
    """

    def __init__(
        self,
        sync_client: SheetsSyncClient,
        audit_logger: Optional[SyncAuditLogger] = None,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
        summary_months: int = 12,
    ):
        self._sync_client = sync_client
        self._audit_logger = audit_logger or SyncAuditLogger()
        self._fetch_limit = fetch_limit
        self._summary_months = summary_months

    async def fetch_month(self, month: int, year: int) -> SummaryResult:
        """Fetch and aggregate one month of remote transactions."""
        start, end = api_date_range(month, year)
        try:
            envelope = await self._sync_client.get_transactions(
                start, end, limit=self._fetch_limit
            )
        except SyncError as e:
            kind = _error_kind(e)
            self._audit_logger.log_fetch_failed("getTransactions", kind.value, str(e))
            return SummaryResult(
                month=month,
                year=year,
                success=False,
                error_kind=kind,
                error_message=str(e),
            )

        self._audit_logger.log_fetch(
            "getTransactions", len(envelope.records), envelope.dropped
        )

        entries = []
        skipped = 0
        for record in envelope.records:
            entry = record.to_entry()
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)
        if skipped:
            logger.warning(
                "summary_rows_without_date",
                month=month,
                year=year,
                skipped=skipped,
            )

        return SummaryResult(
            month=month,
            year=year,
            success=True,
            report=aggregate(entries, month, year),
            transactions=envelope.records,
            skipped_undated=skipped,
        )

    async def fetch_catalog(self) -> CatalogResult:
        """
        Fetch categories and payment methods, sorted by sort_index.

        The two reads are independent. If one fails, the other's rows
        are still returned, with success=False and the failed action named.
        """
        result = CatalogResult(success=True)

        try:
            categories = await self._sync_client.get_categories()
        except SyncError as e:
            self._record_catalog_failure(result, "getCategories", e)
        else:
            self._audit_logger.log_fetch(
                "getCategories", len(categories.records), categories.dropped
            )
            result.categories = sort_by_index(categories.records)

        try:
            methods = await self._sync_client.get_payment_methods()
        except SyncError as e:
            self._record_catalog_failure(result, "getPaymentMethods", e)
        else:
            self._audit_logger.log_fetch(
                "getPaymentMethods", len(methods.records), methods.dropped
            )
            result.payment_methods = sort_by_index(methods.records)

        return result

    def _record_catalog_failure(
        self,
        result: CatalogResult,
        action: str,
        error: SyncError,
    ) -> None:
        kind = _error_kind(error)
        self._audit_logger.log_fetch_failed(action, kind.value, str(error))
        result.success = False
        result.failed_actions.append(action)
        # First failure wins
        if result.error_kind is None:
            result.error_kind = kind
            result.error_message = str(error)

    def available_months(self, today: Optional[date] = None) -> list[tuple[int, int]]:
        """(month, year) choices for the summary picker, newest first."""
        return recent_months(today or date.today(), self._summary_months)


def create_app_components(
    use_remote: bool = True,
) -> tuple[LedgerFlow, Optional[SummaryFlow], Optional[SheetsSyncClient]]:
    """
    Factory function to create all application components.

    Args:
        use_remote: Whether to set up the sheet endpoint.
                    Set to False to run purely local.

    Returns:
        (ledger_flow, summary_flow, sync_client). The last two are None
        when the endpoint is not configured.
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    audit_logger = SyncAuditLogger(InMemoryAuditSink())
    sync_client = None

    if use_remote:
        try:
            sync_client = SheetsSyncClient(settings.sheets)
        except Exception as e:
            # Endpoint not configured - continue local only
            logger.warning("remote_sync_not_configured", error=str(e))
            sync_client = None

    ledger_flow = LedgerFlow(
        store=InMemoryLedgerStore(),
        sync_client=sync_client,
        audit_logger=audit_logger,
    )
    ledger_flow.prepare(seed_defaults=app_settings.seed_defaults_on_empty)

    summary_flow = None
    if sync_client is not None:
        summary_flow = SummaryFlow(
            sync_client=sync_client,
            audit_logger=audit_logger,
            fetch_limit=app_settings.fetch_limit,
            summary_months=app_settings.summary_months,
        )

    return ledger_flow, summary_flow, sync_client
