"""Remote sync package: HTTP client and outbox."""

from budget_sync.services.sync.client import (
    DEFAULT_FETCH_LIMIT,
    SheetsSyncClient,
    SyncResponse,
    category_payload,
    format_api_date,
    payment_payload,
    transaction_payload,
)
from budget_sync.services.sync.outbox import (
    FlushReport,
    Outbox,
    PayloadSender,
    PendingWrite,
)

__all__ = [
    "DEFAULT_FETCH_LIMIT",
    "FlushReport",
    "Outbox",
    "PayloadSender",
    "PendingWrite",
    "SheetsSyncClient",
    "SyncResponse",
    "category_payload",
    "format_api_date",
    "payment_payload",
    "transaction_payload",
]
