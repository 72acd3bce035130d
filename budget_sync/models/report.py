"""
Report Models

Output of the monthly aggregation, plus the tagged results the flows
hand back to callers so they can keep showing previously loaded data
when a sync fails.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from budget_sync.models.remote import (
    RemoteCategory,
    RemotePaymentMethod,
    RemoteTransaction,
)


class BreakdownEntry(BaseModel):
    """One (name, summed signed amount) line of a breakdown."""

    name: str
    total: Decimal

    def as_tuple(self) -> tuple[str, Decimal]:
        return self.name, self.total


class MonthlyReport(BaseModel):
    """
    Income, expenses and breakdowns for one calendar month.

    expenses is <= 0 because expenses are stored as negative amounts.
    """

    month: int = Field(..., ge=1, le=12)
    year: int
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    by_category: list[BreakdownEntry] = Field(default_factory=list)
    by_payment_method: list[BreakdownEntry] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_totals(self) -> 'MonthlyReport':
        """net is always income + expenses."""
        if self.net != self.income + self.expenses:
            raise ValueError("net must equal income + expenses")
        if self.income < 0:
            raise ValueError("income cannot be negative")
        if self.expenses > 0:
            raise ValueError("expenses cannot be positive")
        return self

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0


class SyncErrorKind(str, Enum):
    """How a remote read failed."""
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    EMPTY_BODY = "empty_body"
    HTML_ERROR_PAGE = "html_error_page"
    DECODE = "decode"


class SyncOutcome(BaseModel):
    """
    What happened to the remote mirror of a local save.

    The local save already happened either way. queued means the write
    is waiting in the outbox.
    """

    entity_type: str
    remote_id: str
    status: int
    body: str = ""
    queued: bool = False

    @property
    def synced(self) -> bool:
        return 200 <= self.status < 300


class SummaryResult(BaseModel):
    """
    Result of fetching and aggregating one month from the remote sheet.

    On failure report is None and the caller keeps whatever it showed
    before.
    """

    month: int = Field(..., ge=1, le=12)
    year: int
    fetched_at: datetime = Field(default_factory=datetime.utcnow)
    success: bool
    report: Optional[MonthlyReport] = None
    transactions: list[RemoteTransaction] = Field(default_factory=list)
    skipped_undated: int = Field(
        default=0,
        ge=0,
        description="Rows without a usable date, left out of the report"
    )
    error_kind: Optional[SyncErrorKind] = None
    error_message: Optional[str] = None


class CatalogResult(BaseModel):
    """Remote categories and payment methods, sorted by sort_index."""

    fetched_at: datetime = Field(default_factory=datetime.utcnow)
    success: bool
    categories: list[RemoteCategory] = Field(default_factory=list)
    payment_methods: list[RemotePaymentMethod] = Field(default_factory=list)
    failed_actions: list[str] = Field(
        default_factory=list,
        description="Reads that failed; the other list may still be filled"
    )
    error_kind: Optional[SyncErrorKind] = None
    error_message: Optional[str] = None
