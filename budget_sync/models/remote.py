"""
Remote (Wire) Models

What the spreadsheet script returns. Every scalar field is treated as
untyped JSON and passed through a tolerant decoder before pydantic
sees it, so a malformed cell degrades to "" or 0 instead of failing
the row.

The only fields that can fail a row are identity fields: remoteID
(and name, for categories and payment methods). Those must be
non-empty strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
)

from budget_sync.decoding.fields import (
    decode_amount,
    decode_count,
    decode_emoji,
    decode_flag,
    decode_sort_index,
    decode_text,
    decode_timestamp,
)
from budget_sync.models.ledger import LedgerEntry


# Tolerant scalar types
Emoji = Annotated[str, BeforeValidator(decode_emoji)]
Text = Annotated[str, BeforeValidator(decode_text)]
SortIndex = Annotated[int, BeforeValidator(decode_sort_index)]
Amount = Annotated[Decimal, BeforeValidator(decode_amount)]
Flag = Annotated[bool, BeforeValidator(decode_flag)]
Timestamp = Annotated[Optional[datetime], BeforeValidator(decode_timestamp)]
Count = Annotated[Optional[int], BeforeValidator(decode_count)]

# Identity: strict, never coerced
Identity = Annotated[str, StringConstraints(strict=True, min_length=1)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class RemoteCategory(_WireModel):
    """A category row from getCategories."""

    remote_id: Identity = Field(alias="remoteID")
    name: Identity
    emoji: Emoji = ""
    sort_index: SortIndex = Field(default=0, alias="sortIndex")
    is_income: Flag = Field(default=False, alias="isIncome")
    timestamp: Timestamp = None


class RemotePaymentMethod(_WireModel):
    """A payment method row from getPaymentMethods."""

    remote_id: Identity = Field(alias="remoteID")
    name: Identity
    emoji: Emoji = ""
    sort_index: SortIndex = Field(default=0, alias="sortIndex")
    timestamp: Timestamp = None


class RemoteTransaction(_WireModel):
    """A transaction row from getTransactions."""

    remote_id: Identity = Field(alias="remoteID")
    amount: Amount = Decimal("0")
    category_name: Text = Field(default="", alias="categoryName")
    payment_method: Text = Field(default="", alias="paymentMethod")
    merchant_name: Text = Field(default="", alias="merchantName")
    note: Text = ""
    date_iso: Text = Field(default="", alias="dateISO")
    transaction_type: Text = Field(default="", alias="transactionType")

    @property
    def date(self) -> Optional[datetime]:
        """Parsed dateISO, or None when the sheet sent something unusable."""
        return decode_timestamp(self.date_iso)

    def to_entry(self) -> Optional[LedgerEntry]:
        """
        Flatten to the aggregator's input shape.

        Returns None when the row has no usable date, since it can't be
        placed in any month.
        """
        when = self.date
        if when is None:
            return None
        return LedgerEntry(
            amount=self.amount,
            date=when,
            category_name=self.category_name or None,
            payment_method_name=self.payment_method or None,
        )


RecordT = TypeVar("RecordT", RemoteCategory, RemotePaymentMethod, RemoteTransaction)


class RawEnvelope(BaseModel):
    """
    The outer {success, message, total, data} object, before row decoding.

    success, message and data are strict: if they are the wrong shape
    there is nothing sensible to salvage. The counters are informational
    and decode to None when unusable.
    """
    model_config = ConfigDict(strict=True, extra="ignore")

    success: bool
    message: str
    total: Count = None
    filtered: Count = None
    data: list[Any]


class Envelope(BaseModel, Generic[RecordT]):
    """A decoded response: envelope fields plus the rows that survived."""

    success: bool
    message: str
    total: Count = None
    filtered: Count = None
    records: list[RecordT] = Field(default_factory=list)
    dropped: int = Field(
        default=0,
        ge=0,
        description="Rows discarded for missing identity fields"
    )

    @property
    def data(self) -> list[RecordT]:
        return self.records
