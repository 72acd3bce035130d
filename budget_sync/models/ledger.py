"""
Local Ledger Models

These are the records the user creates on the device. They are the
source of truth; the remote sheet is a mirror.

DESIGN DECISION: remote_id is generated once, client side, and frozen.
It is the only join key between a local record and its remote row.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_remote_id() -> str:
    """Create a fresh remote identifier."""
    return str(uuid4())


class Category(BaseModel):
    """
    A spending or income category.

    is_income decides the sign of transactions recorded against it,
    at the moment they are recorded.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name (unique, case-insensitive)"
    )
    emoji: Optional[str] = Field(
        default=None,
        max_length=16,
        description="Optional emoji shown next to the name"
    )
    sort_index: int = Field(
        default=0,
        description="Display order"
    )
    is_income: bool = Field(
        default=False,
        description="Transactions in this category are income"
    )
    remote_id: str = Field(
        default_factory=new_remote_id,
        frozen=True,
        description="Stable identifier shared with the remote sheet"
    )


class PaymentMethod(BaseModel):
    """A way of paying (card, cash, Pix...)."""
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Payment method name (unique, case-insensitive)"
    )
    emoji: Optional[str] = Field(
        default=None,
        max_length=16,
    )
    sort_index: int = 0
    remote_id: str = Field(
        default_factory=new_remote_id,
        frozen=True,
    )


class Transaction(BaseModel):
    """
    A single income or expense.

    amount is signed: positive is income, negative is expense.
    category and payment_method are weak references. Deleting the
    referenced record sets them to None; it never deletes the transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    amount: Decimal = Field(
        ...,
        description="Signed amount"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the transaction happened"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    merchant_name: Optional[str] = Field(
        default=None,
        max_length=200,
    )
    category: Optional[Category] = None
    payment_method: Optional[PaymentMethod] = None
    remote_id: str = Field(
        default_factory=new_remote_id,
        frozen=True,
    )

    @property
    def is_income(self) -> bool:
        return self.amount >= 0

    def to_entry(self) -> "LedgerEntry":
        """Flatten to the aggregator's input shape."""
        return LedgerEntry(
            amount=self.amount,
            date=self.date,
            category_name=self.category.name if self.category else None,
            payment_method_name=(
                self.payment_method.name if self.payment_method else None
            ),
        )


class LedgerEntry(BaseModel):
    """
    One row as the aggregator sees it.

    Local transactions and decoded remote transactions both reduce to this.
    """
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    date: datetime
    category_name: Optional[str] = None
    payment_method_name: Optional[str] = None
