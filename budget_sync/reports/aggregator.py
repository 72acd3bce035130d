"""
Monthly Aggregator

DESIGN DECISION: Aggregation is a pure function over whatever rows it
is handed. Local transactions and decoded remote transactions are both
flattened to LedgerEntry first, so the same code serves the history
screen (local) and the summary screen (remote).

Expenses are stored negative, so:
    income   = sum of positive amounts
    expenses = sum of negative amounts (<= 0)
    net      = income + expenses
"""

from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from budget_sync.models.ledger import LedgerEntry
from budget_sync.models.report import BreakdownEntry, MonthlyReport


UNCATEGORIZED_LABEL = "Uncategorized"
NO_PAYMENT_METHOD_LABEL = "—"


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    """
    Half-open bounds [first of month, first of next month).

    December rolls over into January of the next year.
    """
    _check_month(month)
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def api_date_range(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of the month (inclusive), as the GET endpoint wants."""
    _check_month(month)
    last_day = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def recent_months(today: date, count: int = 12) -> list[tuple[int, int]]:
    """(month, year) pairs going back from today's month, newest first."""
    months = []
    month, year = today.month, today.year
    for _ in range(count):
        months.append((month, year))
        month -= 1
        if month == 0:
            month, year = 12, year - 1
    return months


def wall_clock(value: datetime) -> datetime:
    """Drop tzinfo so naive and aware datetimes order by their local reading."""
    return value.replace(tzinfo=None) if value.tzinfo is not None else value


def _in_month(entry: LedgerEntry, start: datetime, end: datetime) -> bool:
    return start <= wall_clock(entry.date) < end


def _breakdown(totals: dict[str, Decimal]) -> list[BreakdownEntry]:
    # sorted() is stable with reverse=True, so ties keep first-seen order
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [BreakdownEntry(name=name, total=total) for name, total in ordered]


def aggregate(
    entries: Iterable[LedgerEntry],
    month: int,
    year: int,
) -> MonthlyReport:
    """
    Build the report for one calendar month.

    Entries outside [first-of-month, first-of-next-month) are ignored.
    Empty input yields a zero report with empty breakdowns.
    """
    start, end = month_bounds(month, year)

    income = Decimal("0")
    expenses = Decimal("0")
    count = 0
    by_category: dict[str, Decimal] = {}
    by_payment: dict[str, Decimal] = {}

    for entry in entries:
        if not _in_month(entry, start, end):
            continue
        count += 1
        amount = entry.amount
        if amount > 0:
            income += amount
        else:
            expenses += amount

        category = entry.category_name or UNCATEGORIZED_LABEL
        by_category[category] = by_category.get(category, Decimal("0")) + amount

        payment = entry.payment_method_name or NO_PAYMENT_METHOD_LABEL
        by_payment[payment] = by_payment.get(payment, Decimal("0")) + amount

    return MonthlyReport(
        month=month,
        year=year,
        income=income,
        expenses=expenses,
        net=income + expenses,
        transaction_count=count,
        by_category=_breakdown(by_category),
        by_payment_method=_breakdown(by_payment),
    )
