"""Monthly reports package."""

from budget_sync.reports.aggregator import (
    NO_PAYMENT_METHOD_LABEL,
    UNCATEGORIZED_LABEL,
    aggregate,
    api_date_range,
    month_bounds,
    recent_months,
    wall_clock,
)

__all__ = [
    "NO_PAYMENT_METHOD_LABEL",
    "UNCATEGORIZED_LABEL",
    "aggregate",
    "api_date_range",
    "month_bounds",
    "recent_months",
    "wall_clock",
]
