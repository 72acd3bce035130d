"""
Tolerant Field Decoders

The remote backend is a spreadsheet script. Cells change type between
releases: an emoji column may come back as 0, a sort index as "1",
a timestamp as null. Each function here takes whatever JSON value
arrived and returns the target type directly.

CRITICAL: None of these functions raise. Every branch has a fallback.
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


_TRUTHY_STRINGS = {"true", "1", "yes"}


def _is_number(value: Any) -> bool:
    # bool is an int subclass in Python but a distinct JSON type
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_text(value: Any) -> str:
    """String verbatim, anything else becomes ""."""
    if isinstance(value, str):
        return value
    return ""


def decode_emoji(value: Any) -> str:
    """
    Decode an emoji cell.

    A string is returned verbatim (including ""). A number is what the
    sheet emits for an empty emoji cell, so it becomes "". Null or
    absent becomes "".
    """
    return decode_text(value)


def decode_sort_index(value: Any) -> int:
    """
    Decode a sortIndex cell.

    Numbers are truncated toward zero. Strings holding an integer literal
    are parsed. Everything else is 0.
    """
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def decode_timestamp(value: Any) -> Optional[datetime]:
    """
    Decode an ISO-8601 timestamp.

    Accepts a trailing 'Z' and bare 'yyyy-MM-dd' dates.
    Null, absent, non-string or malformed input gives None.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        return None
    return datetime(parsed.year, parsed.month, parsed.day)


def decode_amount(value: Any) -> Decimal:
    """Number or numeric string to Decimal, otherwise 0."""
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return Decimal("0")
        # str() first so 42.5 stays 42.5 instead of its binary expansion
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return Decimal("0")
        return parsed if parsed.is_finite() else Decimal("0")
    return Decimal("0")


def decode_flag(value: Any) -> bool:
    """Bool as is, non-zero numbers, or "true"/"1"/"yes"."""
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def decode_count(value: Any) -> Optional[int]:
    """
    Decode an envelope counter (total, filtered).

    Like decode_sort_index, but anything unusable is None rather than 0,
    since a missing count is not the same as an empty result.
    """
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
