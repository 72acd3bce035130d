"""
Decoding package.

Only the field decoders are re-exported here: the wire models import
them. Record decoding lives in budget_sync.decoding.records.
"""

from budget_sync.decoding.fields import (
    decode_amount,
    decode_count,
    decode_emoji,
    decode_flag,
    decode_sort_index,
    decode_text,
    decode_timestamp,
)

__all__ = [
    "decode_amount",
    "decode_count",
    "decode_emoji",
    "decode_flag",
    "decode_sort_index",
    "decode_text",
    "decode_timestamp",
]
