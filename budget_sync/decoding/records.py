"""
Remote Record Decoder

Turns a {success, message, total, data:[...]} response into a list of
wire records.

Two levels of failure:
1. The envelope is broken (not JSON, not an object, missing or mistyped
   success/message/data): the whole call fails with DecodeError.
2. A single row is missing an identity field: that row is dropped and
   counted, the rest of the batch goes on.

Anything less than that is absorbed by the field decoders.

Rows keep the order the server sent them in. Sorting by sort_index is
left to the caller.
"""

import json
from typing import Any, Type, Union

import structlog
from pydantic import ValidationError

from budget_sync.errors import DecodeError
from budget_sync.models.remote import (
    Envelope,
    RawEnvelope,
    RecordT,
    RemoteCategory,
    RemotePaymentMethod,
    RemoteTransaction,
)


logger = structlog.get_logger(__name__)


def _load_json(raw: Union[bytes, str]) -> Any:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("envelope", f"Response is not UTF-8: {e}") from e
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise DecodeError("envelope", f"Response is not JSON: {e}") from e


def decode_envelope(
    raw: Union[bytes, str],
    record_type: Type[RecordT],
) -> Envelope[RecordT]:
    """
    Decode a response body into an Envelope of record_type rows.

    Raises:
        DecodeError: reason "envelope" if the outer object is unusable
    """
    payload = _load_json(raw)
    if not isinstance(payload, dict):
        raise DecodeError("envelope", "Response is not a JSON object")

    try:
        envelope = RawEnvelope.model_validate(payload)
    except ValidationError as e:
        raise DecodeError("envelope", f"Unexpected envelope shape: {e}") from e

    records = []
    dropped = 0
    for position, row in enumerate(envelope.data):
        try:
            records.append(record_type.model_validate(row))
        except ValidationError as e:
            dropped += 1
            logger.warning(
                "remote_row_dropped",
                record_type=record_type.__name__,
                position=position,
                errors=[err["loc"] for err in e.errors()],
            )

    return Envelope[record_type](
        success=envelope.success,
        message=envelope.message,
        total=envelope.total,
        filtered=envelope.filtered,
        records=records,
        dropped=dropped,
    )


def decode_categories(raw: Union[bytes, str]) -> Envelope[RemoteCategory]:
    """Decode a getCategories response."""
    return decode_envelope(raw, RemoteCategory)


def decode_payment_methods(raw: Union[bytes, str]) -> Envelope[RemotePaymentMethod]:
    """Decode a getPaymentMethods response."""
    return decode_envelope(raw, RemotePaymentMethod)


def decode_transactions(raw: Union[bytes, str]) -> Envelope[RemoteTransaction]:
    """Decode a getTransactions response."""
    return decode_envelope(raw, RemoteTransaction)


def sort_by_index(records: list[RecordT]) -> list[RecordT]:
    """Order records by sort_index, then name. Stable for full ties."""
    return sorted(records, key=lambda r: (r.sort_index, r.name.lower()))
