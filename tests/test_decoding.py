"""
Tests for the tolerant field decoders and the remote record decoder.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from budget_sync.decoding import (
    decode_amount,
    decode_emoji,
    decode_flag,
    decode_sort_index,
    decode_text,
    decode_timestamp,
)
from budget_sync.decoding.records import (
    decode_categories,
    decode_envelope,
    decode_payment_methods,
    decode_transactions,
    sort_by_index,
)
from budget_sync.errors import DecodeError
from budget_sync.models.remote import RemoteCategory, RemotePaymentMethod


def _body(data, **envelope) -> bytes:
    payload = {"success": True, "message": "ok", "total": len(data), "data": data}
    payload.update(envelope)
    return json.dumps(payload).encode("utf-8")


class TestFieldDecoders:
    """Tests for per-field decoding. None of these may raise."""

    @pytest.mark.parametrize("value, expected", [
        ("🍕", "🍕"),
        ("", ""),
        (0, ""),
        (3.5, ""),
        (None, ""),
        (True, ""),
        ({"a": 1}, ""),
    ])
    def test_decode_emoji(self, value, expected):
        """Strings pass through, everything else is empty."""
        assert decode_emoji(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (2, 2),
        (2.9, 2),
        (-1.5, -1),
        ("7", 7),
        (" 7 ", 7),
        ("seven", 0),
        ("1.5", 0),
        (None, 0),
        (float("nan"), 0),
        ([1], 0),
    ])
    def test_decode_sort_index(self, value, expected):
        """Numbers truncate, integer strings parse, the rest is 0."""
        assert decode_sort_index(value) == expected

    def test_decode_timestamp_with_zulu(self):
        """A trailing Z is UTC."""
        parsed = decode_timestamp("2025-03-05T10:30:00Z")
        assert parsed == datetime(2025, 3, 5, 10, 30, tzinfo=timezone.utc)

    def test_decode_timestamp_with_offset(self):
        """Explicit offsets are kept."""
        parsed = decode_timestamp("2025-03-05T10:30:00-03:00")
        assert parsed.utcoffset() == timedelta(hours=-3)

    def test_decode_timestamp_bare_date(self):
        """A bare date is midnight of that day."""
        assert decode_timestamp("2025-03-05") == datetime(2025, 3, 5)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 1741170600, {}])
    def test_decode_timestamp_unusable(self, value):
        """Null, absent and malformed values are 'no timestamp'."""
        assert decode_timestamp(value) is None

    @pytest.mark.parametrize("value, expected", [
        (150, Decimal("150")),
        (42.5, Decimal("42.5")),
        (-10.1, Decimal("-10.1")),
        ("12.34", Decimal("12.34")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        (None, Decimal("0")),
        (True, Decimal("0")),
    ])
    def test_decode_amount(self, value, expected):
        """Numbers and numeric strings become Decimal."""
        assert decode_amount(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        ("true", True),
        ("YES", True),
        ("no", False),
        (None, False),
    ])
    def test_decode_flag(self, value, expected):
        """Test flag decoding."""
        assert decode_flag(value) is expected

    def test_decode_text_drops_numbers(self):
        """A number in a text column is treated as an empty cell."""
        assert decode_text(0) == ""
        assert decode_text("Market") == "Market"


class TestRecordDecoder:
    """Tests for envelope and row decoding."""

    def test_payment_method_with_numeric_emoji(self):
        """Test the canonical tolerant row."""
        raw = (
            b'{"success":true,"message":"ok","total":1,"data":[{"remoteID":"pm-2",'
            b'"name":"Pix","emoji":0,"sortIndex":2,"timestamp":null}]}'
        )

        envelope = decode_payment_methods(raw)

        assert envelope.success is True
        assert envelope.total == 1
        assert len(envelope.records) == 1
        record = envelope.records[0]
        assert record.remote_id == "pm-2"
        assert record.emoji == ""
        assert record.sort_index == 2
        assert record.timestamp is None

    def test_string_sort_index_and_missing_fields(self):
        """Optional fields default, string sort indices parse."""
        raw = _body([{"remoteID": "c-1", "name": "Food", "sortIndex": "5"}])

        record = decode_categories(raw).records[0]

        assert record.sort_index == 5
        assert record.emoji == ""
        assert record.is_income is False

    def test_row_without_remote_id_is_dropped(self):
        """Rows missing identity fields are dropped, the batch survives."""
        raw = _body([
            {"remoteID": "c-1", "name": "Food"},
            {"name": "Orphan"},
            {"remoteID": "", "name": "Blank"},
            {"remoteID": 12, "name": "Numeric id"},
            {"remoteID": "c-2", "name": "Salary", "isIncome": True},
        ])

        envelope = decode_categories(raw)

        assert [r.remote_id for r in envelope.records] == ["c-1", "c-2"]
        assert envelope.dropped == 3
        assert envelope.records[1].is_income is True

    def test_non_object_row_is_dropped(self):
        """A row that is not an object counts as dropped."""
        envelope = decode_payment_methods(_body(["Pix", {"remoteID": "p", "name": "Pix"}]))
        assert len(envelope.records) == 1
        assert envelope.dropped == 1

    def test_order_is_preserved(self):
        """Rows come back in server order."""
        raw = _body([
            {"remoteID": "b", "name": "B", "sortIndex": 2},
            {"remoteID": "a", "name": "A", "sortIndex": 1},
        ])
        assert [r.remote_id for r in decode_categories(raw).records] == ["b", "a"]

    def test_transaction_row(self):
        """Test transaction decoding with loose cells."""
        raw = _body([{
            "remoteID": "t-1",
            "amount": "-42.50",
            "categoryName": "Food",
            "paymentMethod": 0,
            "dateISO": "2025-03-10",
            "note": None,
        }])

        record = decode_transactions(raw).records[0]

        assert record.amount == Decimal("-42.50")
        assert record.payment_method == ""
        assert record.note == ""
        assert record.date == datetime(2025, 3, 10)

    def test_transaction_without_date_has_no_entry(self):
        """A row without a usable date can't be aggregated."""
        record = decode_transactions(_body([{"remoteID": "t", "amount": 5}])).records[0]
        assert record.date is None
        assert record.to_entry() is None

    def test_unknown_fields_are_ignored(self):
        """Extra columns don't break decoding."""
        raw = _body([{"remoteID": "p", "name": "Cash", "color": "green"}])
        assert decode_payment_methods(raw).records[0].name == "Cash"

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"[]",
        b'{"message":"ok","data":[]}',
        b'{"success":"yes","message":"ok","data":[]}',
        b'{"success":true,"message":"ok","data":{}}',
        b'{"success":true,"data":[]}',
        b"\xff\xfe",
    ])
    def test_malformed_envelope(self, raw):
        """A broken envelope fails the whole call."""
        with pytest.raises(DecodeError) as exc_info:
            decode_envelope(raw, RemoteCategory)
        assert exc_info.value.reason == "envelope"

    def test_empty_data(self):
        """An empty data array is a valid, empty result."""
        envelope = decode_envelope(_body([]), RemotePaymentMethod)
        assert envelope.records == []
        assert envelope.data == []
        assert envelope.dropped == 0

    @pytest.mark.parametrize("total, expected", [
        ("1", 1),
        (1.0, 1),
        ("many", None),
        (None, None),
        ([], None),
    ])
    def test_loose_counters_keep_the_batch(self, total, expected):
        """A mistyped total never discards the rows."""
        raw = json.dumps({
            "success": True,
            "message": "ok",
            "total": total,
            "filtered": "2",
            "data": [{"remoteID": "pm-2", "name": "Pix"}],
        }).encode("utf-8")

        envelope = decode_payment_methods(raw)

        assert envelope.total == expected
        assert envelope.filtered == 2
        assert [r.remote_id for r in envelope.records] == ["pm-2"]


class TestSortByIndex:
    """Tests for catalog ordering."""

    def test_sorted_by_index_then_name(self):
        """Ties on sort_index fall back to the name."""
        raw = _body([
            {"remoteID": "1", "name": "zeta", "sortIndex": 1},
            {"remoteID": "2", "name": "Alpha", "sortIndex": 1},
            {"remoteID": "3", "name": "mid", "sortIndex": 0},
        ])

        ordered = sort_by_index(decode_categories(raw).records)

        assert [r.remote_id for r in ordered] == ["3", "2", "1"]
