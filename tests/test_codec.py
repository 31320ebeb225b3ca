"""Tests for the Firestore document codec."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from sms_otp.database import codec
from sms_otp.models.values import (
    BooleanValue,
    IntegerValue,
    NullValue,
    StringValue,
    TimestampValue,
)


@pytest.mark.parametrize(
    "values",
    [
        {"name": "Alice"},
        {"count": 42, "negative": -3, "zero": 0},
        {"on": True, "off": False},
        {"at": datetime(2025, 1, 1, 12, 30, 15, 123456, tzinfo=UTC)},
        {"nothing": None},
        {
            "currentOtpCode": "123456",
            "otpExpiresAt": datetime(2025, 6, 1, tzinfo=UTC),
            "isPhoneVerified": True,
            "attempts": 0,
            "note": None,
        },
    ],
)
def test_round_trip(values):
    assert codec.decode(codec.encode(values)) == values


def test_encode_wire_shapes():
    doc = codec.encode(
        {
            "s": "x",
            "i": 5,
            "b": True,
            "t": datetime(2025, 1, 1, tzinfo=UTC),
            "n": None,
        }
    )
    assert doc == {
        "fields": {
            "s": {"stringValue": "x"},
            "i": {"integerValue": "5"},
            "b": {"booleanValue": True},
            "t": {"timestampValue": "2025-01-01T00:00:00Z"},
            "n": {"nullValue": None},
        }
    }


def test_bool_is_not_encoded_as_integer():
    assert codec.encode({"flag": False})["fields"]["flag"] == {"booleanValue": False}


def test_unsupported_types_are_omitted():
    doc = codec.encode({"keep": "yes", "nested": {"a": 1}, "items": [1, 2], "ratio": 0.5})
    assert doc == {"fields": {"keep": {"stringValue": "yes"}}}


def test_timestamp_is_normalized_to_utc():
    local = datetime(2025, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    doc = codec.encode({"t": local})
    assert doc["fields"]["t"] == {"timestampValue": "2025-01-01T12:00:00Z"}
    assert codec.decode(doc)["t"] == local


def test_naive_timestamp_is_treated_as_utc():
    doc = codec.encode({"t": datetime(2025, 1, 1, 8, 0)})
    assert doc["fields"]["t"] == {"timestampValue": "2025-01-01T08:00:00Z"}


def test_decode_integer_from_string():
    assert codec.decode({"fields": {"n": {"integerValue": "9001"}}}) == {"n": 9001}


def test_decode_nanosecond_timestamp():
    doc = {"fields": {"t": {"timestampValue": "2025-01-01T00:00:00.123456789Z"}}}
    assert codec.decode(doc)["t"] == datetime(2025, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)


def test_decode_document_without_fields():
    assert codec.decode({"name": "projects/p/databases/(default)/documents/users/u1"}) is None
    assert codec.decode(None) is None


def test_decode_empty_field_set():
    assert codec.decode({"fields": {}}) == {}


def test_decode_skips_unknown_tags():
    doc = {
        "fields": {
            "ok": {"stringValue": "v"},
            "m": {"mapValue": {"fields": {}}},
            "d": {"doubleValue": 1.5},
        }
    }
    assert codec.decode(doc) == {"ok": "v"}


def test_from_native_tagged_union():
    assert codec.from_native("a") == StringValue("a")
    assert codec.from_native(3) == IntegerValue(3)
    assert codec.from_native(True) == BooleanValue(True)
    assert codec.from_native(None) == NullValue()
    ts = datetime(2025, 1, 1, tzinfo=UTC)
    assert codec.from_native(ts) == TimestampValue(ts)
    assert codec.from_native(1.5) is None
