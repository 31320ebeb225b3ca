"""Document codec — native Python values <-> Firestore typed field wrappers.

Supported kinds: ``str``, ``int``, ``bool``, ``datetime`` and ``None``.
Any other native type (dicts, lists, floats, ...) is silently dropped by
:func:`encode`, and unknown wire tags are skipped by :func:`decode`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from sms_otp.models.values import (
    BooleanValue,
    FieldValue,
    IntegerValue,
    NullValue,
    StringValue,
    TimestampValue,
)

# Firestore emits up to nanosecond precision; datetime holds microseconds.
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


# ── Native <-> typed value ───────────────────────────────

def from_native(obj: Any) -> FieldValue | None:
    """Wrap a native value, or return ``None`` if its type is unsupported."""
    if obj is None:
        return NullValue()
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return BooleanValue(obj)
    if isinstance(obj, int):
        return IntegerValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, datetime):
        return TimestampValue(obj)
    return None


# ── Typed value <-> wire ─────────────────────────────────

def to_wire(value: FieldValue) -> dict[str, Any]:
    """Render a typed value as its single-key wire wrapper."""
    if isinstance(value, IntegerValue):
        return {value.tag: str(value.value)}
    if isinstance(value, TimestampValue):
        return {value.tag: format_timestamp(value.value)}
    return {value.tag: value.value}


def from_wire(wrapper: Mapping[str, Any]) -> FieldValue | None:
    """Parse a wire wrapper; ``None`` if it carries no supported tag."""
    if StringValue.tag in wrapper:
        return StringValue(wrapper[StringValue.tag])
    if IntegerValue.tag in wrapper:
        return IntegerValue(int(wrapper[IntegerValue.tag]))
    if BooleanValue.tag in wrapper:
        return BooleanValue(bool(wrapper[BooleanValue.tag]))
    if TimestampValue.tag in wrapper:
        return TimestampValue(parse_timestamp(wrapper[TimestampValue.tag]))
    if NullValue.tag in wrapper:
        return NullValue()
    return None


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware ``datetime``."""
    text = _FRACTION_RE.sub(r".\1", raw.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ── Documents ────────────────────────────────────────────

def decode(document: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Flatten a Firestore document into ``{name: native value}``.

    A document without a ``fields`` key (or ``None``) decodes to ``None``.
    """
    if not document or "fields" not in document:
        return None
    result: dict[str, Any] = {}
    for name, wrapper in document["fields"].items():
        value = from_wire(wrapper)
        if value is not None:
            result[name] = value.value
    return result


def encode(values: Mapping[str, Any]) -> dict[str, Any]:
    """Build a Firestore document body from native values.

    Values of unsupported types are omitted from the output.
    """
    fields: dict[str, Any] = {}
    for name, obj in values.items():
        value = from_native(obj)
        if value is not None:
            fields[name] = to_wire(value)
    return {"fields": fields}
