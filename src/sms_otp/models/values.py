"""Typed Firestore field values.

Each value kind is a small frozen dataclass that knows its wire tag.
``FieldValue`` is the union of all supported kinds; anything else the
store may hold (maps, arrays, doubles, ...) is not modelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Union


@dataclass(frozen=True)
class StringValue:
    tag: ClassVar[str] = "stringValue"
    value: str


@dataclass(frozen=True)
class IntegerValue:
    tag: ClassVar[str] = "integerValue"
    value: int


@dataclass(frozen=True)
class BooleanValue:
    tag: ClassVar[str] = "booleanValue"
    value: bool


@dataclass(frozen=True)
class TimestampValue:
    tag: ClassVar[str] = "timestampValue"
    value: datetime


@dataclass(frozen=True)
class NullValue:
    tag: ClassVar[str] = "nullValue"
    value: None = None


FieldValue = Union[StringValue, IntegerValue, BooleanValue, TimestampValue, NullValue]

VALUE_KINDS: tuple[type, ...] = (
    StringValue,
    IntegerValue,
    BooleanValue,
    TimestampValue,
    NullValue,
)
