"""Raw cell values as they arrive from an untrusted source row.

Every cell is classified into one of four variants before any transform looks
at it, so normalizers dispatch on a closed set of types instead of probing the
value with ad-hoc checks.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union


@dataclass(frozen=True)
class Absent:
    """Missing cell."""


@dataclass(frozen=True)
class Text:
    """Textual cell, untrimmed."""

    value: str


@dataclass(frozen=True)
class Number:
    """Numeric cell."""

    value: float | int


@dataclass(frozen=True)
class NativeDate:
    """Cell already holding a date or datetime."""

    value: date | datetime


RawValue = Union[Absent, Text, Number, NativeDate]

ABSENT = Absent()


def classify(value: Any) -> RawValue:
    """Wrap a plain Python value in its RawValue variant.

    Args:
        value: Cell content of unknown type

    Returns:
        RawValue variant
    """
    if isinstance(value, (Absent, Text, Number, NativeDate)):
        return value
    if value is None:
        return ABSENT
    if isinstance(value, str):
        return Text(value)
    # bool is an int subclass but never a meaningful date or title
    if isinstance(value, bool):
        return ABSENT
    if isinstance(value, (int, float)):
        return Number(value)
    if isinstance(value, (datetime, date)):
        return NativeDate(value)
    return Text(str(value))
