"""
Typed value classification for CSV field content.

Field values are always stored as text. This module derives a typed view
(int, float, bool, datetime or str) for structured access. The typed value is
never used for writing, so the original formatting stays round-trip safe.

German number formatting (comma decimals, dot thousands) is accepted.
Numbers with a leading zero ("0123", "007,5") stay strings since they are
usually identifiers such as account numbers.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

TypedValue = int | float | bool | datetime | str

# Unix timestamps between 2000-01-01 and 2038-01-19 (10 digits)
_TIMESTAMP_MIN = 946_684_800
_TIMESTAMP_MAX = 2_147_483_647

_TIMESTAMP_PATTERN = re.compile(r"^\d{10}$")
_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_FLOAT_PATTERN = re.compile(
    r"^[+-]?(?:\d{1,3}(?:\.\d{3})+|\d+),\d+$"  # German: 1.234,56 / 12,5
    r"|^[+-]?\d+\.\d+$"  # English: 12.5
)

_TRUE_WORDS = frozenset({"true", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "no", "off"})

_DATE_FORMATS = (
    "%d.%m.%Y",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y %H:%M:%S",
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d.%m.%y",
)


def parse_typed_value(value: str) -> TypedValue:
    """
    Classify a field value.

    Order: empty, unix timestamp, int, float, bool, date, string.

    Args:
        value: Logical (unescaped) field value

    Returns:
        Typed value, or the unchanged string if nothing matches
    """
    text = value.strip()
    if text == "":
        return value

    if _TIMESTAMP_PATTERN.match(text):
        timestamp = int(text)
        if _TIMESTAMP_MIN <= timestamp <= _TIMESTAMP_MAX:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    if _INT_PATTERN.match(text):
        if _has_leading_zero(text):
            return value
        return int(text)

    if _FLOAT_PATTERN.match(text):
        if _has_leading_zero(text):
            return value
        return _parse_float(text)

    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False

    parsed = _parse_datetime(text)
    if parsed is not None:
        return parsed

    return value


def _has_leading_zero(text: str) -> bool:
    """True for '0123' or '01,5', false for '0', '0,5' or '-0.25'."""
    digits = text.lstrip("+-")
    integer_part = re.split(r"[.,]", digits, maxsplit=1)[0]
    return len(integer_part) > 1 and integer_part.startswith("0")


def _parse_float(text: str) -> float:
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    return float(text)


def _parse_datetime(text: str) -> datetime | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None
