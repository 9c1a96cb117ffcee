"""
CSV field model.

A field keeps the logical value together with the quoting state found in the
source (quoted flag and enclosure repeat), so that an unmodified field
serializes back to its source text.

Enclosure repeat is the number of consecutive enclosure characters bounding
the value:
- 0: unquoted
- 1: conventional quoting, inner enclosures escaped by doubling
- >1: repeated enclosures (""value""), inner text kept verbatim
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

from .models import DEFAULT_DELIMITER, DEFAULT_ENCLOSURE
from .typed import TypedValue, parse_typed_value


@lru_cache(maxsize=16)
def _boundary_pattern(enclosure: str) -> re.Pattern[str]:
    enc = re.escape(enclosure)
    return re.compile(rf"^({enc}+)(.*?)({enc}+)$", re.DOTALL)


class CsvField(BaseModel, frozen=True):
    """
    A single CSV field.

    Fields are immutable. Use the with_* methods to derive modified copies.
    """

    value: str = Field(default="", description="Logical (unescaped) value")
    quoted: bool = Field(default=False, description="Source enclosed the value")
    enclosure_repeat: int = Field(
        default=0,
        ge=0,
        description="Consecutive enclosure characters at the field boundary",
    )
    enclosure: str = Field(default=DEFAULT_ENCLOSURE, min_length=1, max_length=1)
    raw: str | None = Field(
        default=None,
        description="Exact source token, None for fields built from values",
    )
    is_null: bool = Field(default=False, description="Field represents an absent value")

    model_config = {"frozen": True}

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def parse(cls, raw: str, enclosure: str = DEFAULT_ENCLOSURE) -> CsvField:
        '''
        Analyse a raw token.

        Odd runs on both sides are conventional quoting, surplus enclosures
        being escaped ones. Other runs are repeated quoting.

        Examples (enclosure '"'):
            '"A ""q"" text"' -> value 'A "q" text', repeat 1
            '""ABC""'        -> value 'ABC', repeat 2
            '""""x"""'       -> value '"x', repeat 3
            '"""x"",y"'      -> value '"x",y', repeat 1
            '"ABC'           -> unquoted, value '"ABC'
        '''
        text = raw.strip()

        if text and text == enclosure * len(text):
            return cls(
                value="",
                quoted=True,
                enclosure_repeat=max(1, len(text) // 2),
                enclosure=enclosure,
                raw=raw,
            )

        match = _boundary_pattern(enclosure).match(text)
        if match is None:
            return cls(value=text, enclosure=enclosure, raw=raw)

        start_run = len(match.group(1))
        inner = match.group(2)
        end_run = len(match.group(3))

        if start_run % 2 == 1 and end_run % 2 == 1:
            return cls(
                value=text[1:-1].replace(enclosure * 2, enclosure),
                quoted=True,
                enclosure_repeat=1,
                enclosure=enclosure,
                raw=raw,
            )

        repeat = min(start_run, end_run)
        # Surplus enclosures of the longer run belong to the value
        value = (
            enclosure * (start_run - repeat) + inner + enclosure * (end_run - repeat)
        )
        if repeat == 1:
            value = value.replace(enclosure * 2, enclosure)

        return cls(
            value=value,
            quoted=True,
            enclosure_repeat=repeat,
            enclosure=enclosure,
            raw=raw,
        )

    @classmethod
    def from_value(
        cls,
        value: Any,
        *,
        quoted: bool = False,
        enclosure: str = DEFAULT_ENCLOSURE,
    ) -> CsvField:
        """Build a field from a Python value. None yields an absent field."""
        if value is None:
            return cls(enclosure=enclosure, is_null=True)
        return cls(
            value=_stringify(value),
            quoted=quoted,
            enclosure_repeat=1 if quoted else 0,
            enclosure=enclosure,
        )

    # -------------------------------------------------------------------------
    # "with" style updates
    # -------------------------------------------------------------------------

    def with_value(self, value: Any) -> CsvField:
        if value is None:
            return self.model_copy(update={"value": "", "is_null": True, "raw": None})
        return self.model_copy(update={"value": _stringify(value), "is_null": False, "raw": None})

    def with_quoted(self, quoted: bool) -> CsvField:
        repeat = max(1, self.enclosure_repeat) if quoted else 0
        return self.model_copy(update={"quoted": quoted, "enclosure_repeat": repeat, "raw": None})

    def with_enclosure_repeat(self, repeat: int) -> CsvField:
        if repeat < 0:
            raise ValueError("Enclosure repeat must not be negative")
        return self.model_copy(
            update={"enclosure_repeat": repeat, "quoted": repeat > 0, "raw": None}
        )

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def typed_value(self) -> TypedValue | None:
        """Classified value (int, float, bool, datetime or str); None if absent."""
        if self.is_null:
            return None
        return parse_typed_value(self.value)

    def is_empty(self) -> bool:
        return self.value == ""

    def needs_quoting(self, delimiter: str = DEFAULT_DELIMITER) -> bool:
        """True if the value cannot be written unquoted."""
        return any(c in self.value for c in (delimiter, self.enclosure, "\r", "\n"))

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_string(
        self,
        delimiter: str = DEFAULT_DELIMITER,
        *,
        enclosure_repeat: int | None = None,
        value: str | None = None,
    ) -> str:
        """
        Serialize the field.

        Args:
            delimiter: Delimiter of the surrounding line
            enclosure_repeat: Forced enclosure count (0 = unquoted unless required)
            value: Rendered value override (e.g. truncated), defaults to self.value

        An absent field always renders empty. An empty string renders empty
        unless quoting is forced or was present in the source.
        """
        if self.is_null:
            return ""

        text = self.value if value is None else value

        if enclosure_repeat is not None:
            repeat = enclosure_repeat
        else:
            repeat = max(1, self.enclosure_repeat) if self.quoted else 0

        if repeat == 0 and any(c in text for c in (delimiter, self.enclosure, "\r", "\n")):
            repeat = 1
        if repeat == 0:
            return text

        enc = self.enclosure
        if repeat == 1:
            text = text.replace(enc, enc * 2)
        return f"{enc * repeat}{text}{enc * repeat}"

    def __str__(self) -> str:
        return self.to_string()


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
