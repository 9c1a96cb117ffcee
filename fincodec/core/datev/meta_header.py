"""
DATEV meta header line.

The first line of a DATEV EXTF file. Values are stored by field key, seeded
from the version definition's defaults, and validated against the field
pattern on every assignment.

Quoting found in a parsed line is kept per field so that an unchanged header
serializes back to its source; other fields are quoted per descriptor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from fincodec.core.csv.field import CsvField
from fincodec.core.csv.line import Line
from fincodec.core.csv.models import DATEV_DIALECT
from fincodec.core.enums import LockFlag
from fincodec.core.errors import GrammarError, Location

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .definitions import MetaFieldDescriptor, VersionDefinition

logger = structlog.get_logger()

FieldRef = str | int


class MetaHeaderLine:
    """Meta header values for exactly one version definition."""

    def __init__(self, definition: VersionDefinition) -> None:
        self.definition = definition
        self._values: dict[str, str | None] = {
            descriptor.key: descriptor.default for descriptor in definition.meta_fields
        }
        # Enclosure repeat seen in the source line, by field key
        self._source_quoting: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_values(
        cls,
        values: Sequence[str],
        definition: VersionDefinition,
    ) -> MetaHeaderLine:
        """
        Build from parsed values, validating each one.

        Empty values are stored as absent. Extra values beyond the
        definition are ignored and missing trailing values stay absent;
        both cases are logged.
        """
        expected = definition.field_count()
        if len(values) != expected:
            logger.warning(
                "Meta header field count mismatch",
                version=definition.version,
                expected=expected,
                actual=len(values),
            )

        header = cls(definition)
        for descriptor, value in zip(definition.meta_fields, values, strict=False):
            header.set(descriptor, value if value != "" else None)
        for descriptor in definition.meta_fields[len(values) :]:
            header._values[descriptor.key] = None
        return header

    @classmethod
    def from_line(cls, line: Line, definition: VersionDefinition) -> MetaHeaderLine:
        """Build from a parsed line, keeping the quoting of each field."""
        header = cls.from_values(line.values(), definition)
        for descriptor, field in zip(definition.meta_fields, line.fields, strict=False):
            header._source_quoting[descriptor.key] = field.enclosure_repeat if field.quoted else 0
        return header

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def set(self, field: FieldRef | MetaFieldDescriptor, value: Any) -> MetaHeaderLine:
        """
        Assign a value after validating it against the field pattern.

        None marks the field absent and is not validated.

        Raises:
            KeyError: Field not part of the definition
            GrammarError: Value does not match the pattern
        """
        descriptor = self.definition.field(field)
        self._source_quoting.pop(descriptor.key, None)
        if value is None:
            self._values[descriptor.key] = None
            return self

        text = str(value)
        if not descriptor.matches(text):
            raise GrammarError.create(
                "FC-GRM-004",
                "Invalid meta header value",
                f"Invalid value for {descriptor.label}: {text!r} "
                f"(pattern {descriptor.pattern})",
                location=Location(line_no=1, column=descriptor.position, field=descriptor.label),
                context={"raw": text, "pattern": descriptor.pattern, "field": descriptor.key},
            )
        self._values[descriptor.key] = text
        return self

    def get(self, field: FieldRef | MetaFieldDescriptor) -> str | None:
        return self._values.get(self.definition.field(field).key)

    def to_dict(self) -> dict[str, str | None]:
        return dict(self._values)

    def values(self) -> list[str | None]:
        return [self._values.get(d.key) for d in self.definition.meta_fields]

    @property
    def version(self) -> int:
        return self.definition.version

    @property
    def marker(self) -> str | None:
        return self.get(1)

    @property
    def format_category(self) -> int | None:
        value = self.get("formatkategorie")
        return int(value) if value else None

    @property
    def format_name(self) -> str | None:
        return self.get("formatname")

    def lock_flag(self) -> LockFlag:
        value = self.get("festschreibung")
        return LockFlag.from_int(int(value)) if value else LockFlag.NONE

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_line(
        self,
        delimiter: str = DATEV_DIALECT.delimiter,
        enclosure: str = DATEV_DIALECT.enclosure,
    ) -> Line:
        """Fields in definition order. Absent values render empty."""
        fields = []
        for descriptor in self.definition.meta_fields:
            value = self._values.get(descriptor.key) or ""
            repeat = self._source_quoting.get(descriptor.key, 1 if descriptor.quoted else 0)
            fields.append(
                CsvField(
                    value=value,
                    quoted=repeat > 0,
                    enclosure_repeat=repeat,
                    enclosure=enclosure,
                )
            )
        return Line(fields=tuple(fields), delimiter=delimiter, enclosure=enclosure)

    def to_string(
        self,
        delimiter: str = DATEV_DIALECT.delimiter,
        enclosure: str = DATEV_DIALECT.enclosure,
    ) -> str:
        return self.to_line(delimiter, enclosure).to_string()

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"MetaHeaderLine(version={self.version}, marker={self.marker!r})"
