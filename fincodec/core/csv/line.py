"""
CSV line models.

A Line is an ordered, immutable sequence of fields plus the delimiter and
enclosure used to produce it. HeaderLine adds name lookup, DataLine adds
name-based access once paired with a header.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, Field

from fincodec.core.errors import ConstraintError, Location, StructuralError

from .field import CsvField
from .models import DEFAULT_DELIMITER, DEFAULT_ENCLOSURE, check_dialect
from .splitter import tokenize_line

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .columns import ColumnKey, ColumnWidthConfig
    from .typed import TypedValue


class Line(BaseModel, frozen=True):
    """An ordered sequence of fields."""

    fields: tuple[CsvField, ...] = Field(default=())
    delimiter: str = Field(default=DEFAULT_DELIMITER, min_length=1, max_length=1)
    enclosure: str = Field(default=DEFAULT_ENCLOSURE, min_length=1, max_length=1)

    model_config = {"frozen": True}

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_string(
        cls,
        text: str,
        delimiter: str = DEFAULT_DELIMITER,
        enclosure: str = DEFAULT_ENCLOSURE,
        *,
        line_no: int | None = None,
    ) -> Self:
        """
        Parse one logical line.

        Raises:
            GrammarError: Invalid delimiter/enclosure or malformed quoting
        """
        check_dialect(delimiter, enclosure)
        tokens = tokenize_line(text, delimiter, enclosure, line_no=line_no)
        return cls(
            fields=tuple(CsvField.parse(token, enclosure) for token in tokens),
            delimiter=delimiter,
            enclosure=enclosure,
        )

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        delimiter: str = DEFAULT_DELIMITER,
        enclosure: str = DEFAULT_ENCLOSURE,
        *,
        quoted: bool = False,
    ) -> Self:
        """Build a line from Python values (None becomes an absent field)."""
        check_dialect(delimiter, enclosure)
        return cls(
            fields=tuple(
                CsvField.from_value(v, quoted=quoted, enclosure=enclosure) for v in values
            ),
            delimiter=delimiter,
            enclosure=enclosure,
        )

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def get_field(self, index: int) -> CsvField:
        if not 0 <= index < len(self.fields):
            raise ConstraintError.create(
                "FC-CON-005",
                "Field index out of range",
                f"Index {index} outside 0..{len(self.fields) - 1}",
                context={"index": index, "count": len(self.fields)},
            )
        return self.fields[index]

    def count_fields(self) -> int:
        return len(self.fields)

    def count_quoted_fields(self) -> int:
        return sum(1 for f in self.fields if f.quoted)

    def values(self) -> list[str]:
        return [f.value for f in self.fields]

    def enclosure_repeat_range(self, include_unquoted: bool = False) -> tuple[int, int]:
        """Return (min, max) enclosure repeat over the (quoted) fields."""
        repeats = [
            f.enclosure_repeat for f in self.fields if include_unquoted or f.quoted
        ]
        if not repeats:
            return (0, 0)
        return (min(repeats), max(repeats))

    def with_field(self, index: int, field: CsvField) -> Self:
        self.get_field(index)
        fields = list(self.fields)
        fields[index] = field
        return self.model_copy(update={"fields": tuple(fields)})

    def with_fields(self, fields: Sequence[CsvField]) -> Self:
        return self.model_copy(update={"fields": tuple(fields)})

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_string(
        self,
        delimiter: str | None = None,
        enclosure: str | None = None,
        *,
        enclosure_repeat: int | None = None,
        column_widths: ColumnWidthConfig | None = None,
        column_names: Sequence[str] | None = None,
    ) -> str:
        """
        Serialize the line.

        Args:
            delimiter: Output delimiter (defaults to the line's own)
            enclosure: Output enclosure (defaults to the line's own)
            enclosure_repeat: Forced enclosure count for every field
            column_widths: Width limits applied to rendered values
            column_names: Header names used as width keys (else indices)
        """
        delimiter = delimiter or self.delimiter
        enclosure = enclosure or self.enclosure
        check_dialect(delimiter, enclosure)

        parts = []
        for index, field in enumerate(self.fields):
            if field.enclosure != enclosure:
                field = field.model_copy(update={"enclosure": enclosure})
            rendered = self._render_value(field, index, column_widths, column_names)
            parts.append(
                field.to_string(delimiter, enclosure_repeat=enclosure_repeat, value=rendered)
            )
        return delimiter.join(parts)

    def _render_value(
        self,
        field: CsvField,
        index: int,
        column_widths: ColumnWidthConfig | None,
        column_names: Sequence[str] | None,
    ) -> str:
        if column_widths is None:
            return field.value
        return column_widths.truncate_value(field.value, _column_key(index, column_names))

    def equals(self, other: Line) -> bool:
        """Compare delimiter, enclosure, field count and field values."""
        return (
            self.delimiter == other.delimiter
            and self.enclosure == other.enclosure
            and self.count_fields() == other.count_fields()
            and self.values() == other.values()
        )

    def __str__(self) -> str:
        return self.to_string()


class HeaderLine(Line, frozen=True):
    """Header line with column name lookup."""

    def names(self) -> list[str]:
        return self.values()

    def index_of(self, name: str) -> int:
        """Column index for name, or -1."""
        for index, field in enumerate(self.fields):
            if field.value == name:
                return index
        return -1

    def has_column(self, name: str) -> bool:
        return self.index_of(name) >= 0

    def _render_value(
        self,
        field: CsvField,
        index: int,
        column_widths: ColumnWidthConfig | None,
        column_names: Sequence[str] | None,
    ) -> str:
        # Header names are never truncated
        return field.value


class DataLine(Line, frozen=True):
    """Data row. Name-based access requires the document's header."""

    def resolve_index(self, column: ColumnKey, header: HeaderLine | None = None) -> int:
        """Resolve a column name or index to a field index."""
        if isinstance(column, int):
            return column
        if header is None:
            raise StructuralError.create(
                "FC-STR-003",
                "Missing header",
                f"Column {column!r} cannot be resolved without a header",
                context={"column": column},
            )
        index = header.index_of(column)
        if index < 0:
            raise StructuralError.create(
                "FC-STR-007",
                "Unknown column",
                f"Column {column!r} not found in header",
                location=Location(field=column),
                context={"column": column, "available": header.names()},
            )
        return index

    def get_value(
        self,
        column: ColumnKey,
        header: HeaderLine | None = None,
        column_widths: ColumnWidthConfig | None = None,
    ) -> str:
        """
        Value of a column, truncated per column_widths when given.

        The width key is the header name when a header is present, else
        the index.
        """
        index = self.resolve_index(column, header)
        value = self.get_field(index).value
        if column_widths is None:
            return value
        names = header.names() if header is not None else None
        return column_widths.truncate_value(value, _column_key(index, names))

    def get_typed(self, column: ColumnKey, header: HeaderLine | None = None) -> TypedValue | None:
        return self.get_field(self.resolve_index(column, header)).typed_value()

    def as_dict(self, header: HeaderLine | None = None) -> dict[ColumnKey, str]:
        """Values keyed by header name (or index beyond the header / without one)."""
        names = header.names() if header is not None else []
        return {
            _column_key(index, names): field.value for index, field in enumerate(self.fields)
        }


def _column_key(index: int, column_names: Sequence[str] | None) -> ColumnKey:
    if column_names is not None and index < len(column_names):
        return column_names[index]
    return index
