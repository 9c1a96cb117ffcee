"""
CSV document model.

A Document is an optional header line plus ordered data rows. Consistency
(every row has the reference field count) is reported, never enforced by
dropping rows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

import structlog
from pydantic import BaseModel, Field

from fincodec.core.errors import (
    CodecIssue,
    ConstraintError,
    Location,
    StructuralError,
)

from .columns import ColumnWidthConfig
from .field import CsvField
from .line import DataLine, HeaderLine
from .models import DEFAULT_DELIMITER, DEFAULT_ENCLOSURE
from .writer import write_text_atomic

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from .columns import ColumnKey

logger = structlog.get_logger()


class Document(BaseModel, frozen=True):
    """Generic delimited document."""

    header: HeaderLine | None = None
    rows: tuple[DataLine, ...] = Field(default=())
    delimiter: str = Field(default=DEFAULT_DELIMITER, min_length=1, max_length=1)
    enclosure: str = Field(default=DEFAULT_ENCLOSURE, min_length=1, max_length=1)
    column_widths: ColumnWidthConfig | None = Field(default=None, repr=False)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def has_header(self) -> bool:
        return self.header is not None

    def has_column(self, name: str) -> bool:
        return self.header is not None and self.header.has_column(name)

    def column_names(self) -> list[str]:
        return self.header.names() if self.header is not None else []

    def column_index(self, name: str) -> int:
        """Index of a header column, or -1."""
        return self.header.index_of(name) if self.header is not None else -1

    def count_rows(self) -> int:
        return len(self.rows)

    def get_row(self, index: int) -> DataLine:
        if not 0 <= index < len(self.rows):
            raise ConstraintError.create(
                "FC-CON-005",
                "Row index out of range",
                f"Row {index} outside 0..{len(self.rows) - 1}",
                context={"index": index, "count": len(self.rows)},
            )
        return self.rows[index]

    # -------------------------------------------------------------------------
    # Consistency
    # -------------------------------------------------------------------------

    def reference_field_count(self) -> int | None:
        """Header field count, else the first row's, else None."""
        if self.header is not None:
            return self.header.count_fields()
        if self.rows:
            return self.rows[0].count_fields()
        return None

    def consistency_issues(self) -> list[CodecIssue]:
        """One issue per row whose field count differs from the reference count."""
        expected = self.reference_field_count()
        if expected is None:
            return []

        issues = []
        for index, row in enumerate(self.rows):
            actual = row.count_fields()
            if actual != expected:
                issues.append(
                    CodecIssue.error(
                        "FC-STR-002",
                        "Inconsistent row",
                        f"Row {index} has {actual} fields, expected {expected}",
                        location=Location(row=index),
                        context={"expected": expected, "actual": actual},
                    )
                )
        return issues

    def inconsistent_rows(self) -> list[int]:
        return [issue.location.row for issue in self.consistency_issues() if issue.location.row is not None]

    def is_consistent(self) -> bool:
        return not self.consistency_issues()

    # -------------------------------------------------------------------------
    # Column access
    # -------------------------------------------------------------------------

    def fields_by_index(self, index: int) -> list[CsvField]:
        """Field at index for every row; rows too short yield absent fields."""
        if index < 0:
            raise ConstraintError.create(
                "FC-CON-005",
                "Negative column index",
                f"Column index must not be negative, got {index}",
                context={"index": index},
            )
        return [
            row.fields[index]
            if index < row.count_fields()
            else CsvField(enclosure=self.enclosure, is_null=True)
            for row in self.rows
        ]

    def column_by_index(self, index: int) -> list[str]:
        return [field.value for field in self.fields_by_index(index)]

    def fields_by_name(self, name: str) -> list[CsvField]:
        index = self.column_index(name)
        if index < 0:
            raise StructuralError.create(
                "FC-STR-007",
                "Unknown column",
                f"Column {name!r} not found in header",
                location=Location(field=name),
                context={"column": name, "available": self.column_names()},
            )
        return self.fields_by_index(index)

    def column_by_name(self, name: str) -> list[str]:
        return [field.value for field in self.fields_by_name(name)]

    def get_value(self, row_index: int, column: ColumnKey) -> str:
        """Row value with this document's column widths applied."""
        return self.get_row(row_index).get_value(column, self.header, self.column_widths)

    def to_records(self) -> list[dict[ColumnKey, str]]:
        """Rows as dicts keyed by header name (or index without a header)."""
        return [row.as_dict(self.header) for row in self.rows]

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_string(
        self,
        delimiter: str | None = None,
        enclosure: str | None = None,
        enclosure_repeat: int | None = None,
        *,
        line_ending: str = "\n",
    ) -> str:
        """
        Serialize header and rows.

        Column widths (if attached) truncate data values only. The document
        itself is left unchanged.
        """
        delimiter = delimiter or self.delimiter
        enclosure = enclosure or self.enclosure
        names = self.column_names() or None

        lines = []
        if self.header is not None:
            lines.append(
                self.header.to_string(delimiter, enclosure, enclosure_repeat=enclosure_repeat)
            )
        for row in self.rows:
            lines.append(
                row.to_string(
                    delimiter,
                    enclosure,
                    enclosure_repeat=enclosure_repeat,
                    column_widths=self.column_widths,
                    column_names=names,
                )
            )
        return line_ending.join(lines)

    def to_file(
        self,
        path: Path | str,
        *,
        encoding: str = "utf-8",
        delimiter: str | None = None,
        enclosure: str | None = None,
        enclosure_repeat: int | None = None,
        line_ending: str = "\n",
    ) -> Path:
        """Write the document atomically."""
        text = self.to_string(delimiter, enclosure, enclosure_repeat, line_ending=line_ending)
        return write_text_atomic(path, text, encoding=encoding)

    def with_column_widths(self, column_widths: ColumnWidthConfig | None) -> Self:
        return self.model_copy(update={"column_widths": column_widths})

    def equals(self, other: Document) -> bool:
        """Compare dialect, header and row values."""
        if self.delimiter != other.delimiter or self.enclosure != other.enclosure:
            return False
        if (self.header is None) != (other.header is None):
            return False
        if self.header is not None and other.header is not None:
            if not self.header.equals(other.header):
                return False
        if len(self.rows) != len(other.rows):
            return False
        return all(a.equals(b) for a, b in zip(self.rows, other.rows, strict=True))

    def __str__(self) -> str:
        return self.to_string()


class DocumentBuilder:
    """Mutable builder for Document."""

    def __init__(
        self,
        delimiter: str = DEFAULT_DELIMITER,
        enclosure: str = DEFAULT_ENCLOSURE,
    ) -> None:
        self.delimiter = delimiter
        self.enclosure = enclosure
        self.header: HeaderLine | None = None
        self.rows: list[DataLine] = []
        self.column_widths: ColumnWidthConfig | None = None

    @classmethod
    def from_document(
        cls,
        document: Document,
        delimiter: str | None = None,
        enclosure: str | None = None,
    ) -> DocumentBuilder:
        builder = cls(delimiter or document.delimiter, enclosure or document.enclosure)
        builder.header = document.header
        builder.rows = list(document.rows)
        builder.column_widths = document.column_widths
        return builder

    def set_header(self, header: HeaderLine | Sequence[Any]) -> DocumentBuilder:
        if not isinstance(header, HeaderLine):
            header = HeaderLine.from_values(header, self.delimiter, self.enclosure)
        self.header = header
        return self

    def add_row(self, row: DataLine | Sequence[Any]) -> DocumentBuilder:
        if not isinstance(row, DataLine):
            row = DataLine.from_values(row, self.delimiter, self.enclosure)
        self.rows.append(row)
        return self

    def add_rows(self, rows: Iterable[DataLine | Sequence[Any]]) -> DocumentBuilder:
        for row in rows:
            self.add_row(row)
        return self

    def set_column_widths(self, column_widths: ColumnWidthConfig | None) -> DocumentBuilder:
        self.column_widths = column_widths
        return self

    def reorder_columns(self, names: Sequence[str]) -> DocumentBuilder:
        """Reorder header and rows to the given column names."""
        if self.header is None:
            raise StructuralError.create(
                "FC-STR-003",
                "Missing header",
                "Columns cannot be reordered without a header",
            )

        indices = []
        for name in names:
            index = self.header.index_of(name)
            if index < 0:
                raise StructuralError.create(
                    "FC-STR-007",
                    "Unknown column",
                    f"Column {name!r} not found in header",
                    location=Location(field=name),
                    context={"column": name, "available": self.header.names()},
                )
            indices.append(index)

        self.header = self.header.with_fields([self.header.fields[i] for i in indices])
        self.rows = [row.with_fields([row.get_field(i) for i in indices]) for row in self.rows]
        return self

    def build(self) -> Document:
        document = Document(
            header=self.header,
            rows=tuple(self.rows),
            delimiter=self.delimiter,
            enclosure=self.enclosure,
            column_widths=self.column_widths,
        )
        if not document.is_consistent():
            logger.warning(
                "Document has inconsistent rows",
                rows=document.inconsistent_rows(),
                expected=document.reference_field_count(),
            )
        return document
