"""
DATEV document model.

A DATEV EXTF file is a meta header line, a field header line and data rows,
all separated by ';' with '"' enclosures and CRLF line endings.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from fincodec.core.csv.document import Document
from fincodec.core.csv.line import DataLine, HeaderLine
from fincodec.core.csv.models import DATEV_DIALECT
from fincodec.core.csv.writer import write_text_atomic
from fincodec.core.enums import CreditDebit, LockFlag
from fincodec.core.errors import (
    CodecIssue,
    GrammarError,
    Location,
    StructuralError,
)

from .meta_header import MetaHeaderLine

if TYPE_CHECKING:
    from pathlib import Path

EXTF_MARKER = "EXTF"
CRLF = "\r\n"


class DatevDocument(BaseModel):
    """Parsed or assembled DATEV EXTF document."""

    meta_header: MetaHeaderLine | None = None
    header: HeaderLine | None = None
    rows: tuple[DataLine, ...] = Field(default=())
    delimiter: str = Field(default=DATEV_DIALECT.delimiter, min_length=1, max_length=1)
    enclosure: str = Field(default=DATEV_DIALECT.enclosure, min_length=1, max_length=1)

    model_config = {"arbitrary_types_allowed": True}

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:  # type: ignore[override]
        """
        Check the structural requirements of an EXTF file.

        Raises:
            StructuralError: Missing meta header or field header, marker is
                not EXTF, or a required booking column is missing
        """
        if self.meta_header is None:
            raise StructuralError.create(
                "FC-STR-004",
                "Missing meta header",
                "DATEV document has no meta header line",
                location=Location(line_no=1),
            )
        if self.header is None:
            raise StructuralError.create(
                "FC-STR-003",
                "Missing field header",
                "DATEV document has no field header line",
                location=Location(line_no=2),
            )

        check_marker(self.meta_header.marker)

        definition = self.meta_header.definition
        missing = [
            column.label
            for column in definition.required_columns()
            if definition.find_column_index(self.header, column.key) < 0
        ]
        if missing:
            raise StructuralError.create(
                "FC-STR-006",
                "Missing required column",
                f"Field header lacks required column(s): {', '.join(missing)}",
                location=Location(line_no=2),
                context={"missing": missing},
            )

    # -------------------------------------------------------------------------
    # Consistency
    # -------------------------------------------------------------------------

    def as_csv(self) -> Document:
        """Field header and rows as a generic CSV document."""
        return Document(
            header=self.header,
            rows=self.rows,
            delimiter=self.delimiter,
            enclosure=self.enclosure,
        )

    def consistency_issues(self) -> list[CodecIssue]:
        return self.as_csv().consistency_issues()

    def inconsistent_rows(self) -> list[int]:
        return self.as_csv().inconsistent_rows()

    def is_consistent(self) -> bool:
        return self.as_csv().is_consistent()

    def count_rows(self) -> int:
        return len(self.rows)

    # -------------------------------------------------------------------------
    # Booking row access
    # -------------------------------------------------------------------------

    def column_value(self, row: int | DataLine, key: str) -> str:
        """
        Value of a well-known booking column in a row.

        Raises:
            StructuralError: Field header missing or column not present
        """
        line = self.as_csv().get_row(row) if isinstance(row, int) else row
        if self.header is None or self.meta_header is None:
            raise StructuralError.create(
                "FC-STR-003",
                "Missing field header",
                "Booking columns need both meta header and field header",
            )
        definition = self.meta_header.definition
        index = definition.find_column_index(self.header, key)
        if index < 0:
            raise StructuralError.create(
                "FC-STR-007",
                "Unknown column",
                f"Column {definition.column(key).label!r} not in field header",
                context={"column": key},
            )
        return line.get_value(index)

    def amount(self, row: int | DataLine) -> Decimal:
        """Umsatz as Decimal (comma decimal separator)."""
        raw = self.column_value(row, "umsatz")
        try:
            return Decimal(raw.strip().replace(",", "."))
        except InvalidOperation:
            raise GrammarError.create(
                "FC-GRM-004",
                "Invalid amount",
                f"Umsatz is not a decimal amount: {raw!r}",
                context={"raw": raw},
            ) from None

    def account(self, row: int | DataLine) -> str:
        return self.column_value(row, "konto")

    def contra_account(self, row: int | DataLine) -> str:
        return self.column_value(row, "gegenkonto")

    def debit_credit(self, row: int | DataLine) -> CreditDebit:
        return CreditDebit.from_datev_code(self.column_value(row, "soll_haben"))

    def lock_flag(self) -> LockFlag:
        if self.meta_header is None:
            return LockFlag.NONE
        return self.meta_header.lock_flag()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_string(self) -> str:
        """Meta header, field header and rows joined with CRLF."""
        lines = []
        if self.meta_header is not None:
            lines.append(self.meta_header.to_string(self.delimiter, self.enclosure))
        if self.header is not None:
            lines.append(self.header.to_string(self.delimiter, self.enclosure))
        lines.extend(row.to_string(self.delimiter, self.enclosure) for row in self.rows)
        return CRLF.join(lines)

    def to_file(self, path: Path | str, *, encoding: str = "utf-8") -> Path:
        return write_text_atomic(path, self.to_string(), encoding=encoding)

    def __str__(self) -> str:
        return self.to_string()


def check_marker(marker: str | None) -> None:
    """
    Raises:
        StructuralError: If the first meta header field is not EXTF
    """
    if marker != EXTF_MARKER:
        raise StructuralError.create(
            "FC-STR-005",
            "Invalid format marker",
            f"First meta header field must be {EXTF_MARKER!r}, got {marker!r}",
            location=Location(line_no=1, column=1, field="Kennzeichen"),
            context={"raw": marker},
        )
