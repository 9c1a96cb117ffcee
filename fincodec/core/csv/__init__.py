"""
Generic CSV codec.

Public API for parsing and writing delimited text with exact quoting
preservation.

Usage:
    from fincodec.core.csv import parse_string

    document = parse_string('name,amount\\n"Doe, John",12,50')
    print(document.column_by_name("name"))

API Functions:
    parse_string(text, ...) -> Document
    parse_bytes(data, ...) -> Document
    parse_file(path, ...) -> Document
    parse_file_range(path, from_line, to_line, ...) -> Document
    stream_rows(path, ...) -> Iterator[tuple[int, DataLine]]
    read_header(path, ...) -> HeaderLine
    count_rows(path, ...) -> int
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import structlog

from fincodec.core.errors import GrammarError, Location, StructuralError

from .columns import ColumnWidthConfig, TruncationStrategy, truncate
from .document import Document, DocumentBuilder
from .encoding import decode_bytes, detect_encoding, read_text
from .field import CsvField
from .line import DataLine, HeaderLine, Line
from .models import DATEV_DIALECT, DEFAULT_DELIMITER, DEFAULT_ENCLOSURE, Dialect
from .splitter import split_logical_lines, tokenize_line
from .typed import parse_typed_value

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger()

PREVIEW_LENGTH = 100

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

LineT = TypeVar("LineT", bound=Line)


def parse_string(
    text: str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    has_header: bool = True,
    column_widths: ColumnWidthConfig | None = None,
    strict: bool = True,
) -> Document:
    """
    Parse CSV text into a Document.

    Args:
        text: CSV content (CR, LF or CRLF line endings)
        delimiter: Field delimiter
        enclosure: Quote character
        has_header: Treat the first logical line as header
        column_widths: Width config attached to the result
        strict: Raise on inconsistent row field counts (otherwise the
            caller inspects Document.consistency_issues())

    Returns:
        Document

    Raises:
        StructuralError: Empty input, or inconsistent row field counts in
            strict mode
        GrammarError: Malformed quoting (message names line and preview)
    """
    if not text.strip():
        raise StructuralError.create("FC-STR-001", "Empty input", "CSV input is empty")

    builder = DocumentBuilder(delimiter, enclosure).set_column_widths(column_widths)

    for logical, start_line, _ in split_logical_lines(text, delimiter, enclosure):
        if has_header and builder.header is None:
            builder.set_header(parse_line(HeaderLine, logical, delimiter, enclosure, start_line))
        else:
            builder.add_row(parse_line(DataLine, logical, delimiter, enclosure, start_line))

    document = builder.build()

    issues = document.consistency_issues()
    if issues and strict:
        raise StructuralError.create(
            "FC-STR-002",
            "Inconsistent document",
            f"{len(issues)} row(s) differ from {document.reference_field_count()} fields: "
            f"rows {document.inconsistent_rows()}",
            context={"rows": document.inconsistent_rows()},
        )

    logger.debug(
        "CSV parsed",
        rows=document.count_rows(),
        columns=document.reference_field_count(),
        has_header=document.has_header(),
    )
    return document


def parse_bytes(
    data: bytes,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    has_header: bool = True,
    encoding: str | None = None,
    column_widths: ColumnWidthConfig | None = None,
    strict: bool = True,
) -> Document:
    """Parse CSV bytes, detecting the encoding when not given."""
    return parse_string(
        decode_bytes(data, encoding),
        delimiter,
        enclosure,
        has_header=has_header,
        column_widths=column_widths,
        strict=strict,
    )


def parse_file(
    path: Path | str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    has_header: bool = True,
    encoding: str | None = None,
    column_widths: ColumnWidthConfig | None = None,
    strict: bool = True,
) -> Document:
    """
    Parse a CSV file.

    Raises:
        FileNotFoundError: If file does not exist
    """
    text = read_text(path, encoding)
    logger.debug("Reading CSV file", path=str(path))
    return parse_string(
        text,
        delimiter,
        enclosure,
        has_header=has_header,
        column_widths=column_widths,
        strict=strict,
    )


def parse_file_range(
    path: Path | str,
    from_line: int,
    to_line: int,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    include_header: bool = True,
    encoding: str | None = None,
) -> Document:
    """
    Parse the logical lines starting within [from_line, to_line].

    Line numbers are 1-based physical line numbers. With include_header the
    first logical line of the file is used as header.
    """
    if from_line > to_line:
        raise StructuralError.create(
            "FC-STR-010",
            "Invalid line range",
            f"Start line ({from_line}) must not be greater than end line ({to_line})",
            context={"from_line": from_line, "to_line": to_line},
        )

    text = read_text(path, encoding)
    builder = DocumentBuilder(delimiter, enclosure)

    for logical, start_line, _ in split_logical_lines(text, delimiter, enclosure):
        if include_header and builder.header is None:
            builder.set_header(parse_line(HeaderLine, logical, delimiter, enclosure, start_line))
            continue
        if start_line < from_line:
            continue
        if start_line > to_line:
            break
        builder.add_row(parse_line(DataLine, logical, delimiter, enclosure, start_line))

    document = builder.build()
    if document.count_rows() == 0 and not document.has_header():
        raise StructuralError.create(
            "FC-STR-001",
            "Empty range",
            f"No lines found in {path} (lines {from_line}-{to_line})",
            location=Location(file=str(path)),
        )
    return document


def stream_rows(
    path: Path | str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    has_header: bool = True,
    encoding: str | None = None,
) -> Iterator[tuple[int, DataLine]]:
    """
    Lazily yield (start_line, DataLine) for every data row.

    Rows are tokenized on demand; consistency is not checked.
    """
    text = read_text(path, encoding)
    records = split_logical_lines(text, delimiter, enclosure)
    if has_header:
        next(records, None)
    for logical, start_line, _ in records:
        yield start_line, parse_line(DataLine, logical, delimiter, enclosure, start_line)


def read_header(
    path: Path | str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    encoding: str | None = None,
) -> HeaderLine:
    """Read only the header line of a file."""
    text = read_text(path, encoding)
    for logical, start_line, _ in split_logical_lines(text, delimiter, enclosure):
        return parse_line(HeaderLine, logical, delimiter, enclosure, start_line)
    raise StructuralError.create(
        "FC-STR-003",
        "Missing header",
        f"No header line found in {path}",
        location=Location(file=str(path)),
    )


def count_rows(
    path: Path | str,
    delimiter: str = DEFAULT_DELIMITER,
    enclosure: str = DEFAULT_ENCLOSURE,
    *,
    has_header: bool = True,
    encoding: str | None = None,
) -> int:
    """Count logical data rows without tokenizing them."""
    text = read_text(path, encoding)
    total = sum(1 for _ in split_logical_lines(text, delimiter, enclosure))
    return max(0, total - 1) if has_header else total


def parse_line(
    cls: type[LineT],
    logical: str,
    delimiter: str,
    enclosure: str,
    line_no: int,
) -> LineT:
    """Parse a logical line; grammar errors name the line and a preview."""
    try:
        return cls.from_string(logical, delimiter, enclosure, line_no=line_no)
    except GrammarError as e:
        preview = _CONTROL_CHARS.sub(" ", logical)[:PREVIEW_LENGTH]
        raise GrammarError(
            e.issue.model_copy(
                update={
                    "message": f"Line {line_no}: {e.issue.message} | {preview}",
                    "location": e.issue.location.model_copy(update={"line_no": line_no}),
                }
            )
        ) from e


# =============================================================================
# Public API Exports
# =============================================================================

__all__ = [
    "DATEV_DIALECT",
    "ColumnWidthConfig",
    "CsvField",
    "DataLine",
    "Dialect",
    "Document",
    "DocumentBuilder",
    "HeaderLine",
    "Line",
    "TruncationStrategy",
    "count_rows",
    "detect_encoding",
    "parse_bytes",
    "parse_line",
    "parse_file",
    "parse_file_range",
    "parse_string",
    "parse_typed_value",
    "read_header",
    "split_logical_lines",
    "stream_rows",
    "tokenize_line",
    "truncate",
]
