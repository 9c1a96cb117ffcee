"""
DATEV EXTF parser.

Reads the meta header, detects its version through a HeaderRegistry and
parses the field header and booking rows with the CSV codec.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from fincodec.core.csv import parse_line, split_logical_lines
from fincodec.core.csv.document import DocumentBuilder
from fincodec.core.csv.encoding import read_text
from fincodec.core.csv.line import DataLine, HeaderLine, Line
from fincodec.core.csv.models import DATEV_DIALECT
from fincodec.core.errors import (
    CodecError,
    Location,
    StructuralError,
    UnknownVersionError,
)

from .document import DatevDocument, check_marker
from .meta_header import MetaHeaderLine
from .registry import HeaderRegistry, default_registry

if TYPE_CHECKING:
    from .definitions import VersionDefinition

logger = structlog.get_logger()

# Kennzeichen, Versionsnummer, Formatkategorie, Formatname
MIN_META_FIELDS = 4

SUPPORTED_CATEGORY = "Buchungsstapel"


def parse_datev_string(
    text: str,
    registry: HeaderRegistry | None = None,
    *,
    filename: str | None = None,
) -> DatevDocument:
    """
    Parse DATEV EXTF text.

    Args:
        text: File content (CRLF or LF line endings)
        registry: Version registry (default: shipped definitions)
        filename: Used in error locations only

    Returns:
        DatevDocument

    Raises:
        StructuralError: Fewer than two lines, short meta header, marker not
            EXTF, or inconsistent rows
        UnknownVersionError: Version not in the registry
        GrammarError: Meta header value fails its pattern, malformed quoting
    """
    if registry is None:
        registry = default_registry()
    delimiter, enclosure = DATEV_DIALECT.delimiter, DATEV_DIALECT.enclosure

    records = list(split_logical_lines(text, delimiter, enclosure))
    if len(records) < 2:
        raise StructuralError.create(
            "FC-STR-008",
            "Too few lines",
            f"DATEV file needs meta header and field header, got {len(records)} line(s)",
            location=Location(file=filename),
            context={"lines": len(records)},
        )

    meta_text, meta_line_no, _ = records[0]
    meta_line = parse_line(Line, meta_text, delimiter, enclosure, meta_line_no)
    definition = _detect_definition(meta_line, registry, filename)

    check_marker(meta_line.values()[0])
    meta_header = MetaHeaderLine.from_line(meta_line, definition)

    category = meta_header.format_category
    category_name = definition.category_name(category) if category is not None else None
    if category_name != SUPPORTED_CATEGORY:
        logger.warning(
            "DATEV format category parsed generically",
            category=category,
            category_name=category_name,
        )

    builder = DocumentBuilder(delimiter, enclosure)
    header_text, header_line_no, _ = records[1]
    builder.set_header(parse_line(HeaderLine, header_text, delimiter, enclosure, header_line_no))
    for logical, start_line, _ in records[2:]:
        builder.add_row(parse_line(DataLine, logical, delimiter, enclosure, start_line))
    csv_document = builder.build()

    issues = csv_document.consistency_issues()
    if issues:
        raise StructuralError.create(
            "FC-STR-002",
            "Inconsistent document",
            f"{len(issues)} booking row(s) differ from "
            f"{csv_document.reference_field_count()} header fields: "
            f"rows {csv_document.inconsistent_rows()}",
            location=Location(file=filename),
            context={"rows": csv_document.inconsistent_rows()},
        )

    logger.debug(
        "DATEV parsed",
        version=definition.version,
        category=category_name,
        rows=csv_document.count_rows(),
    )
    return DatevDocument(
        meta_header=meta_header,
        header=csv_document.header,
        rows=csv_document.rows,
        delimiter=delimiter,
        enclosure=enclosure,
    )


def parse_datev_file(
    path: Path | str,
    registry: HeaderRegistry | None = None,
    *,
    encoding: str | None = None,
) -> DatevDocument:
    """
    Parse a DATEV file, detecting its encoding when not given.

    Raises:
        FileNotFoundError: If file does not exist
    """
    text = read_text(path, encoding)
    return parse_datev_string(text, registry, filename=str(Path(path)))


def analyze_format(text: str, registry: HeaderRegistry | None = None) -> dict[str, Any]:
    """
    Describe a DATEV file without fully parsing it.

    Never raises for malformed content; problems are reported under 'error'.
    """
    if registry is None:
        registry = default_registry()
    delimiter, enclosure = DATEV_DIALECT.delimiter, DATEV_DIALECT.enclosure

    records = list(split_logical_lines(text, delimiter, enclosure))
    if not records:
        return {"supported": False, "error": "Empty input"}

    line_count = len(records)
    try:
        meta_line = Line.from_string(records[0][0], delimiter, enclosure)
    except CodecError as e:
        return {"supported": False, "line_count": line_count, "error": e.issue.message}

    values = meta_line.values()
    if len(values) < MIN_META_FIELDS:
        return {
            "supported": False,
            "line_count": line_count,
            "field_count": len(values),
            "error": "Meta header has too few fields",
        }

    version = HeaderRegistry.read_version(meta_line)
    definition = registry.find(version) if version is not None else None
    category = int(values[2]) if values[2].isdigit() else None

    result: dict[str, Any] = {
        "marker": values[0],
        "version": version,
        "category": category,
        "format_name": values[3] or None,
        "format_version": int(values[4]) if len(values) > 4 and values[4].isdigit() else None,
        "field_count": len(values),
        "row_count": max(0, line_count - 2),
        "line_count": line_count,
    }

    if definition is None:
        result["supported"] = False
        result["error"] = "Unknown or invalid DATEV version"
        return result

    category_name = definition.category_name(category) if category is not None else None
    result["category_name"] = category_name
    result["expected_field_count"] = definition.field_count()
    result["supported"] = values[0] == "EXTF" and category_name == SUPPORTED_CATEGORY
    return result


def _detect_definition(
    meta_line: Line,
    registry: HeaderRegistry,
    filename: str | None,
) -> VersionDefinition:
    values = meta_line.values()
    if len(values) < MIN_META_FIELDS:
        raise StructuralError.create(
            "FC-STR-004",
            "Invalid meta header",
            f"Meta header needs at least {MIN_META_FIELDS} fields, got {len(values)}",
            location=Location(file=filename, line_no=1),
            context={"fields": len(values)},
        )

    definition = registry.detect(meta_line)
    if definition is None:
        raw = values[1]
        raise UnknownVersionError.create(
            "FC-VER-001",
            "Unknown version",
            f"No DATEV header definition for version {raw!r} "
            f"(registered: {registry.versions()})",
            location=Location(file=filename, line_no=1, column=2, field="Versionsnummer"),
            context={"raw": raw, "registered": registry.versions()},
        )
    return definition
