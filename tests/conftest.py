"""
Pytest configuration and fixtures for fincodec tests.

Provides fixtures for:
- Sample texts (CSV, DATEV EXTF, MT940)
- Sample files written to tmp_path
- Logging reset between tests
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

# =============================================================================
# Sample Texts
# =============================================================================

CRLF = "\r\n"

CSV_TEXT = "\n".join(
    [
        "name,city,amount",
        'Alexander,Berlin,"1.234,56"',
        '"Doe, John","New\nYork",12',
        'Zoe,"Say ""hi""","0,5"',
    ]
)

# 31 fields, quoted exactly as the V700 definition writes them
DATEV_META_LINE = (
    '"EXTF";700;21;"Buchungsstapel";13;20240130140440439;;"RE";"";"";29098;55003;'
    '20240101;4;20240101;20240131;"Buchungsstapel";"WD";1;0;0;"EUR";;"";;;"03";;;"";""'
)

DATEV_HEADER_LINE = (
    "Umsatz (ohne Soll/Haben-Kz);Soll/Haben-Kennzeichen;WKZ Umsatz;Kurs;"
    "Basis-Umsatz;WKZ Basis-Umsatz;Konto;Gegenkonto (ohne BU-Schlüssel);"
    "BU-Schlüssel;Belegdatum;Belegfeld 1;Buchungstext"
)

DATEV_ROWS = [
    '100,00;"S";"EUR";;;;1200;8400;;0101;"RE-001";"Umsatz Januar"',
    '50,50;"H";"EUR";;;;1200;1000;;1501;"RE-002";"Erstattung"',
]

DATEV_TEXT = CRLF.join([DATEV_META_LINE, DATEV_HEADER_LINE, *DATEV_ROWS])

MT940_TEXT = (
    CRLF.join(
        [
            ":20:STARTUMS",
            ":25:10020030/1234567",
            ":28C:00001/001",
            ":60F:C240501EUR1000,00",
            ":61:2405020502D150,00NTRFNONREF//BANK001",
            ":86:Miete Mai",
            ":61:2405030503C1200,50NTRFINV2024-17",
            ":86:Gehalt Mai Firma Beispiel G",
            "?20mbH und Co KG",
            ":62F:C240503EUR2050,50",
            "-",
        ]
    )
    + CRLF
)


# =============================================================================
# Text Fixtures
# =============================================================================


@pytest.fixture
def csv_text() -> str:
    """Comma separated sample with quoting and an embedded line break."""
    return CSV_TEXT


@pytest.fixture
def datev_text() -> str:
    """Valid EXTF Buchungsstapel (version 700) with two bookings."""
    return DATEV_TEXT


@pytest.fixture
def mt940_text() -> str:
    """Balanced MT940 statement with one debit and one credit."""
    return MT940_TEXT


@pytest.fixture
def datev_variant() -> Callable[..., str]:
    """
    Build DATEV sample text with changes.

    meta: {1-based position: raw token} replacing meta header tokens
    header: replacement field header line
    rows: replacement booking rows
    """

    def build(
        meta: dict[int, str] | None = None,
        header: str = DATEV_HEADER_LINE,
        rows: list[str] | None = None,
    ) -> str:
        tokens = DATEV_META_LINE.split(";")
        for position, token in (meta or {}).items():
            tokens[position - 1] = token
        body = DATEV_ROWS if rows is None else rows
        return CRLF.join([";".join(tokens), header, *body])

    return build


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "sample.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def datev_file(tmp_path: Path) -> Path:
    path = tmp_path / "EXTF_Buchungsstapel.csv"
    path.write_bytes(DATEV_TEXT.encode("utf-8"))
    return path


@pytest.fixture
def mt940_file(tmp_path: Path) -> Path:
    path = tmp_path / "statement.sta"
    path.write_bytes(MT940_TEXT.encode("utf-8"))
    return path


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo configure_logging() calls made by a test."""
    yield
    structlog.reset_defaults()
