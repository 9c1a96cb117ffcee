"""
DATEV EXTF codec.

Public API for DATEV Buchungsstapel files: versioned meta header, field
header and booking rows.

Usage:
    from fincodec.core.datev import parse_datev_file

    document = parse_datev_file("EXTF_Buchungsstapel.csv")
    document.validate()
    for row in document.rows:
        print(document.account(row), document.amount(row))

API Functions:
    parse_datev_string(text, registry) -> DatevDocument
    parse_datev_file(path, registry) -> DatevDocument
    analyze_format(text) -> dict
    detect_format(data) -> DetectedFormat
    default_registry() -> HeaderRegistry
"""

from __future__ import annotations

from fincodec.core.enums import LockFlag

from .definitions import (
    ColumnDefinition,
    MetaFieldDescriptor,
    VersionDefinition,
    builtin_definition_paths,
    load_definition,
)
from .detector import DetectedFormat, detect_format
from .document import EXTF_MARKER, DatevDocument
from .meta_header import MetaHeaderLine
from .parser import analyze_format, parse_datev_file, parse_datev_string
from .registry import HeaderRegistry, clear_registry_cache, default_registry

# =============================================================================
# Public API Exports
# =============================================================================

__all__ = [
    "EXTF_MARKER",
    "ColumnDefinition",
    "DatevDocument",
    "DetectedFormat",
    "HeaderRegistry",
    "LockFlag",
    "MetaFieldDescriptor",
    "MetaHeaderLine",
    "VersionDefinition",
    "analyze_format",
    "builtin_definition_paths",
    "clear_registry_cache",
    "default_registry",
    "detect_format",
    "load_definition",
    "parse_datev_file",
    "parse_datev_string",
]
