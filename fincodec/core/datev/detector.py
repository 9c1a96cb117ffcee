"""
Format detection.

Sniffs the first line of raw data to tell DATEV EXTF exports, legacy DATEV
ASCII files and MT940 statements apart.
"""

from __future__ import annotations

import re
from enum import Enum

# Pattern to match EXTF/DTVF header start
EXTF_PATTERN = re.compile(
    rb'^["\']?(EXTF|DTVF)["\']?\s*[;,]',
    re.IGNORECASE,
)

# Pattern for ASCII format (legacy)
ASCII_PATTERN = re.compile(
    rb'^["\']?ASCII["\']?\s*[;,]',
    re.IGNORECASE,
)

# MT940 statements start with the transaction reference tag (optionally after a block header)
MT940_PATTERN = re.compile(rb"^(\{[^}]*\}\s*)*:20:")


class DetectedFormat(Enum):
    """Result of format detection."""

    DATEV_FORMAT = "datev"  # EXTF / DTVF file
    ASCII_STANDARD = "ascii"  # DATEV ASCII format (legacy)
    MT940 = "mt940"  # SWIFT statement
    UNKNOWN = "unknown"  # Cannot determine


def detect_format(data: bytes) -> DetectedFormat:
    """
    Detect the format from the first line.

    Args:
        data: First ~1KB of file content

    Returns:
        DetectedFormat enum value
    """
    # Skip BOM if present
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    elif data.startswith(b"\xff\xfe") or data.startswith(b"\xfe\xff"):
        data = data[2:]

    data = data.lstrip(b"\r\n")

    # Get first line (handle \r, \n and \r\n)
    ends = [pos for pos in (data.find(b"\r"), data.find(b"\n")) if pos != -1]
    first_line_end = min(ends) if ends else min(len(data), 1024)
    first_line = data[:first_line_end]

    if EXTF_PATTERN.match(first_line):
        return DetectedFormat.DATEV_FORMAT

    if ASCII_PATTERN.match(first_line):
        return DetectedFormat.ASCII_STANDARD

    if MT940_PATTERN.match(first_line):
        return DetectedFormat.MT940

    return DetectedFormat.UNKNOWN
