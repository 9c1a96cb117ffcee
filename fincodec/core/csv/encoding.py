"""
Encoding detection for text exports.

CSV, DATEV and MT940 files arrive as:
- UTF-8 with BOM
- UTF-8 without BOM
- Windows-1252 / ISO-8859-1 (legacy banking and DATEV exports)

Detection uses charset-normalizer.
"""

from __future__ import annotations

from pathlib import Path

from charset_normalizer import from_bytes

# Size of data to use for encoding detection (8KB is usually sufficient)
DETECTION_SAMPLE_SIZE = 8192

_UTF8_BOM = b"\xef\xbb\xbf"


def detect_encoding(data: bytes) -> str:
    """
    Detect the encoding of file data.

    Detection priority:
    1. UTF-8 / UTF-16 BOM
    2. Strict UTF-8 decode of the sample
    3. charset-normalizer detection
    4. Fallback to Windows-1252

    Args:
        data: First ~8KB of file content (or full file if smaller)

    Returns:
        Encoding name, e.g. "utf-8-sig", "utf-8" or "windows-1252"
    """
    if data.startswith(_UTF8_BOM):
        return "utf-8-sig"

    if data.startswith(b"\xff\xfe") or data.startswith(b"\xfe\xff"):
        return "utf-16"

    sample = data[:DETECTION_SAMPLE_SIZE]
    try:
        sample.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        # Sample may cut a multi-byte sequence; let charset-normalizer decide
        pass

    best = from_bytes(sample).best()
    if best is not None:
        encoding = best.encoding.lower().replace("_", "-")

        if encoding in ("ascii", "utf-8", "utf8"):
            return "utf-8"

        if encoding in ("cp1252", "windows-1252", "latin-1", "iso-8859-1", "latin1"):
            return "windows-1252"

        return encoding

    return "windows-1252"


def decode_bytes(data: bytes, encoding: str | None = None) -> str:
    """
    Decode bytes, detecting the encoding when not given.

    Invalid sequences are replaced rather than raising.
    """
    encoding = encoding or detect_encoding(data)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return data.decode(encoding, errors="replace")


def read_text(path: Path | str, encoding: str | None = None) -> str:
    """Read a file as text with encoding detection."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return decode_bytes(path.read_bytes(), encoding)
