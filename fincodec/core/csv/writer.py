"""
Atomic text file writer.

Documents are written to a temporary file in the target directory and then
renamed over the destination, so readers never observe a partial file.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger()


def write_text_atomic(
    path: Path | str,
    text: str,
    *,
    encoding: str = "utf-8",
    atomic: bool = True,
) -> Path:
    """
    Write text to path.

    Args:
        path: Destination file
        text: Content (line endings are written as given)
        encoding: Target encoding
        atomic: Write via temp file + rename

    Returns:
        The destination path
    """
    output_path = Path(path)
    content = text.encode(encoding)

    if not atomic:
        output_path.write_bytes(content)
    else:
        fd, temp_path = tempfile.mkstemp(
            dir=output_path.parent,
            prefix=".fincodec_",
            suffix=".tmp",
        )
        try:
            os.write(fd, content)
            os.close(fd)
            # Rename (atomic on most filesystems)
            os.replace(temp_path, output_path)
        except Exception:
            with contextlib.suppress(OSError):
                os.close(fd)
            with contextlib.suppress(OSError):
                os.unlink(temp_path)
            raise

    logger.debug("File written", path=str(output_path), size=len(content), encoding=encoding)
    return output_path
