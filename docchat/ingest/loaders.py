"""Document loading utilities.

Docchat's core only consumes plain text; rich formats (PDF, Office, images,
audio) are converted upstream. This module covers the plain-text case:
  - best-effort text/binary sniffing
  - a size limit per file
  - reads with encoding fallback
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

TEXT_EXTENSIONS = (".txt", ".text", ".md", ".markdown")


def is_probably_binary(data: bytes) -> bool:
    """Heuristic binary detection."""
    if not data:
        return False
    if b"\x00" in data:
        return True
    text_chars = bytearray({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x100)))
    nontext = data.translate(None, text_chars)
    return float(len(nontext)) / float(len(data)) > 0.30


def read_text_file(path: Path, max_file_mb: float) -> Tuple[str, str]:
    """Read a whole text file.

    Args:
        path: File path.
        max_file_mb: Maximum accepted file size in megabytes.

    Returns:
        Tuple of (content, encoding_used).

    Raises:
        ValueError: If the file is too large or appears to be binary.
    """
    size_mb = path.stat().st_size / (1024 * 1024)
    if size_mb > max_file_mb:
        raise ValueError(f"File too large ({size_mb:.1f}MB). Maximum size: {max_file_mb}MB")
    raw = path.read_bytes()
    if is_probably_binary(raw):
        raise ValueError("Binary file detected")
    try:
        return raw.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        return raw.decode("latin-1"), "latin-1"
