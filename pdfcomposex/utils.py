"""Utility helpers for :mod:`pdfcomposex`."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from .types import DEFAULT_FILE_NAME

_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)
_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_TRAILING_DOTS = re.compile(r"[. ]+$")


def new_id() -> str:
    return str(uuid.uuid4())


def sanitize_file_name(file_name: str) -> str:
    """Return *file_name* as a safe, extension-free output name.

    Surrounding whitespace, a trailing ``.pdf`` extension, characters that
    are invalid on common file systems and trailing dots or spaces are
    removed. An empty result falls back to :data:`DEFAULT_FILE_NAME`.
    """

    cleaned = _PDF_SUFFIX.sub("", file_name.strip())
    cleaned = _INVALID_CHARS.sub("", cleaned)
    cleaned = _TRAILING_DOTS.sub("", cleaned)
    return cleaned if cleaned else DEFAULT_FILE_NAME


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500.0 B")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


def format_limit(size_bytes: int) -> str:
    """Render a byte limit compactly for rejection messages (``10MB``)."""

    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):g}MB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:g}KB"
    return f"{size_bytes}B"


def ensure_directory(path: str | Path) -> Path:
    directory = Path(path).expanduser().resolve()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for command line use."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


__all__ = [
    "new_id",
    "sanitize_file_name",
    "format_file_size",
    "format_limit",
    "ensure_directory",
    "configure_logging",
]
