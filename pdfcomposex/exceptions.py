"""Custom exception types for :mod:`pdfcomposex`."""

from __future__ import annotations


class PdfComposeXError(Exception):
    """Base exception for all pdfcomposex related errors."""


class CompositionError(PdfComposeXError):
    """Raised when the output document cannot be composed."""


class UnreadableSourceError(CompositionError):
    """Raised when a source file or one of its pages cannot be read."""

    def __init__(self, file_name: str, page_index: int | None = None) -> None:
        self.file_name = file_name
        self.page_index = page_index
        if page_index is None:
            message = f"Unable to read source file: {file_name}"
        else:
            message = f"Unable to read page {page_index + 1} of {file_name}"
        super().__init__(message)


class ImageEncodingError(CompositionError):
    """Raised when an image source cannot be re-encoded for embedding."""


class HandleReleasedError(PdfComposeXError):
    """Raised when the payload of a released preview handle is accessed."""


class PageNotFoundError(PdfComposeXError, KeyError):
    """Raised when a page edit addresses an unknown page id."""

    def __init__(self, page_id: str) -> None:
        self.page_id = page_id
        super().__init__(f"Unknown page: {page_id}")

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "PdfComposeXError",
    "CompositionError",
    "UnreadableSourceError",
    "ImageEncodingError",
    "HandleReleasedError",
    "PageNotFoundError",
]
