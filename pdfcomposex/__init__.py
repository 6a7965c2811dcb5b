"""
pdfcomposex - assemble PDFs and raster images into one PDF document.

Files are imported through a validating, de-duplicating importer, turned
into an editable page sequence, previewed through a bounded thumbnail cache
and composed into a single PDF honouring a target page size, orientation and
image quality.

Quick Start:
    >>> import asyncio
    >>> from pdfcomposex import DocumentSession, RawFile
    >>> session = DocumentSession()
    >>> asyncio.run(session.add_files([RawFile.from_path('scan.jpg')]))
    >>> path = asyncio.run(session.export('output/'))

For CLI usage, use the 'pdfcomposex' command after installation.
"""

__version__ = "1.0.0"

# Core classes
from pdfcomposex.session import ComposedPreview, DocumentSession, PreviewMode, SessionEvent
from pdfcomposex.validator import FileValidator
from pdfcomposex.pages import PageModel
from pdfcomposex.composer import PdfComposer
from pdfcomposex.preview import PreviewCache
from pdfcomposex.hashing import ContentHasher
from pdfcomposex.handles import HandleStore, PreviewHandle

# Configuration
from pdfcomposex.config import Limits, PreviewSettings, QUALITY_PROFILES, STANDARD_PAGE_SIZES

# Data types
from pdfcomposex.types import (
    ExportSettings,
    ImportReport,
    MediaKind,
    Orientation,
    PageRecord,
    PageSize,
    Quality,
    RawFile,
    RejectedFile,
    SourceFile,
)

# Exceptions
from pdfcomposex.exceptions import (
    PdfComposeXError,
    CompositionError,
    UnreadableSourceError,
    ImageEncodingError,
    HandleReleasedError,
    PageNotFoundError,
)

from pdfcomposex.utils import sanitize_file_name

__all__ = [
    "DocumentSession",
    "ComposedPreview",
    "PreviewMode",
    "SessionEvent",
    "FileValidator",
    "PageModel",
    "PdfComposer",
    "PreviewCache",
    "ContentHasher",
    "HandleStore",
    "PreviewHandle",
    "Limits",
    "PreviewSettings",
    "QUALITY_PROFILES",
    "STANDARD_PAGE_SIZES",
    "ExportSettings",
    "ImportReport",
    "MediaKind",
    "Orientation",
    "PageRecord",
    "PageSize",
    "Quality",
    "RawFile",
    "RejectedFile",
    "SourceFile",
    "PdfComposeXError",
    "CompositionError",
    "UnreadableSourceError",
    "ImageEncodingError",
    "HandleReleasedError",
    "PageNotFoundError",
    "sanitize_file_name",
    "__version__",
]
