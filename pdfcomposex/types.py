"""Type definitions and dataclasses for :mod:`pdfcomposex`."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional, Tuple

from .handles import PreviewHandle

DEFAULT_FILE_NAME = "merged-document"


class MediaKind(str, enum.Enum):
    """Normalised media kinds accepted by the importer."""

    DOCUMENT = "application/pdf"
    IMAGE_JPEG = "image/jpeg"
    IMAGE_PNG = "image/png"
    IMAGE_WEBP = "image/webp"

    @property
    def is_document(self) -> bool:
        return self is MediaKind.DOCUMENT


class PageSize(str, enum.Enum):
    """Target page size classes for the composed output."""

    ORIGINAL = "original"
    A3 = "a3"
    A4 = "a4"
    A5 = "a5"
    LETTER = "letter"
    LEGAL = "legal"
    FOLIO = "folio"
    TABLOID = "tabloid"
    EXECUTIVE = "executive"
    B5 = "b5"


class Orientation(str, enum.Enum):
    AUTO = "auto"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class Quality(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PayloadLoader = Callable[[], Awaitable[bytes]]


@dataclass
class RawFile:
    """
    An incoming file as submitted by a collaborator.

    Attributes:
        name: Original file name
        size: Declared byte size
        media_type: Declared media type, possibly empty
        last_modified: Modification timestamp in milliseconds
        payload: The bytes, when already in memory
        loader: Coroutine factory producing the bytes on demand
    """
    name: str
    size: int
    media_type: str = ""
    last_modified: int = 0
    payload: Optional[bytes] = field(default=None, repr=False)
    loader: Optional[PayloadLoader] = field(default=None, repr=False)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        media_type: str = "",
        last_modified: int = 0,
    ) -> "RawFile":
        return cls(name=name, size=len(data), media_type=media_type,
                   last_modified=last_modified, payload=bytes(data))

    @classmethod
    def from_path(cls, path: str | Path, media_type: str = "") -> "RawFile":
        """Describe *path* from its ``stat`` and read the bytes lazily."""

        file_path = Path(path).expanduser()
        stat = file_path.stat()

        async def _load() -> bytes:
            return file_path.read_bytes()

        return cls(
            name=file_path.name,
            size=stat.st_size,
            media_type=media_type,
            last_modified=int(stat.st_mtime * 1000),
            loader=_load,
        )

    async def read(self) -> bytes:
        if self.payload is not None:
            return self.payload
        if self.loader is None:
            raise OSError(f"No payload available for {self.name}")
        return await self.loader()


@dataclass(frozen=True)
class SourceFile:
    """An accepted input whose bytes contribute pages to the output."""

    id: str
    name: str
    size: int
    kind: MediaKind
    last_modified: int
    page_count: int
    preview: PreviewHandle = field(repr=False, compare=False)
    payload: bytes = field(repr=False, compare=False)

    @property
    def metadata_key(self) -> str:
        return f"{self.name}:{self.size}:{self.last_modified}"


@dataclass(frozen=True)
class RejectedFile:
    id: str
    name: str
    reasons: Tuple[str, ...]


@dataclass(frozen=True)
class PageRecord:
    """One curated output page referencing a source page."""

    id: str
    source_file_id: str
    source_file_name: str
    source_kind: MediaKind
    source_page_index: int
    rotation: int = 0
    preview: Optional[PreviewHandle] = field(default=None, repr=False, compare=False)
    origin_order_key: Optional[str] = None


@dataclass(frozen=True)
class ExportSettings:
    """Options applied when composing the output document."""

    file_name: str = DEFAULT_FILE_NAME
    page_size: PageSize = PageSize.ORIGINAL
    orientation: Orientation = Orientation.AUTO
    quality: Quality = Quality.HIGH

    @property
    def output_file_name(self) -> str:
        return f"{self.file_name or DEFAULT_FILE_NAME}.pdf"


@dataclass
class ImportReport:
    """Outcome of one import batch."""

    accepted: list[SourceFile] = field(default_factory=list)
    rejected: list[RejectedFile] = field(default_factory=list)

    def __str__(self) -> str:
        return f"ImportReport(accepted={len(self.accepted)}, rejected={len(self.rejected)})"


__all__ = [
    "DEFAULT_FILE_NAME",
    "MediaKind",
    "PageSize",
    "Orientation",
    "Quality",
    "RawFile",
    "SourceFile",
    "RejectedFile",
    "PageRecord",
    "ExportSettings",
    "ImportReport",
]
