"""Import validation, de-duplication and the accepted file library."""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, Optional, Sequence

from pypdf import PdfReader

from .config import Limits
from .handles import HandleStore
from .hashing import ContentHasher
from .types import ImportReport, MediaKind, RawFile, RejectedFile, SourceFile
from .utils import format_limit, new_id

LOGGER = logging.getLogger("pdfcomposex.import")

_DECLARED_TYPES: dict[str, MediaKind] = {
    "application/pdf": MediaKind.DOCUMENT,
    "image/jpeg": MediaKind.IMAGE_JPEG,
    "image/jpg": MediaKind.IMAGE_JPEG,
    "image/png": MediaKind.IMAGE_PNG,
    "image/webp": MediaKind.IMAGE_WEBP,
}

_EXTENSIONS: dict[str, MediaKind] = {
    "pdf": MediaKind.DOCUMENT,
    "jpg": MediaKind.IMAGE_JPEG,
    "jpeg": MediaKind.IMAGE_JPEG,
    "png": MediaKind.IMAGE_PNG,
    "webp": MediaKind.IMAGE_WEBP,
}

UNSUPPORTED_TYPE = "Unsupported file type. Use PDF, JPG, PNG, or WEBP."
DUPLICATE = "Duplicate files are not allowed."
UNREADABLE = "Unable to read this file."


def normalize_media_kind(name: str, declared_type: str) -> Optional[MediaKind]:
    """Resolve the media kind from the declared type, then the extension."""

    kind = _DECLARED_TYPES.get(declared_type.strip().lower())
    if kind is not None:
        return kind
    suffix = PurePosixPath(name).suffix
    if not suffix:
        return None
    return _EXTENSIONS.get(suffix[1:].lower())


def metadata_key(name: str, size: int, last_modified: int) -> str:
    return f"{name}:{size}:{last_modified}"


def read_document_page_count(data: bytes) -> int:
    """Return the structural page count of a PDF payload.

    Encrypted documents are opened with an empty password. Documents without
    pages are treated as unreadable.
    """

    reader = PdfReader(io.BytesIO(data))
    if reader.is_encrypted:
        reader.decrypt("")
    count = len(reader.pages)
    if count == 0:
        raise ValueError("PDF contains no pages")
    return count


@dataclass
class _SeenEntry:
    file: SourceFile
    digest: Optional[str] = None
    digest_known: bool = False


class FileValidator:
    """Accepts or rejects incoming files and owns the accepted file list.

    Files in a batch are validated strictly in input order: the duplicate
    checks and running totals applied to file *N* include the outcome of
    files ``1..N-1`` of the same batch. The accepted and rejected lists are
    only updated once the whole batch has been evaluated, in one synchronous
    step, so readers never observe a half-applied batch.
    """

    def __init__(
        self,
        limits: Limits | None = None,
        hasher: ContentHasher | None = None,
        handles: HandleStore | None = None,
    ) -> None:
        self.limits = limits or Limits()
        self.hasher = hasher or ContentHasher()
        self.handles = handles or HandleStore()
        self._files: tuple[SourceFile, ...] = ()
        self._rejected: tuple[RejectedFile, ...] = ()
        self._digests: dict[str, Optional[str]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def files(self) -> tuple[SourceFile, ...]:
        return self._files

    @property
    def rejected(self) -> tuple[RejectedFile, ...]:
        return self._rejected

    @property
    def total_size(self) -> int:
        return sum(file.size for file in self._files)

    @property
    def total_pages(self) -> int:
        return sum(file.page_count for file in self._files)

    @property
    def has_files(self) -> bool:
        return bool(self._files)

    def get_file(self, file_id: str) -> Optional[SourceFile]:
        for file in self._files:
            if file.id == file_id:
                return file
        return None

    # ------------------------------------------------------------------
    # import
    # ------------------------------------------------------------------
    async def add_files(self, batch: Iterable[RawFile]) -> ImportReport:
        """Validate *batch* and commit the accepted and rejected records."""

        async with self._lock:
            report = ImportReport()
            digests: dict[str, Optional[str]] = {}
            seen = self._seen_entries()
            content_index = {
                digest: file_id for file_id, digest in self._digests.items() if digest is not None
            }
            running_size = self.total_size
            running_pages = self.total_pages

            for raw in batch:
                kind = normalize_media_kind(raw.name, raw.media_type)
                reasons = self._basic_reasons(raw, kind)
                key = metadata_key(raw.name, raw.size, raw.last_modified)
                incoming_digest: Optional[str] = None
                digest_known = False

                entries = seen.get(key, [])
                if entries:
                    incoming_digest = await self.hasher.digest(raw)
                    digest_known = True
                    if await self._matches_duplicate(raw.name, incoming_digest, entries):
                        reasons.append(DUPLICATE)

                if running_size + raw.size > self.limits.max_total_size:
                    reasons.append(
                        f"Total upload size exceeds {format_limit(self.limits.max_total_size)}."
                    )

                page_count = 0
                payload = b""
                if not reasons:
                    try:
                        payload = await raw.read()
                        page_count = await self._page_count(payload, kind)
                    except Exception as exc:
                        LOGGER.info("Unable to read %s: %s", raw.name, exc)
                        reasons.append(UNREADABLE)

                if not reasons and running_pages + page_count > self.limits.max_pages:
                    reasons.append(f"Total page count exceeds {self.limits.max_pages} pages.")

                if not reasons:
                    if not digest_known:
                        incoming_digest = await self.hasher.digest_bytes(payload)
                    # Same bytes under a different name or timestamp.
                    if incoming_digest is not None and incoming_digest in content_index:
                        LOGGER.debug(
                            "%s has the same content as %s",
                            raw.name,
                            content_index[incoming_digest],
                        )
                        reasons.append(DUPLICATE)

                if reasons:
                    LOGGER.info("Rejected %s: %s", raw.name, "; ".join(reasons))
                    report.rejected.append(
                        RejectedFile(id=new_id(), name=raw.name, reasons=tuple(reasons))
                    )
                    continue

                file_id = new_id()
                source = SourceFile(
                    id=file_id,
                    name=raw.name,
                    size=raw.size,
                    kind=kind,
                    last_modified=raw.last_modified,
                    page_count=page_count,
                    preview=self.handles.create(payload, kind.value, owner=file_id),
                    payload=payload,
                )
                report.accepted.append(source)
                digests[file_id] = incoming_digest
                if incoming_digest is not None:
                    content_index[incoming_digest] = file_id
                seen.setdefault(key, []).append(
                    _SeenEntry(file=source, digest=incoming_digest, digest_known=True)
                )
                running_size += raw.size
                running_pages += page_count
                LOGGER.info("Accepted %s (%s, %d page(s))", raw.name, kind.value, page_count)

            # Commit the batch in one step.
            if report.accepted:
                self._files = self._files + tuple(report.accepted)
                self._digests.update(digests)
            if report.rejected:
                self._rejected = self._rejected + tuple(report.rejected)
            return report

    def _basic_reasons(self, raw: RawFile, kind: Optional[MediaKind]) -> list[str]:
        reasons: list[str] = []
        if kind is None:
            reasons.append(UNSUPPORTED_TYPE)
        if raw.size > self.limits.max_file_size:
            reasons.append(f"File size exceeds the {format_limit(self.limits.max_file_size)} limit.")
        return reasons

    async def _page_count(self, payload: bytes, kind: Optional[MediaKind]) -> int:
        if kind is MediaKind.DOCUMENT:
            await asyncio.sleep(0)
            return read_document_page_count(payload)
        return 1

    def _seen_entries(self) -> dict[str, list[_SeenEntry]]:
        seen: dict[str, list[_SeenEntry]] = {}
        for file in self._files:
            entry = _SeenEntry(file=file)
            if file.id in self._digests:
                entry.digest = self._digests[file.id]
                entry.digest_known = True
            seen.setdefault(file.metadata_key, []).append(entry)
        return seen

    async def _matches_duplicate(
        self,
        name: str,
        incoming_digest: Optional[str],
        entries: Sequence[_SeenEntry],
    ) -> bool:
        assume_duplicate = self.limits.assume_duplicate_when_unhashable
        if incoming_digest is None:
            LOGGER.warning("No digest for %s; duplicate assumed: %s", name, assume_duplicate)
            return assume_duplicate

        for entry in entries:
            candidate = await self._entry_digest(entry)
            if candidate is None:
                if assume_duplicate:
                    return True
                continue
            if candidate == incoming_digest:
                LOGGER.debug("%s duplicates accepted file %s", name, entry.file.id)
                return True
        return False

    async def _entry_digest(self, entry: _SeenEntry) -> Optional[str]:
        if not entry.digest_known:
            entry.digest = await self.hasher.digest_bytes(entry.file.payload)
            entry.digest_known = True
            if entry.digest is not None:
                self._digests[entry.file.id] = entry.digest
        return entry.digest

    # ------------------------------------------------------------------
    # library edits
    # ------------------------------------------------------------------
    def remove_file(self, file_id: str) -> Optional[SourceFile]:
        file = self.get_file(file_id)
        if file is None:
            return None
        file.preview.release()
        self._digests.pop(file_id, None)
        self._files = tuple(item for item in self._files if item.id != file_id)
        LOGGER.info("Removed %s", file.name)
        return file

    def move_file(self, from_index: int, to_index: int) -> bool:
        count = len(self._files)
        if not (0 <= from_index < count and 0 <= to_index < count):
            return False
        files = list(self._files)
        files.insert(to_index, files.pop(from_index))
        self._files = tuple(files)
        return True

    def clear(self) -> tuple[SourceFile, ...]:
        removed = self._files
        for file in removed:
            file.preview.release()
        self._files = ()
        self._digests.clear()
        LOGGER.info("Cleared %d file(s)", len(removed))
        return removed

    def clear_rejected(self) -> None:
        self._rejected = ()


__all__ = [
    "FileValidator",
    "normalize_media_kind",
    "metadata_key",
    "read_document_page_count",
    "UNSUPPORTED_TYPE",
    "DUPLICATE",
    "UNREADABLE",
]
