"""Thumbnail rendering and the bounded page-preview cache.

Page thumbnails are rendered once per ``(file id, page index, scale)`` and
shared while cached. Concurrent requests for the same key await the same
in-flight render. Every handle produced here is tracked per file and released
through :meth:`PreviewCache._release`, which lets each handle go exactly once
whether it leaves through eviction, a late settlement after its entry was
dropped, or a file clear.
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import logging
import time
from collections import OrderedDict
from typing import Iterable, Optional

import fitz
from PIL import Image

from .config import Limits, PreviewSettings
from .handles import HandleStore, PreviewHandle
from .imaging import encode_jpeg, image_thumbnail
from .types import SourceFile

LOGGER = logging.getLogger("pdfcomposex.preview")

CacheKey = tuple[str, int, float]


@dataclasses.dataclass
class PreviewCacheEntry:
    file_id: str
    last_access: float
    task: Optional["asyncio.Future[Optional[PreviewHandle]]"] = None
    settled: bool = False
    resolved: Optional[PreviewHandle] = None


def rasterize_page(page: "fitz.Page", scale: float, quality: int) -> bytes:
    pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    mode = "RGB" if pixmap.n < 4 else "RGBA"
    img = Image.frombytes(mode, (pixmap.width, pixmap.height), pixmap.samples)
    return encode_jpeg(img, quality)


class PreviewCache:
    """Renders and memoises page thumbnails with LRU eviction."""

    def __init__(
        self,
        handles: HandleStore | None = None,
        max_entries: int | None = None,
        settings: PreviewSettings | None = None,
    ) -> None:
        self.handles = handles or HandleStore()
        self.max_entries = Limits().max_preview_entries if max_entries is None else max_entries
        self.settings = settings or PreviewSettings()
        self._entries: "OrderedDict[CacheKey, PreviewCacheEntry]" = OrderedDict()
        self._documents: dict[str, fitz.Document] = {}
        self._tracked: dict[str, set[PreviewHandle]] = {}

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def tracked_count(self, file_id: str) -> int:
        return len(self._tracked.get(file_id, ()))

    # ------------------------------------------------------------------
    # page thumbnails
    # ------------------------------------------------------------------
    async def get_page_preview(
        self,
        file: SourceFile,
        page_index: int,
        scale: float | None = None,
    ) -> Optional[PreviewHandle]:
        """Return a thumbnail handle for one source page, or ``None``."""

        scale = self.settings.thumbnail_scale if scale is None else scale
        key: CacheKey = (file.id, page_index, scale)
        entry = self._entries.get(key)
        if entry is not None:
            entry.last_access = time.monotonic()
            self._entries.move_to_end(key)
            return await asyncio.shield(entry.task)

        entry = PreviewCacheEntry(file_id=file.id, last_access=time.monotonic())
        entry.task = asyncio.ensure_future(self._render_entry(key, entry, file, page_index, scale))
        entry.task.add_done_callback(functools.partial(self._settled, key, entry))
        self._entries[key] = entry
        self._enforce_limit()
        return await asyncio.shield(entry.task)

    async def _render_entry(
        self,
        key: CacheKey,
        entry: PreviewCacheEntry,
        file: SourceFile,
        page_index: int,
        scale: float,
    ) -> Optional[PreviewHandle]:
        await asyncio.sleep(0)
        if self._entries.get(key) is not entry:
            return None
        try:
            data = await self._render_source(file, page_index, scale)
            handle = self.handles.create(data, "image/jpeg", owner=file.id)
        except Exception as exc:
            LOGGER.debug("Preview unavailable for %s page %d: %s", file.name, page_index, exc)
            return None
        self._tracked.setdefault(file.id, set()).add(handle)
        return handle

    def _settled(
        self,
        key: CacheKey,
        entry: PreviewCacheEntry,
        task: "asyncio.Future[Optional[PreviewHandle]]",
    ) -> None:
        entry.settled = True
        if task.cancelled() or task.exception() is not None:
            return
        handle = task.result()
        entry.resolved = handle
        if handle is not None and self._entries.get(key) is not entry:
            LOGGER.debug("Releasing late preview %s for dropped entry", handle.handle_id)
            self._release(entry.file_id, handle)

    async def _render_source(self, file: SourceFile, page_index: int, scale: float) -> bytes:
        quality = self.settings.thumbnail_quality
        if not file.kind.is_document:
            return image_thumbnail(file.payload, scale, quality)

        document = self._document(file)
        await asyncio.sleep(0)
        if document.is_closed:
            raise ValueError("Document was closed while rendering.")
        total_pages = document.page_count
        if total_pages < 1:
            raise ValueError("PDF has no pages.")
        bounded = max(0, min(page_index, total_pages - 1))
        try:
            page = document.load_page(bounded)
        except Exception:
            page = document.load_page(0)
        return rasterize_page(page, scale, quality)

    def _document(self, file: SourceFile) -> "fitz.Document":
        document = self._documents.get(file.id)
        if document is None:
            document = fitz.open(stream=file.payload, filetype="pdf")
            self._documents[file.id] = document
        return document

    def _enforce_limit(self) -> None:
        while len(self._entries) > self.max_entries:
            key, entry = self._entries.popitem(last=False)
            LOGGER.debug("Evicting preview %s", key)
            if entry.settled and entry.resolved is not None:
                self._release(entry.file_id, entry.resolved)

    def _release(self, file_id: str, handle: PreviewHandle) -> bool:
        tracked = self._tracked.get(file_id)
        if not tracked or handle not in tracked:
            return False
        tracked.discard(handle)
        if not tracked:
            del self._tracked[file_id]
        handle.release()
        return True

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def clear_file(self, file_id: str) -> None:
        """Release every thumbnail and decode state belonging to *file_id*."""

        for key, entry in list(self._entries.items()):
            if entry.file_id != file_id:
                continue
            del self._entries[key]
            if entry.settled and entry.resolved is not None:
                self._release(file_id, entry.resolved)

        for handle in list(self._tracked.get(file_id, ())):
            self._release(file_id, handle)

        document = self._documents.pop(file_id, None)
        if document is not None:
            document.close()

    def clear_all(self, file_ids: Iterable[str] | None = None) -> None:
        if file_ids is None:
            known = {entry.file_id for entry in self._entries.values()}
            known.update(self._tracked)
            known.update(self._documents)
            file_ids = known
        for file_id in list(file_ids):
            self.clear_file(file_id)

    # ------------------------------------------------------------------
    # composed output
    # ------------------------------------------------------------------
    async def render_composed_preview(
        self,
        pdf_bytes: bytes,
        *,
        scale: float = 0.75,
        page_cap: int | None = None,
        start_index: int = 0,
        batch_size: int | None = None,
    ) -> list[PreviewHandle]:
        """Rasterise pages of a composed document.

        The returned handles are not cached; the caller owns and releases
        them. Any failure yields an empty list.
        """

        batch = max(1, batch_size or self.settings.batch_size)
        previews: list[PreviewHandle] = []
        try:
            document = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            LOGGER.debug("Composed preview unavailable: %s", exc)
            return []

        try:
            total_pages = document.page_count
            if total_pages < 1:
                return []
            first = max(0, min(start_index, total_pages - 1))
            remaining = total_pages - first
            count = remaining if page_cap is None else max(0, min(page_cap, remaining))
            for offset in range(count):
                page = document.load_page(first + offset)
                data = rasterize_page(page, scale, self.settings.thumbnail_quality)
                previews.append(self.handles.create(data, "image/jpeg"))
                if offset > 0 and offset % batch == 0:
                    await asyncio.sleep(0)
        except Exception as exc:
            LOGGER.debug("Composed preview failed after %d page(s): %s", len(previews), exc)
            for handle in previews:
                handle.release()
            return []
        finally:
            document.close()
        return previews

    async def render_composed_page(
        self,
        pdf_bytes: bytes,
        page_index: int = 0,
        scale: float = 0.75,
    ) -> Optional[PreviewHandle]:
        previews = await self.render_composed_preview(
            pdf_bytes, scale=scale, page_cap=1, start_index=page_index
        )
        return previews[0] if previews else None


__all__ = ["PreviewCache", "PreviewCacheEntry", "rasterize_page"]
