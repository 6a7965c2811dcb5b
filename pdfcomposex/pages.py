"""Page sequence derived from the accepted files.

The :class:`PageModel` mirrors the file list until the first direct page
edit. From then on the page list belongs to the user: file additions append
the new pages, file removals strip that file's pages, and nothing rebuilds the
list except an explicit :meth:`PageModel.reset`.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Optional, Sequence

from .exceptions import PageNotFoundError
from .types import PageRecord, SourceFile
from .utils import new_id

LOGGER = logging.getLogger("pdfcomposex.pages")


def normalize_rotation(rotation: int) -> int:
    """Return *rotation* folded into ``{0, 90, 180, 270}``."""

    normalized = rotation % 360
    return normalized if normalized in (90, 180, 270) else 0


def build_pages_for_file(file: SourceFile) -> list[PageRecord]:
    if file.kind.is_document:
        return [
            PageRecord(
                id=new_id(),
                source_file_id=file.id,
                source_file_name=file.name,
                source_kind=file.kind,
                source_page_index=index,
                rotation=0,
                origin_order_key=f"{file.id}:{index}",
            )
            for index in range(file.page_count)
        ]
    return [
        PageRecord(
            id=new_id(),
            source_file_id=file.id,
            source_file_name=file.name,
            source_kind=file.kind,
            source_page_index=0,
            rotation=0,
            preview=file.preview,
            origin_order_key=f"{file.id}:0",
        )
    ]


def derive_pages(files: Iterable[SourceFile]) -> list[PageRecord]:
    pages: list[PageRecord] = []
    for file in files:
        pages.extend(build_pages_for_file(file))
    return pages


class PageModel:
    """Synced/manual state machine over the curated page list."""

    def __init__(self) -> None:
        self._pages: tuple[PageRecord, ...] = ()
        self._manual = False

    @property
    def pages(self) -> tuple[PageRecord, ...]:
        return self._pages

    @property
    def manual(self) -> bool:
        return self._manual

    @property
    def total_pages(self) -> int:
        return len(self._pages)

    @property
    def has_pages(self) -> bool:
        return bool(self._pages)

    def get_page(self, page_id: str) -> Optional[PageRecord]:
        for page in self._pages:
            if page.id == page_id:
                return page
        return None

    # ------------------------------------------------------------------
    # file driven transitions
    # ------------------------------------------------------------------
    def files_added(self, new_files: Sequence[SourceFile], all_files: Sequence[SourceFile]) -> None:
        if not new_files:
            return
        if self._manual:
            self._pages = self._pages + tuple(derive_pages(new_files))
            LOGGER.debug("Appended pages for %d new file(s) to manual list", len(new_files))
        else:
            self._rebuild(all_files)

    def file_removed(self, file_id: str, all_files: Sequence[SourceFile]) -> None:
        if self._manual:
            self._pages = tuple(page for page in self._pages if page.source_file_id != file_id)
        else:
            self._rebuild(all_files)

    def files_reordered(self, all_files: Sequence[SourceFile]) -> None:
        if not self._manual:
            self._rebuild(all_files)

    def reset(self, all_files: Sequence[SourceFile]) -> None:
        """Discard manual edits and rebuild from file order."""

        self._rebuild(all_files)

    def clear(self) -> None:
        self._pages = ()
        self._manual = False

    def _rebuild(self, files: Sequence[SourceFile]) -> None:
        self._pages = tuple(derive_pages(files))
        self._manual = False
        LOGGER.debug("Rebuilt %d page(s) from %d file(s)", len(self._pages), len(files))

    # ------------------------------------------------------------------
    # direct page edits
    # ------------------------------------------------------------------
    def move_page(self, from_index: int, to_index: int) -> bool:
        count = len(self._pages)
        if not (0 <= from_index < count and 0 <= to_index < count):
            return False
        pages = list(self._pages)
        pages.insert(to_index, pages.pop(from_index))
        self._pages = tuple(pages)
        self._manual = True
        return True

    def remove_page(self, page_id: str) -> None:
        self._pages = tuple(page for page in self._pages if page.id != page_id)
        self._manual = True

    def rotate_page(self, page_id: str, delta: int) -> PageRecord:
        if delta % 90:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {delta}")
        target = self.get_page(page_id)
        if target is None:
            raise PageNotFoundError(page_id)

        rotated = dataclasses.replace(target, rotation=(target.rotation + delta) % 360)
        self._pages = tuple(rotated if page.id == page_id else page for page in self._pages)
        self._manual = True
        return rotated


__all__ = [
    "PageModel",
    "build_pages_for_file",
    "derive_pages",
    "normalize_rotation",
]
