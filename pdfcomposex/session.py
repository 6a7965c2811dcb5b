"""Single-user document assembly session.

:class:`DocumentSession` wires the importer, the page model, the composer and
the preview cache together and is the only place where their state changes.
Collaborators read snapshots through the accessors and learn about changes
through :meth:`DocumentSession.subscribe`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from .composer import PdfComposer
from .config import Limits, PreviewSettings
from .exceptions import CompositionError
from .handles import HandleStore, PreviewHandle
from .hashing import ContentHasher
from .pages import PageModel
from .preview import PreviewCache
from .types import (
    ExportSettings,
    ImportReport,
    Orientation,
    PageRecord,
    PageSize,
    Quality,
    RawFile,
    RejectedFile,
    SourceFile,
)
from .utils import ensure_directory, sanitize_file_name
from .validator import FileValidator

LOGGER = logging.getLogger("pdfcomposex.session")

NO_PAGES_MESSAGE = "No pages available. Please add pages before exporting."


class SessionEvent(str, enum.Enum):
    FILES = "files"
    REJECTED = "rejected"
    PAGES = "pages"
    EXPORT_OPTIONS = "export_options"
    FILE_NAME = "file_name"


Listener = Callable[[SessionEvent], None]


class DocumentSession:
    """Holds the accepted files, the curated pages and the export settings."""

    def __init__(
        self,
        limits: Limits | None = None,
        preview_settings: PreviewSettings | None = None,
    ) -> None:
        self.limits = limits or Limits()
        self.preview_settings = preview_settings or PreviewSettings()
        self.handles = HandleStore()
        self.validator = FileValidator(self.limits, ContentHasher(), self.handles)
        self.page_model = PageModel()
        self.composer = PdfComposer()
        self.previews = PreviewCache(
            self.handles, self.limits.max_preview_entries, self.preview_settings
        )
        self._settings = ExportSettings()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # snapshots
    # ------------------------------------------------------------------
    @property
    def files(self) -> tuple[SourceFile, ...]:
        return self.validator.files

    @property
    def rejected(self) -> tuple[RejectedFile, ...]:
        return self.validator.rejected

    @property
    def pages(self) -> tuple[PageRecord, ...]:
        return self.page_model.pages

    @property
    def settings(self) -> ExportSettings:
        return self._settings

    @property
    def manual(self) -> bool:
        return self.page_model.manual

    @property
    def total_size(self) -> int:
        return self.validator.total_size

    @property
    def total_pages(self) -> int:
        return self.page_model.total_pages

    @property
    def has_files(self) -> bool:
        return self.validator.has_files

    @property
    def has_pages(self) -> bool:
        return self.page_model.has_pages

    def get_file(self, file_id: str) -> Optional[SourceFile]:
        return self.validator.get_file(file_id)

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, *events: SessionEvent) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    # ------------------------------------------------------------------
    # files
    # ------------------------------------------------------------------
    async def add_files(self, batch: Iterable[RawFile]) -> ImportReport:
        report = await self.validator.add_files(batch)
        if report.accepted:
            self.page_model.files_added(report.accepted, self.validator.files)
            self._emit(SessionEvent.FILES, SessionEvent.PAGES)
        if report.rejected:
            self._emit(SessionEvent.REJECTED)
        return report

    def remove_file(self, file_id: str) -> bool:
        removed = self.validator.remove_file(file_id)
        if removed is None:
            return False
        self.previews.clear_file(file_id)
        self.page_model.file_removed(file_id, self.validator.files)
        self._emit(SessionEvent.FILES, SessionEvent.PAGES)
        return True

    def clear_files(self) -> None:
        removed = self.validator.clear()
        self.previews.clear_all([file.id for file in removed])
        self.page_model.clear()
        self._emit(SessionEvent.FILES, SessionEvent.PAGES)

    def move_file(self, from_index: int, to_index: int) -> bool:
        if not self.validator.move_file(from_index, to_index):
            return False
        self.page_model.files_reordered(self.validator.files)
        self._emit(SessionEvent.FILES, SessionEvent.PAGES)
        return True

    def clear_rejected(self) -> None:
        self.validator.clear_rejected()
        self._emit(SessionEvent.REJECTED)

    # ------------------------------------------------------------------
    # pages
    # ------------------------------------------------------------------
    def move_page(self, from_index: int, to_index: int) -> bool:
        moved = self.page_model.move_page(from_index, to_index)
        if moved:
            self._emit(SessionEvent.PAGES)
        return moved

    def remove_page(self, page_id: str) -> None:
        self.page_model.remove_page(page_id)
        self._emit(SessionEvent.PAGES)

    def rotate_page(self, page_id: str, delta: int) -> PageRecord:
        page = self.page_model.rotate_page(page_id, delta)
        self._emit(SessionEvent.PAGES)
        return page

    def reset_pages(self) -> None:
        self.page_model.reset(self.validator.files)
        self._emit(SessionEvent.PAGES)

    async def page_preview(self, page_id: str, scale: float | None = None) -> Optional[PreviewHandle]:
        """Return the thumbnail for a page, or ``None`` when unavailable."""

        page = self.page_model.get_page(page_id)
        if page is None:
            return None
        if page.preview is not None and not page.preview.released:
            return page.preview
        file = self.validator.get_file(page.source_file_id)
        if file is None:
            return None
        return await self.previews.get_page_preview(file, page.source_page_index, scale)

    # ------------------------------------------------------------------
    # export settings
    # ------------------------------------------------------------------
    def set_file_name(self, file_name: str) -> None:
        self._settings = dataclasses.replace(self._settings, file_name=sanitize_file_name(file_name))
        self._emit(SessionEvent.FILE_NAME)

    def set_page_size(self, page_size: PageSize | str) -> None:
        self._update_options(page_size=PageSize(page_size))

    def set_orientation(self, orientation: Orientation | str) -> None:
        self._update_options(orientation=Orientation(orientation))

    def set_quality(self, quality: Quality | str) -> None:
        self._update_options(quality=Quality(quality))

    def _update_options(self, **changes: object) -> None:
        self._settings = dataclasses.replace(self._settings, **changes)
        self._emit(SessionEvent.EXPORT_OPTIONS)

    # ------------------------------------------------------------------
    # composition
    # ------------------------------------------------------------------
    async def compose(self, page_cap: int | None = None) -> bytes:
        return await self.composer.compose(self.files, self.pages, self._settings, page_cap)

    async def export(self, directory: str | Path) -> Path:
        """Compose every page and write ``<file name>.pdf`` into *directory*."""

        if not self.has_pages:
            raise CompositionError(NO_PAGES_MESSAGE)
        data = await self.compose()
        destination = ensure_directory(directory) / self._settings.output_file_name
        try:
            destination.write_bytes(data)
        except OSError as exc:
            LOGGER.error("Failed to write %s: %s", destination, exc)
            raise CompositionError(f"Failed to write {destination}") from exc
        LOGGER.info("Exported %d page(s) to %s", self.total_pages, destination)
        return destination

    def close(self) -> None:
        self.clear_files()
        self.previews.clear_all()


class PreviewMode(str, enum.Enum):
    QUICK = "quick"
    FULL = "full"


class ComposedPreview:
    """Debounced, generation-stamped preview of the composed output.

    Each :meth:`refresh` takes a new generation number. A refresh that
    finishes after a newer one has started releases the handles it produced
    instead of publishing them. The handles currently on display belong to
    this controller and are released when replaced or on :meth:`close`.
    """

    def __init__(
        self,
        session: DocumentSession,
        mode: PreviewMode = PreviewMode.QUICK,
        *,
        auto_refresh: bool = False,
    ) -> None:
        self.session = session
        self.settings = session.preview_settings
        self.mode = PreviewMode(mode)
        self.loading = False
        self.error = ""
        self.notice = ""
        self.needs_refresh = False
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._handles: list[PreviewHandle] = []
        self._last_key = ""
        self._unsubscribe = session.subscribe(self._on_session_event) if auto_refresh else None

    @property
    def handles(self) -> tuple[PreviewHandle, ...]:
        return tuple(self._handles)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def page_cap(self) -> int:
        if self.mode is PreviewMode.QUICK:
            return self.settings.quick_page_cap
        return self.settings.full_page_cap

    def schedule(self, delay: float | None = None) -> asyncio.Task:
        """Refresh after a quiet period, superseding any pending schedule."""

        if self._timer is not None:
            self._timer.cancel()
        delay = self.settings.debounce_seconds if delay is None else delay
        self._timer = asyncio.ensure_future(self._debounced(delay))
        return self._timer

    async def _debounced(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._timer = None
        await self.refresh()

    def set_mode(self, mode: PreviewMode | str) -> None:
        self.mode = PreviewMode(mode)
        self.error = ""
        if self.mode is PreviewMode.QUICK:
            self.needs_refresh = False
            self._schedule_if_running(0.05)
            return
        self.needs_refresh = True
        self._clear()

    def invalidate(self) -> None:
        self._last_key = ""
        if self.mode is PreviewMode.QUICK:
            self._schedule_if_running()
            return
        self.needs_refresh = True

    def _on_session_event(self, event: SessionEvent) -> None:
        if event in (SessionEvent.FILES, SessionEvent.PAGES, SessionEvent.EXPORT_OPTIONS):
            self.invalidate()

    def _schedule_if_running(self, delay: float | None = None) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.schedule(delay)

    async def refresh(self) -> tuple[PreviewHandle, ...]:
        self._generation += 1
        generation = self._generation
        self.error = ""
        self.notice = ""

        if not self.session.has_pages:
            self.loading = False
            self.error = "No pages available for preview."
            self._clear()
            return ()

        quick = self.mode is PreviewMode.QUICK
        page_cap = self.page_cap
        key = self._preview_key(page_cap)
        if key == self._last_key and self._handles and not self.needs_refresh:
            return self.handles

        self.loading = True
        try:
            data = await self.session.compose(page_cap=page_cap)
            previews = await self.session.previews.render_composed_preview(
                data,
                scale=self.settings.quick_scale if quick else self.settings.full_scale,
                page_cap=page_cap,
                batch_size=1 if quick else self.settings.batch_size,
            )
        except CompositionError as exc:
            if generation == self._generation:
                LOGGER.warning("Preview composition failed: %s", exc)
                self.loading = False
                self.error = "Could not generate preview. You can still export the PDF."
                self._clear()
            return self.handles

        if generation != self._generation:
            LOGGER.debug("Discarding stale preview generation %d", generation)
            for handle in previews:
                handle.release()
            return self.handles

        self.loading = False
        if not previews:
            self.error = "Preview not available for the current file set."
            self._clear()
            return ()

        self._replace(previews)
        self.needs_refresh = False
        self._last_key = key
        if not quick and self.session.total_pages > page_cap:
            self.notice = (
                f"Showing first {page_cap} pages for performance. Export includes all pages."
            )
        return self.handles

    def _preview_key(self, page_cap: int) -> str:
        files_key = "|".join(
            f"{file.id}:{file.name}:{file.size}:{file.last_modified}" for file in self.session.files
        )
        pages_key = "|".join(
            f"{page.id}:{page.source_file_id}:{page.source_page_index}:{page.rotation}"
            for page in self.session.pages
        )
        options = self.session.settings
        return (
            f"{self.mode.value}:{page_cap}:{options.page_size.value}:{options.orientation.value}:"
            f"{options.quality.value}:{files_key}:{pages_key}"
        )

    def _replace(self, previews: list[PreviewHandle]) -> None:
        self._clear()
        self._handles = list(previews)

    def _clear(self) -> None:
        for handle in self._handles:
            handle.release()
        self._handles = []

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._clear()


__all__ = [
    "DocumentSession",
    "SessionEvent",
    "ComposedPreview",
    "PreviewMode",
    "NO_PAGES_MESSAGE",
]
