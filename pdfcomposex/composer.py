"""Composition of the curated page sequence into one output document."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Iterable, Optional, Sequence

from pypdf import PageObject, PdfReader, PdfWriter, Transformation

from .config import QualityProfile, quality_profile
from .exceptions import CompositionError, UnreadableSourceError
from .geometry import draw_placement, fit_within, resolve_page_size, rotated_size
from .imaging import image_to_pdf_page
from .pages import normalize_rotation
from .types import ExportSettings, PageRecord, SourceFile

LOGGER = logging.getLogger("pdfcomposex.compose")

PRODUCER = "pdfcomposex"


def _load_reader(file: SourceFile) -> PdfReader:
    try:
        reader = PdfReader(io.BytesIO(file.payload))
        if reader.is_encrypted:
            LOGGER.debug("Attempting to decrypt encrypted PDF %s", file.name)
            reader.decrypt("")
    except Exception as exc:  # pypdf exceptions vary
        LOGGER.error("Failed to read PDF %s: %s", file.name, exc)
        raise UnreadableSourceError(file.name) from exc
    return reader


class PdfComposer:
    """Renders page records into a single PDF byte buffer."""

    async def compose(
        self,
        files: Iterable[SourceFile],
        pages: Sequence[PageRecord],
        settings: ExportSettings,
        page_cap: Optional[int] = None,
    ) -> bytes:
        """Compose *pages* into one PDF and return its bytes.

        Args:
            files: The accepted files the page records refer to.
            pages: Page records in output order. Records whose source file is
                not in *files* are skipped.
            settings: Target page size, orientation and image quality.
            page_cap: When given, only the first ``page_cap`` records are
                composed (used for quick previews).

        Raises:
            CompositionError: If any source cannot be read or encoded. No
                partial output is returned.
        """

        files_by_id = {file.id: file for file in files}
        selected = list(pages) if page_cap is None else list(pages)[: max(0, page_cap)]
        profile = quality_profile(settings.quality)
        readers: dict[str, PdfReader] = {}
        writer = PdfWriter()

        try:
            for record in selected:
                file = files_by_id.get(record.source_file_id)
                if file is None:
                    LOGGER.debug("Skipping page %s of removed file %s", record.id, record.source_file_name)
                    continue
                source_page = self._source_page(file, record, readers, profile)
                self._draw_page(writer, source_page, normalize_rotation(record.rotation), settings, file)
                await asyncio.sleep(0)

            writer.add_metadata({"/Producer": PRODUCER, "/Title": settings.file_name})
            buffer = io.BytesIO()
            writer.write(buffer)
        except CompositionError:
            raise
        except Exception as exc:
            LOGGER.error("Composition failed: %s", exc)
            raise CompositionError(f"Failed to compose output document: {exc}") from exc

        LOGGER.info("Composed %d page(s)", len(writer.pages))
        return buffer.getvalue()

    def _source_page(
        self,
        file: SourceFile,
        record: PageRecord,
        readers: dict[str, PdfReader],
        profile: QualityProfile,
    ) -> PageObject:
        if file.kind.is_document:
            reader = readers.get(file.id)
            if reader is None:
                reader = _load_reader(file)
                readers[file.id] = reader
            try:
                page = reader.pages[record.source_page_index]
            except Exception as exc:
                raise UnreadableSourceError(file.name, record.source_page_index) from exc
            if page.get("/Rotate", 0):
                page.transfer_rotation_to_content()
            return page

        pdf_bytes = image_to_pdf_page(file.payload, profile)
        return PdfReader(io.BytesIO(pdf_bytes)).pages[0]

    def _draw_page(
        self,
        writer: PdfWriter,
        source: PageObject,
        rotation: int,
        settings: ExportSettings,
        file: SourceFile,
    ) -> None:
        mediabox = source.mediabox
        width, height = float(mediabox.width), float(mediabox.height)
        if width <= 0 or height <= 0:
            raise UnreadableSourceError(file.name)

        page_size = resolve_page_size(settings.page_size, width, height, settings.orientation)
        content = rotated_size(width, height, rotation)
        box = fit_within(page_size.width, page_size.height, content.width, content.height)
        placement = draw_placement(box, rotation)

        transformation = (
            Transformation()
            .translate(-float(mediabox.left), -float(mediabox.bottom))
            .scale(placement.width / width, placement.height / height)
            .rotate(placement.rotation)
            .translate(placement.x, placement.y)
        )
        output_page = writer.add_blank_page(width=page_size.width, height=page_size.height)
        output_page.merge_transformed_page(source, transformation)


__all__ = ["PdfComposer", "PRODUCER"]
