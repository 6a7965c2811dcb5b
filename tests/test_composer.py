from __future__ import annotations

import asyncio
import dataclasses
import io

import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter

import pdfcomposex.composer as composer_module
from pdfcomposex.composer import PRODUCER, PdfComposer
from pdfcomposex.exceptions import CompositionError, UnreadableSourceError
from pdfcomposex.pages import derive_pages
from pdfcomposex.types import ExportSettings, MediaKind, Orientation, PageSize, Quality


def _compose(files, pages, settings=None, page_cap=None) -> PdfReader:
    data = asyncio.run(PdfComposer().compose(files, pages, settings or ExportSettings(), page_cap))
    return PdfReader(io.BytesIO(data))


def _size(page) -> tuple[float, float]:
    return float(page.mediabox.width), float(page.mediabox.height)


def _rotated_source(width: float, height: float, rotate: int) -> bytes:
    writer = PdfWriter()
    page = writer.add_blank_page(width=width, height=height)
    page.rotate(rotate)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_composes_documents_and_images_in_page_order(source_factory) -> None:
    doc = source_factory(page_count=3)
    image = source_factory(kind=MediaKind.IMAGE_PNG)
    pages = derive_pages([doc, image])

    reader = _compose([doc, image], pages, ExportSettings(file_name="bundle"))

    assert len(reader.pages) == 4
    assert reader.metadata.producer == PRODUCER
    assert reader.metadata.title == "bundle"


def test_pages_of_missing_files_are_skipped(source_factory) -> None:
    kept = source_factory(page_count=2)
    dropped = source_factory(page_count=2)
    pages = derive_pages([kept, dropped])

    reader = _compose([kept], pages)

    assert len(reader.pages) == 2


@pytest.mark.parametrize(("cap", "expected"), [(1, 1), (10, 3), (0, 0)])
def test_page_cap_limits_output(source_factory, cap: int, expected: int) -> None:
    doc = source_factory(page_count=3)

    reader = _compose([doc], derive_pages([doc]), page_cap=cap)

    assert len(reader.pages) == expected


def test_original_size_keeps_source_box(source_factory) -> None:
    doc = source_factory(page_count=1, width=300, height=500)

    reader = _compose([doc], derive_pages([doc]))

    assert _size(reader.pages[0]) == pytest.approx((300, 500))


def test_rotated_page_on_landscape_a4(source_factory) -> None:
    doc = source_factory(page_count=1, width=800, height=400)
    (page,) = derive_pages([doc])
    rotated = [dataclasses.replace(page, rotation=90)]
    settings = ExportSettings(page_size=PageSize.A4, orientation=Orientation.LANDSCAPE)

    reader = _compose([doc], rotated, settings)

    assert _size(reader.pages[0]) == pytest.approx((841.89, 595.28))


def test_original_size_with_quarter_turn_keeps_unrotated_box(source_factory) -> None:
    doc = source_factory(page_count=1, width=800, height=400)
    (page,) = derive_pages([doc])
    rotated = [dataclasses.replace(page, rotation=270)]

    reader = _compose([doc], rotated)

    assert _size(reader.pages[0]) == pytest.approx((800, 400))


def test_source_rotation_is_folded_into_content(source_factory) -> None:
    doc = source_factory(page_count=1, payload=_rotated_source(200, 100, 90))

    reader = _compose([doc], derive_pages([doc]))
    page = reader.pages[0]

    assert _size(page) == pytest.approx((100, 200))
    assert page.get("/Rotate", 0) == 0


def test_low_quality_downscales_images(source_factory, image_bytes) -> None:
    payload = image_bytes("PNG", size=(100, 50))
    image = source_factory(kind=MediaKind.IMAGE_PNG, payload=payload)

    reader = _compose([image], derive_pages([image]), ExportSettings(quality=Quality.LOW))

    assert _size(reader.pages[0]) == pytest.approx((70, 35))


def test_transparent_image_is_flattened(source_factory) -> None:
    buffer = io.BytesIO()
    Image.new("RGBA", (20, 10), (0, 0, 0, 0)).save(buffer, format="PNG")
    image = source_factory(kind=MediaKind.IMAGE_PNG, payload=buffer.getvalue())

    reader = _compose([image], derive_pages([image]))

    assert _size(reader.pages[0]) == pytest.approx((20, 10))


def test_unreadable_document_aborts_composition(source_factory) -> None:
    broken = source_factory(page_count=1, payload=b"garbage")

    with pytest.raises(CompositionError):
        _compose([broken], derive_pages([broken]))


def test_missing_source_page_names_the_page(source_factory) -> None:
    doc = source_factory(page_count=1)
    (page,) = derive_pages([doc])
    stale = dataclasses.replace(page, source_page_index=5)

    with pytest.raises(UnreadableSourceError) as excinfo:
        _compose([doc], [stale])

    assert excinfo.value.page_index == 5


def test_bad_image_raises_composition_error(source_factory) -> None:
    image = source_factory(kind=MediaKind.IMAGE_JPEG, payload=b"not an image")

    with pytest.raises(CompositionError):
        _compose([image], derive_pages([image]))


def test_reader_is_loaded_once_per_file(source_factory, monkeypatch) -> None:
    doc = source_factory(page_count=3)
    calls: list[str] = []
    original = composer_module._load_reader

    def counting(file):
        calls.append(file.id)
        return original(file)

    monkeypatch.setattr(composer_module, "_load_reader", counting)

    reader = _compose([doc], derive_pages([doc]))

    assert len(reader.pages) == 3
    assert calls == [doc.id]
