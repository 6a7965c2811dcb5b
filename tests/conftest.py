from __future__ import annotations

import io
from pathlib import Path
from typing import Callable
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdfcomposex.handles import HandleStore  # noqa: E402
from pdfcomposex.types import MediaKind, RawFile, SourceFile  # noqa: E402


def build_pdf(
    pages: int = 1,
    width: float = 200,
    height: float = 200,
    title: str | None = None,
) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    if title is not None:
        writer.add_metadata({"/Title": title})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_image(
    fmt: str = "PNG",
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int] = (200, 30, 30),
) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def pdf_bytes() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture()
def image_bytes() -> Callable[..., bytes]:
    return build_image


@pytest.fixture()
def raw_pdf() -> Callable[..., RawFile]:
    def _create(
        name: str = "doc.pdf",
        pages: int = 1,
        title: str | None = None,
        last_modified: int = 1000,
        **kwargs: float,
    ) -> RawFile:
        data = build_pdf(pages=pages, title=title, **kwargs)
        return RawFile.from_bytes(name, data, "application/pdf", last_modified)

    return _create


@pytest.fixture()
def raw_image() -> Callable[..., RawFile]:
    def _create(
        name: str = "photo.png",
        size: tuple[int, int] = (40, 30),
        color: tuple[int, int, int] = (200, 30, 30),
        last_modified: int = 1000,
    ) -> RawFile:
        data = build_image("PNG", size, color)
        return RawFile.from_bytes(name, data, "image/png", last_modified)

    return _create


@pytest.fixture()
def handle_store() -> HandleStore:
    return HandleStore()


@pytest.fixture()
def source_factory(handle_store: HandleStore) -> Callable[..., SourceFile]:
    counter = iter(range(1, 10_000))

    def _create(
        kind: MediaKind = MediaKind.DOCUMENT,
        page_count: int = 1,
        payload: bytes | None = None,
        name: str | None = None,
        **pdf_kwargs: float,
    ) -> SourceFile:
        number = next(counter)
        file_id = f"file-{number}"
        if payload is None:
            if kind is MediaKind.DOCUMENT:
                payload = build_pdf(pages=page_count, **pdf_kwargs)
            else:
                payload = build_image("PNG")
        return SourceFile(
            id=file_id,
            name=name or f"source-{number}",
            size=len(payload),
            kind=kind,
            last_modified=number,
            page_count=page_count if kind is MediaKind.DOCUMENT else 1,
            preview=handle_store.create(payload, kind.value, owner=file_id),
            payload=payload,
        )

    return _create
