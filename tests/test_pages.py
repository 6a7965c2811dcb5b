from __future__ import annotations

import pytest

from pdfcomposex.exceptions import PageNotFoundError
from pdfcomposex.pages import PageModel, build_pages_for_file, derive_pages, normalize_rotation
from pdfcomposex.types import MediaKind


def _origins(model: PageModel) -> list[str]:
    return [page.origin_order_key for page in model.pages]


@pytest.mark.parametrize(("value", "expected"), [(0, 0), (90, 90), (-90, 270), (450, 90), (45, 0)])
def test_normalize_rotation(value: int, expected: int) -> None:
    assert normalize_rotation(value) == expected


def test_document_pages_follow_source_order(source_factory) -> None:
    file = source_factory(page_count=3)
    pages = build_pages_for_file(file)

    assert [page.source_page_index for page in pages] == [0, 1, 2]
    assert [page.origin_order_key for page in pages] == [f"{file.id}:0", f"{file.id}:1", f"{file.id}:2"]
    assert all(page.rotation == 0 and page.preview is None for page in pages)
    assert len({page.id for page in pages}) == 3


def test_image_page_reuses_file_preview(source_factory) -> None:
    image = source_factory(kind=MediaKind.IMAGE_PNG)
    (page,) = build_pages_for_file(image)

    assert page.source_page_index == 0
    assert page.preview is image.preview
    assert page.source_kind is MediaKind.IMAGE_PNG


def test_synced_model_rebuilds_on_file_changes(source_factory) -> None:
    a = source_factory(page_count=2)
    b = source_factory(kind=MediaKind.IMAGE_JPEG)
    model = PageModel()

    model.files_added([a, b], [a, b])
    assert _origins(model) == [f"{a.id}:0", f"{a.id}:1", f"{b.id}:0"]
    assert not model.manual

    model.files_reordered([b, a])
    assert _origins(model) == [f"{b.id}:0", f"{a.id}:0", f"{a.id}:1"]

    model.file_removed(b.id, [a])
    assert _origins(model) == [f"{a.id}:0", f"{a.id}:1"]


def test_manual_edits_survive_file_changes(source_factory) -> None:
    a = source_factory(page_count=2)
    b = source_factory(page_count=1)
    model = PageModel()
    model.files_added([a, b], [a, b])

    assert model.move_page(2, 0)
    assert model.manual
    edited = _origins(model)
    assert edited == [f"{b.id}:0", f"{a.id}:0", f"{a.id}:1"]

    model.files_reordered([b, a])
    assert _origins(model) == edited

    c = source_factory(page_count=1)
    model.files_added([c], [a, b, c])
    assert _origins(model) == edited + [f"{c.id}:0"]

    model.file_removed(a.id, [b, c])
    assert _origins(model) == [f"{b.id}:0", f"{c.id}:0"]
    assert model.manual

    model.reset([b, c])
    assert not model.manual
    assert _origins(model) == [f"{b.id}:0", f"{c.id}:0"]


def test_reset_discards_rotation_and_order(source_factory) -> None:
    a = source_factory(page_count=2)
    model = PageModel()
    model.files_added([a], [a])
    first = model.pages[0]
    model.rotate_page(first.id, 90)
    model.move_page(0, 1)

    model.reset([a])

    assert _origins(model) == [f"{a.id}:0", f"{a.id}:1"]
    assert all(page.rotation == 0 for page in model.pages)


def test_move_page_rejects_out_of_range(source_factory) -> None:
    a = source_factory(page_count=2)
    model = PageModel()
    model.files_added([a], [a])

    assert not model.move_page(0, 2)
    assert not model.move_page(-1, 0)
    assert not model.manual


def test_remove_page_switches_to_manual(source_factory) -> None:
    a = source_factory(page_count=3)
    model = PageModel()
    model.files_added([a], [a])

    model.remove_page(model.pages[1].id)

    assert model.manual
    assert [page.source_page_index for page in model.pages] == [0, 2]


def test_rotation_accumulates_modulo_full_turn(source_factory) -> None:
    a = source_factory(page_count=1)
    model = PageModel()
    model.files_added([a], [a])
    page_id = model.pages[0].id

    for _ in range(4):
        model.rotate_page(page_id, 90)
    assert model.get_page(page_id).rotation == 0

    assert model.rotate_page(page_id, -90).rotation == 270
    assert model.rotate_page(page_id, 180).rotation == 90


def test_rotate_page_validation(source_factory) -> None:
    a = source_factory(page_count=1)
    model = PageModel()
    model.files_added([a], [a])

    with pytest.raises(ValueError):
        model.rotate_page(model.pages[0].id, 45)
    with pytest.raises(PageNotFoundError):
        model.rotate_page("missing", 90)
    with pytest.raises(KeyError):
        model.rotate_page("missing", 90)


def test_clear_resets_state(source_factory) -> None:
    a = source_factory(page_count=2)
    model = PageModel()
    model.files_added([a], [a])
    model.remove_page(model.pages[0].id)

    model.clear()

    assert not model.has_pages
    assert not model.manual
    assert derive_pages([]) == []
