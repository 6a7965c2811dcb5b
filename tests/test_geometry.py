from __future__ import annotations

import math

import pytest

from pdfcomposex.geometry import (
    Box,
    draw_placement,
    fit_within,
    resolve_page_size,
    rotated_size,
)
from pdfcomposex.types import Orientation, PageSize


def _rotate(x: float, y: float, degrees: int) -> tuple[float, float]:
    radians = math.radians(degrees)
    return (
        x * math.cos(radians) - y * math.sin(radians),
        x * math.sin(radians) + y * math.cos(radians),
    )


def test_rotated_size_swaps_on_quarter_turns() -> None:
    assert rotated_size(800, 400, 0) == rotated_size(800, 400, 180)
    swapped = rotated_size(800, 400, 90)
    assert (swapped.width, swapped.height) == (400, 800)
    assert rotated_size(800, 400, 270) == swapped


def test_original_page_size_keeps_source_box() -> None:
    size = resolve_page_size(PageSize.ORIGINAL, 300, 500, Orientation.LANDSCAPE)

    assert (size.width, size.height) == (300, 500)


@pytest.mark.parametrize(
    ("orientation", "width", "height", "expected"),
    [
        (Orientation.AUTO, 800, 400, (841.89, 595.28)),
        (Orientation.AUTO, 400, 800, (595.28, 841.89)),
        (Orientation.AUTO, 500, 500, (595.28, 841.89)),
        (Orientation.PORTRAIT, 800, 400, (595.28, 841.89)),
        (Orientation.LANDSCAPE, 400, 800, (841.89, 595.28)),
    ],
)
def test_standard_size_orientation(
    orientation: Orientation,
    width: float,
    height: float,
    expected: tuple[float, float],
) -> None:
    size = resolve_page_size(PageSize.A4, width, height, orientation)

    assert (size.width, size.height) == pytest.approx(expected)


def test_letter_landscape() -> None:
    size = resolve_page_size(PageSize.LETTER, 100, 50)

    assert (size.width, size.height) == (792.0, 612.0)
    assert size.is_landscape


def test_fit_within_preserves_aspect_and_centers() -> None:
    box = fit_within(841.89, 595.28, 400, 800)

    assert box.height == pytest.approx(595.28)
    assert box.width == pytest.approx(297.64)
    assert box.y == pytest.approx(0)
    assert box.x == pytest.approx((841.89 - 297.64) / 2)


def test_fit_within_scales_up_small_content() -> None:
    box = fit_within(200, 200, 50, 100)

    assert (box.width, box.height) == pytest.approx((100, 200))
    assert (box.x, box.y) == pytest.approx((50, 0))


@pytest.mark.parametrize("rotation", [0, 90, 180, 270])
def test_rotated_content_fills_box(rotation: int) -> None:
    box = Box(x=10, y=20, width=300, height=150)
    placement = draw_placement(box, rotation)

    corners = [
        (0, 0),
        (placement.width, 0),
        (0, placement.height),
        (placement.width, placement.height),
    ]
    moved = [_rotate(x, y, placement.rotation) for x, y in corners]
    xs = [placement.x + x for x, _ in moved]
    ys = [placement.y + y for _, y in moved]

    assert min(xs) == pytest.approx(box.x)
    assert max(xs) == pytest.approx(box.x + box.width)
    assert min(ys) == pytest.approx(box.y)
    assert max(ys) == pytest.approx(box.y + box.height)


def test_quarter_turn_swaps_extents() -> None:
    placement = draw_placement(Box(0, 0, 300, 150), 90)

    assert (placement.x, placement.y) == (300, 0)
    assert (placement.width, placement.height) == (150, 300)
