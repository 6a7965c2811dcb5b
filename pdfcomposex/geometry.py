"""Page box geometry for the composition engine.

All values are PDF points. Rotations are counter-clockwise degrees in
``{0, 90, 180, 270}``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import STANDARD_PAGE_SIZES
from .types import Orientation, PageSize


@dataclass(frozen=True, slots=True)
class Size:
    width: float
    height: float

    @property
    def is_landscape(self) -> bool:
        return self.width > self.height


@dataclass(frozen=True, slots=True)
class Box:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Placement:
    """Anchor point, pre-rotation extents and rotation used to draw content."""

    x: float
    y: float
    width: float
    height: float
    rotation: int


def rotated_size(width: float, height: float, rotation: int) -> Size:
    if rotation in (90, 270):
        return Size(height, width)
    return Size(width, height)


def resolve_page_size(
    page_size: PageSize,
    content_width: float,
    content_height: float,
    orientation: Orientation = Orientation.AUTO,
) -> Size:
    """Return the output page box for a source of the given size.

    ``PageSize.ORIGINAL`` keeps the source box. Standard sizes are laid out
    landscape or portrait, either as forced by *orientation* or, in
    automatic mode, following the un-rotated source box.
    """

    if page_size is PageSize.ORIGINAL:
        return Size(content_width, content_height)

    if orientation is Orientation.AUTO:
        landscape = content_width > content_height
    else:
        landscape = orientation is Orientation.LANDSCAPE

    width, height = STANDARD_PAGE_SIZES[page_size]
    short_side, long_side = min(width, height), max(width, height)
    if landscape:
        return Size(long_side, short_side)
    return Size(short_side, long_side)


def fit_within(page_width: float, page_height: float, content_width: float, content_height: float) -> Box:
    """Scale content uniformly to fit the page and center it."""

    scale = min(page_width / content_width, page_height / content_height)
    width = content_width * scale
    height = content_height * scale
    return Box(
        x=(page_width - width) / 2,
        y=(page_height - height) / 2,
        width=width,
        height=height,
    )


def draw_placement(box: Box, rotation: int) -> Placement:
    """Translate a centered box into the anchor used for rotated drawing.

    Content is drawn with its lower-left corner at the anchor and then rotated
    about it, so each rotation anchors at the corner of *box* that keeps the
    rotated content inside the box.
    """

    if rotation == 90:
        return Placement(box.x + box.width, box.y, box.height, box.width, rotation)
    if rotation == 180:
        return Placement(box.x + box.width, box.y + box.height, box.width, box.height, rotation)
    if rotation == 270:
        return Placement(box.x, box.y + box.height, box.height, box.width, rotation)
    return Placement(box.x, box.y, box.width, box.height, 0)


__all__ = [
    "Size",
    "Box",
    "Placement",
    "rotated_size",
    "resolve_page_size",
    "fit_within",
    "draw_placement",
]
