"""Raster image helpers built on Pillow."""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps

from .config import QualityProfile
from .exceptions import ImageEncodingError

LOGGER = logging.getLogger("pdfcomposex.compose")


def _open_rgb(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        img = ImageOps.exif_transpose(img)
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, (255, 255, 255))
            flattened.paste(rgba, mask=rgba.getchannel("A"))
            return flattened
        return img.convert("RGB")


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    return max(1, round(width * scale)), max(1, round(height * scale))


def image_to_pdf_page(data: bytes, profile: QualityProfile) -> bytes:
    """Re-encode an image as JPEG and wrap it in a single-page PDF.

    The image is pre-scaled by the tier factor and encoded at the tier's JPEG
    quality. The resulting page measures one point per pixel.
    """

    try:
        img = _open_rgb(data)
        size = scaled_size(img.width, img.height, profile.scale)
        if size != img.size:
            img = img.resize(size, Image.LANCZOS)
        output = io.BytesIO()
        img.save(output, format="PDF", resolution=72.0, quality=profile.jpeg_quality)
    except Exception as exc:
        raise ImageEncodingError(f"Unable to process image quality settings: {exc}") from exc

    LOGGER.debug(
        "Re-encoded image at %dx%d, quality %d", size[0], size[1], profile.jpeg_quality
    )
    return output.getvalue()


def image_thumbnail(data: bytes, scale: float, quality: int) -> bytes:
    """Return a JPEG thumbnail of an image payload at *scale*."""

    img = _open_rgb(data)
    img = img.resize(scaled_size(img.width, img.height, scale), Image.BILINEAR)
    output = io.BytesIO()
    img.save(output, format="JPEG", quality=quality)
    return output.getvalue()


def encode_jpeg(img: Image.Image, quality: int) -> bytes:
    output = io.BytesIO()
    img.convert("RGB").save(output, format="JPEG", quality=quality)
    return output.getvalue()


__all__ = ["image_to_pdf_page", "image_thumbnail", "encode_jpeg", "scaled_size"]
