"""Configuration for :mod:`pdfcomposex`: limits, quality tiers and page sizes."""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Callable, TypeVar

from .types import PageSize, Quality

LOGGER = logging.getLogger("pdfcomposex.config")

MB = 1024 * 1024
_ENV_PREFIX = "PDFCOMPOSEX_"
_TRUTHY = {"1", "true", "yes", "on"}

T = TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class Limits:
    """Import and cache limits."""

    max_file_size: int = 10 * MB
    max_total_size: int = 120 * MB
    max_pages: int = 400
    max_preview_entries: int = 300
    # Policy when a content digest cannot be computed for a metadata-key collision.
    assume_duplicate_when_unhashable: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Limits":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            max_file_size=_read_env(env, "MAX_FILE_SIZE", int, defaults.max_file_size),
            max_total_size=_read_env(env, "MAX_TOTAL_SIZE", int, defaults.max_total_size),
            max_pages=_read_env(env, "MAX_PAGES", int, defaults.max_pages),
            max_preview_entries=_read_env(
                env, "MAX_PREVIEW_ENTRIES", int, defaults.max_preview_entries
            ),
            assume_duplicate_when_unhashable=_read_env(
                env, "ASSUME_DUPLICATE", _parse_bool, defaults.assume_duplicate_when_unhashable
            ),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class PreviewSettings:
    """Scales, caps and timings used by the preview pipeline."""

    thumbnail_scale: float = 0.35
    thumbnail_quality: int = 86
    quick_scale: float = 0.9
    quick_page_cap: int = 1
    full_scale: float = 0.68
    full_page_cap: int = 24
    debounce_seconds: float = 0.22
    batch_size: int = 4

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "PreviewSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return dataclasses.replace(
            defaults,
            debounce_seconds=_read_env(
                env, "PREVIEW_DEBOUNCE", float, defaults.debounce_seconds
            ),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class QualityProfile:
    """Image re-encoding parameters for a quality tier."""

    name: Quality
    jpeg_quality: int
    scale: float


QUALITY_PROFILES: dict[Quality, QualityProfile] = {
    Quality.HIGH: QualityProfile(Quality.HIGH, jpeg_quality=90, scale=1.0),
    Quality.MEDIUM: QualityProfile(Quality.MEDIUM, jpeg_quality=75, scale=0.85),
    Quality.LOW: QualityProfile(Quality.LOW, jpeg_quality=60, scale=0.7),
}

# Portrait dimensions in PDF points.
STANDARD_PAGE_SIZES: dict[PageSize, tuple[float, float]] = {
    PageSize.A3: (841.89, 1190.55),
    PageSize.A4: (595.28, 841.89),
    PageSize.A5: (419.53, 595.28),
    PageSize.LETTER: (612.0, 792.0),
    PageSize.LEGAL: (612.0, 1008.0),
    PageSize.FOLIO: (612.0, 936.0),
    PageSize.TABLOID: (792.0, 1224.0),
    PageSize.EXECUTIVE: (522.0, 756.0),
    PageSize.B5: (498.9, 708.66),
}


def quality_profile(quality: Quality | str) -> QualityProfile:
    return QUALITY_PROFILES[Quality(quality)]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def _read_env(env, name: str, parse: Callable[[str], T], default: T) -> T:
    raw = env.get(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        LOGGER.warning("Ignoring malformed %s%s=%r", _ENV_PREFIX, name, raw)
        return default


__all__ = [
    "Limits",
    "PreviewSettings",
    "QualityProfile",
    "QUALITY_PROFILES",
    "STANDARD_PAGE_SIZES",
    "quality_profile",
]
