"""Content digests used to break metadata-key ties between imports."""

from __future__ import annotations

import asyncio
import hashlib
import logging

from .types import RawFile

LOGGER = logging.getLogger("pdfcomposex.import")

_CHUNK_SIZE = 1024 * 1024


class ContentHasher:
    """Computes hex digests of file payloads.

    Digests are computed in chunks, yielding to the event loop between them so
    that hashing a large payload never starves other in-flight work. ``None``
    is returned whenever a digest cannot be produced.
    """

    def __init__(self, algorithm: str = "sha256") -> None:
        self.algorithm = algorithm

    async def digest(self, raw: RawFile) -> str | None:
        try:
            data = await raw.read()
        except OSError as exc:
            LOGGER.warning("Unable to read %s for hashing: %s", raw.name, exc)
            return None
        return await self.digest_bytes(data)

    async def digest_bytes(self, data: bytes) -> str | None:
        try:
            hasher = hashlib.new(self.algorithm)
        except ValueError as exc:
            LOGGER.warning("Digest algorithm %s unavailable: %s", self.algorithm, exc)
            return None

        view = memoryview(data)
        for offset in range(0, len(view), _CHUNK_SIZE):
            hasher.update(view[offset:offset + _CHUNK_SIZE])
            await asyncio.sleep(0)
        return hasher.hexdigest()


__all__ = ["ContentHasher"]
