"""Releasable preview handles.

A :class:`PreviewHandle` is the displayable end product of the import and
preview pipelines: a blob of encoded image (or document) bytes plus its media
type. Handles are minted by a :class:`HandleStore`, which keeps the set of
live handles so that leaks and double releases are observable.
"""

from __future__ import annotations

import itertools
import logging

from .exceptions import HandleReleasedError

LOGGER = logging.getLogger("pdfcomposex.handles")


class PreviewHandle:
    """Opaque reference to displayable bytes with an explicit release."""

    __slots__ = ("handle_id", "media_type", "owner", "release_count", "_data", "_store")

    def __init__(
        self,
        handle_id: str,
        data: bytes,
        media_type: str,
        *,
        owner: str | None = None,
        store: "HandleStore | None" = None,
    ) -> None:
        self.handle_id = handle_id
        self.media_type = media_type
        self.owner = owner
        self.release_count = 0
        self._data: bytes | None = data
        self._store = store

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise HandleReleasedError(f"Preview handle {self.handle_id} has been released")
        return self._data

    def release(self) -> bool:
        """Release the handle, returning ``False`` if it was already released."""

        self.release_count += 1
        if self._data is None:
            LOGGER.warning("Preview handle %s released more than once", self.handle_id)
            return False
        self._data = None
        if self._store is not None:
            self._store._forget(self)
        return True

    def __repr__(self) -> str:
        state = "released" if self.released else f"{len(self._data or b'')} bytes"
        return f"PreviewHandle({self.handle_id!r}, {self.media_type!r}, {state})"


class HandleStore:
    """Mints preview handles and tracks the ones still alive."""

    def __init__(self, prefix: str = "preview") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)
        self._live: dict[str, PreviewHandle] = {}

    def create(self, data: bytes, media_type: str, *, owner: str | None = None) -> PreviewHandle:
        handle_id = f"{self._prefix}-{next(self._counter)}"
        handle = PreviewHandle(handle_id, bytes(data), media_type, owner=owner, store=self)
        self._live[handle_id] = handle
        LOGGER.debug("Created %s for %s (%d bytes)", handle_id, owner or "<unowned>", len(data))
        return handle

    def _forget(self, handle: PreviewHandle) -> None:
        self._live.pop(handle.handle_id, None)

    @property
    def live_count(self) -> int:
        return len(self._live)

    def live_handles(self) -> list[PreviewHandle]:
        return list(self._live.values())


__all__ = ["PreviewHandle", "HandleStore"]
