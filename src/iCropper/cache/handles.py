"""Opaque URL handles for in-memory crop payloads."""

from __future__ import annotations

import logging
import threading
import uuid

from ..config import RESULT_HANDLE_SCHEME

_LOGGER = logging.getLogger(__name__)


class HandleRegistry:
    """Hands out ``crop-result://`` handles that resolve to encoded payloads.

    A handle stays resolvable until it is released.  Presentation layers use
    it the way a browser uses an object URL; the result cache releases it as
    soon as the result it belongs to is superseded or removed.
    """

    def __init__(self, scheme: str = RESULT_HANDLE_SCHEME) -> None:
        self._scheme = scheme
        self._payloads: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def allocate(self, payload: bytes) -> str:
        handle = f"{self._scheme}://{uuid.uuid4().hex}"
        with self._lock:
            self._payloads[handle] = payload
        return handle

    def resolve(self, handle: str) -> bytes | None:
        with self._lock:
            return self._payloads.get(handle)

    def is_live(self, handle: str) -> bool:
        with self._lock:
            return handle in self._payloads

    def release(self, handle: str | None) -> bool:
        """Release *handle*; returns ``False`` for unknown or foreign handles."""
        if not handle or not handle.startswith(f"{self._scheme}://"):
            return False
        with self._lock:
            released = self._payloads.pop(handle, None) is not None
        if released:
            _LOGGER.debug("Released %s", handle)
        return released

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._payloads)
