"""Memoized rasterized crops, one live result per image."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ..domain.models import CropOptions, CropResult, Dimensions
from ..errors import ICropperError, RasterizationError
from ..events.bus import EventBus
from ..events.crop_events import (
    CropResultInvalidatedEvent,
    CropResultReadyEvent,
    SettingsChangedEvent,
)
from ..settings.manager import SettingsManager
from ..state.store import CropperState
from ..surface.protocol import CropSurface
from .handles import HandleRegistry

_LOGGER = logging.getLogger(__name__)


class CropResultCache:
    """Keyed by image id, holds the latest :class:`CropResult` of each image.

    Results are generated lazily from the surface the owning session
    registered.  Every superseded or removed result has its handle released
    before anything else happens to the entry, so at most one handle per image
    is ever live.  Each key is guarded by its own lock.
    """

    def __init__(
        self,
        state: CropperState,
        settings: SettingsManager,
        handles: HandleRegistry,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._state = state
        self._settings = settings
        self._handles = handles
        self._events = event_bus
        self._entries: Dict[str, CropResult] = {}
        self._surfaces: Dict[str, CropSurface] = {}
        self._key_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()
        self._subscription = None
        if event_bus is not None:
            self._subscription = event_bus.subscribe(SettingsChangedEvent, self._on_settings_changed)

    # ------------------------------------------------------------------
    # Surfaces
    # ------------------------------------------------------------------
    def register_surface(self, image_id: str, surface: CropSurface) -> None:
        with self._lock:
            self._surfaces[image_id] = surface

    def unregister_surface(self, image_id: str) -> None:
        with self._lock:
            self._surfaces.pop(image_id, None)

    def surface_for(self, image_id: str) -> Optional[CropSurface]:
        with self._lock:
            return self._surfaces.get(image_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def peek(self, image_id: str) -> Optional[CropResult]:
        """Return the cached result without ever rasterizing."""
        with self._lock:
            return self._entries.get(image_id)

    def has_valid(self, image_id: str) -> bool:
        entry = self.peek(image_id)
        return entry is not None and entry.is_valid

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def get(self, image_id: str, options: Optional[CropOptions] = None) -> Optional[CropResult]:
        """Return the result for *image_id*, rasterizing it if necessary.

        ``None`` means "not ready yet": no surface is bound and nothing is
        cached, or the surface produced an empty crop.
        """
        with self._key_lock(image_id):
            entry = self.peek(image_id)
            if entry is not None and entry.is_valid:
                return entry

            surface = self.surface_for(image_id)
            if surface is None or not surface.is_ready:
                _LOGGER.debug("No bound surface for %s; result not ready", image_id)
                return None

            if options is None:
                options = self._settings.crop_options_for(image_id)
            try:
                raster = surface.get_rasterized_canvas(options)
            except ICropperError:
                raise
            except Exception as exc:
                raise RasterizationError(f"Rasterization failed for {image_id}: {exc}") from exc

            if raster is None or not raster.payload:
                _LOGGER.debug("Surface for %s produced no pixels", image_id)
                return None

            if entry is not None:
                self._handles.release(entry.url_handle)
            result = CropResult(
                payload=raster.payload,
                url_handle=self._handles.allocate(raster.payload),
                dimensions=Dimensions(raster.width, raster.height),
                media_type=raster.media_type,
            )
            with self._lock:
                self._entries[image_id] = result

        _LOGGER.debug("Cached %s result for %s (%s)", result.media_type, image_id, result.dimensions)
        self._publish(
            CropResultReadyEvent(
                image_id=image_id,
                url_handle=result.url_handle,
                dimensions=result.dimensions,
                source="cache",
            )
        )
        return result

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------
    def invalidate(self, image_id: str) -> bool:
        """Release and drop *image_id*'s result.  Safe to call repeatedly."""
        with self._key_lock(image_id):
            with self._lock:
                entry = self._entries.pop(image_id, None)
            if entry is None:
                return False
            self._handles.release(entry.url_handle)
        self._publish(
            CropResultInvalidatedEvent(image_id=image_id, url_handle=entry.url_handle, source="cache")
        )
        return True

    def remove_all(self, image_id: str) -> None:
        """Forget everything about *image_id*; used when the image is deleted."""
        self.invalidate(image_id)
        with self._lock:
            self._surfaces.pop(image_id, None)
            self._key_locks.pop(image_id, None)

    def invalidate_all(self) -> int:
        count = 0
        for image_id in self.ids():
            if self.invalidate(image_id):
                count += 1
        if count:
            _LOGGER.info("Invalidated %d cached crop result(s)", count)
        return count

    def close(self) -> None:
        if self._subscription is not None and self._events is not None:
            self._events.unsubscribe(self._subscription)
            self._subscription = None

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _key_lock(self, image_id: str) -> threading.RLock:
        with self._lock:
            lock = self._key_locks.get(image_id)
            if lock is None:
                lock = self._key_locks[image_id] = threading.RLock()
            return lock

    def _on_settings_changed(self, event: SettingsChangedEvent) -> None:
        if event.image_id is None:
            self.invalidate_all()
        else:
            self.invalidate(event.image_id)

    def _publish(self, event) -> None:
        if self._events is not None:
            self._events.publish(event)
