"""Facade tying images, sessions, results and batches together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .cache.result_cache import CropResultCache
from .catalog import ImageCatalog
from .domain.models import CropOptions, CropResult, Dimensions, ImageEntry, Task
from .events.bus import EventBus
from .events.crop_events import ImageRemovedEvent
from .session.crop_session import CropSession
from .session.debounce import KeyedDebouncer
from .settings.manager import SettingsManager
from .state.store import CropperState
from .surface.protocol import CropSurface
from .tasks.batch import BatchOrchestrator

_LOGGER = logging.getLogger(__name__)


class CropWorkspace:
    """Everything the presentation layer needs to crop a set of images."""

    def __init__(
        self,
        *,
        catalog: ImageCatalog,
        settings: SettingsManager,
        state: CropperState,
        cache: CropResultCache,
        orchestrator: BatchOrchestrator,
        debouncer: KeyedDebouncer,
        event_bus: Optional[EventBus] = None,
        rebind_on_settings_change: bool = False,
    ) -> None:
        self.catalog = catalog
        self.settings = settings
        self.state = state
        self.cache = cache
        self.orchestrator = orchestrator
        self.debouncer = debouncer
        self.events = event_bus
        self._rebind = rebind_on_settings_change
        self._sessions: Dict[str, CropSession] = {}

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def add_image(
        self,
        name: str,
        source: Optional[Path] = None,
        original_size: Optional[Dimensions] = None,
    ) -> str:
        return self.catalog.add_image(name, source=source, original_size=original_size)

    def remove_image(self, image_id: str) -> None:
        """Drop *image_id* and every piece of state keyed by it."""
        position = self.catalog.index_of(image_id)
        session = self._sessions.pop(image_id, None)
        if session is not None:
            session.dispose(refresh=False)
        self.debouncer.discard(image_id)
        self.cache.remove_all(image_id)
        self.state.forget(image_id)
        self.settings.clear_image_settings(image_id)
        self.catalog.remove(image_id)
        _LOGGER.info("Removed image %s from position %d", image_id, position)
        if self.events is not None:
            self.events.publish(ImageRemovedEvent(image_id=image_id, position=position, source="workspace"))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def open_session(self, image_id: str, surface: CropSurface) -> CropSession:
        """Bind *surface* to *image_id*, replacing any session already open."""
        self.catalog.entry(image_id)
        self.close_session(image_id)
        session = CropSession(
            image_id,
            settings=self.settings,
            state=self.state,
            cache=self.cache,
            debouncer=self.debouncer,
            event_bus=self.events,
            rebind_on_settings_change=self._rebind,
        )
        self._sessions[image_id] = session
        try:
            session.bind(surface)
        except Exception:
            self._sessions.pop(image_id, None)
            raise
        return session

    def close_session(self, image_id: str, *, refresh: bool = True) -> None:
        session = self._sessions.pop(image_id, None)
        if session is not None:
            session.dispose(refresh=refresh)

    def session(self, image_id: str) -> Optional[CropSession]:
        return self._sessions.get(image_id)

    def close(self) -> None:
        for image_id in list(self._sessions):
            self.close_session(image_id, refresh=False)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def crop_all(self, options: Optional[CropOptions] = None) -> Task:
        return self.orchestrator.crop_all(self.catalog.ids(), options)

    def get_result(self, image_id: str, options: Optional[CropOptions] = None) -> Optional[CropResult]:
        return self.cache.get(image_id, options)

    def invalidate(self, image_id: str) -> bool:
        return self.cache.invalidate(image_id)

    def ready_results(self) -> List[Tuple[ImageEntry, Optional[CropResult]]]:
        """Pair every image, in order, with its cached result or ``None``."""
        return [(entry, self.cache.peek(entry.id)) for entry in self.catalog.entries()]
