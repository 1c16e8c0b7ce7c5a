"""Ordered list of the images loaded into a workspace."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from .domain.models import Dimensions, ImageEntry
from .errors import ImageNotFoundError

_LOGGER = logging.getLogger(__name__)


class ImageCatalog:
    """Images in display order, addressed by a stable id.

    Positions are presentation detail only; removing an image shifts later
    positions down by one while every id stays the same.
    """

    def __init__(self) -> None:
        self._entries: List[ImageEntry] = []
        self._lock = threading.Lock()

    def add_image(
        self,
        name: str,
        source: Optional[Path] = None,
        original_size: Optional[Dimensions] = None,
    ) -> str:
        entry = ImageEntry.create(name, source=source, original_size=original_size)
        with self._lock:
            self._entries.append(entry)
        _LOGGER.debug("Added image %s (%s)", entry.id, name)
        return entry.id

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, image_id: object) -> bool:
        with self._lock:
            return any(entry.id == image_id for entry in self._entries)

    def ids(self) -> List[str]:
        with self._lock:
            return [entry.id for entry in self._entries]

    def entries(self) -> List[ImageEntry]:
        with self._lock:
            return list(self._entries)

    def index_of(self, image_id: str) -> int:
        with self._lock:
            for position, entry in enumerate(self._entries):
                if entry.id == image_id:
                    return position
        raise ImageNotFoundError(image_id)

    def entry(self, image_id: str) -> ImageEntry:
        with self._lock:
            for entry in self._entries:
                if entry.id == image_id:
                    return entry
        raise ImageNotFoundError(image_id)

    def entry_at(self, position: int) -> ImageEntry:
        with self._lock:
            try:
                return self._entries[position]
            except IndexError:
                raise ImageNotFoundError(f"No image at position {position}") from None

    def rename(self, image_id: str, name: str) -> None:
        """Set the name results for *image_id* are exported under."""
        self.entry(image_id).name = name.strip()

    def remove(self, image_id: str) -> int:
        """Remove *image_id* and return the position it occupied."""
        with self._lock:
            for position, entry in enumerate(self._entries):
                if entry.id == image_id:
                    del self._entries[position]
                    return position
        raise ImageNotFoundError(image_id)
