"""Injected state containers for per-image crop state."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from ..domain.models import CropConfig, CropStats
from ..events.bus import Subscription

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

StoreListener = Callable[[str, Optional[T]], None]


class KeyedStore(Generic[T]):
    """Thread-safe map keyed by image id with change listeners.

    Values are replaced whole, never merged.  Listeners receive the key and
    the new value, or ``None`` when the key was removed.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._values: Dict[str, T] = {}
        self._listeners: List[Subscription] = []
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._values)

    def items(self) -> Iterator[tuple[str, T]]:
        with self._lock:
            return iter(list(self._values.items()))

    def snapshot(self, keys=None) -> Dict[str, T]:
        with self._lock:
            if keys is None:
                return dict(self._values)
            return {key: self._values[key] for key in keys if key in self._values}

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._values[key] = value
        self._notify(key, value)

    def pop(self, key: str) -> Optional[T]:
        with self._lock:
            value = self._values.pop(key, None)
        if value is not None:
            self._notify(key, None)
        return value

    def clear(self) -> None:
        with self._lock:
            keys = list(self._values)
            self._values.clear()
        for key in keys:
            self._notify(key, None)

    def subscribe(self, listener: StoreListener) -> Subscription:
        sub = Subscription(handler=listener)
        with self._lock:
            self._listeners.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()
        with self._lock:
            if subscription in self._listeners:
                self._listeners.remove(subscription)

    def _notify(self, key: str, value: Optional[T]) -> None:
        with self._lock:
            listeners = [sub for sub in self._listeners if sub.active]
        for sub in listeners:
            try:
                sub.handler(key, value)
            except Exception:
                _LOGGER.exception("Listener on store %r failed for %s", self._name, key)


class CropperState:
    """Per-image crop state shared by sessions, the result cache and batches."""

    def __init__(self) -> None:
        self.configs: KeyedStore[CropConfig] = KeyedStore("configs")
        self.stats: KeyedStore[CropStats] = KeyedStore("stats")

    def forget(self, image_id: str) -> None:
        self.configs.pop(image_id)
        self.stats.pop(image_id)
