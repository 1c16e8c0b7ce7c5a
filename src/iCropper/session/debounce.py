"""Per-key cancellable timers used to debounce cache invalidation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Protocol

from PySide6.QtCore import QObject, QTimer

from ..config import DEBOUNCE_MS

_LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """The subset of :class:`QTimer` the debouncer relies on."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def isActive(self) -> bool: ...


TimerFactory = Callable[[int, Callable[[], None]], TimerHandle]


def qt_timer_factory(parent: QObject | None = None) -> TimerFactory:
    """Return a factory producing single-shot :class:`QTimer` instances."""

    def create(interval_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(parent)
        timer.setSingleShot(True)
        timer.setInterval(interval_ms)
        timer.timeout.connect(callback)
        return timer

    return create


class KeyedDebouncer:
    """Run a callback once per key after *delay_ms* of quiet.

    Each key owns an independent timer; scheduling a key again restarts only
    that key's countdown.  Cancelling leaves no residual effect.
    """

    def __init__(
        self,
        delay_ms: int = DEBOUNCE_MS,
        *,
        timer_factory: TimerFactory | None = None,
        timer_parent: QObject | None = None,
    ) -> None:
        self._delay_ms = int(delay_ms)
        self._timer_factory = timer_factory or qt_timer_factory(timer_parent)
        self._timers: dict[Hashable, TimerHandle] = {}
        self._callbacks: dict[Hashable, Callable[[], None]] = {}

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def schedule(self, key: Hashable, callback: Callable[[], None]) -> None:
        """(Re)start the countdown for *key*; the latest *callback* wins."""
        self._callbacks[key] = callback
        timer = self._timers.get(key)
        if timer is None:
            timer = self._timer_factory(self._delay_ms, lambda k=key: self._fire(k))
            self._timers[key] = timer
        else:
            timer.stop()
        timer.start()

    def is_pending(self, key: Hashable) -> bool:
        timer = self._timers.get(key)
        return timer is not None and timer.isActive()

    def cancel(self, key: Hashable) -> bool:
        """Stop *key*'s countdown; returns ``True`` if one was pending."""
        timer = self._timers.get(key)
        pending = timer is not None and timer.isActive()
        if timer is not None:
            timer.stop()
        self._callbacks.pop(key, None)
        return pending

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    def flush(self, key: Hashable) -> bool:
        """Fire *key*'s callback now if it is pending."""
        if not self.is_pending(key):
            return False
        self._timers[key].stop()
        self._fire(key)
        return True

    def discard(self, key: Hashable) -> None:
        """Cancel *key* and drop its timer entirely."""
        self.cancel(key)
        timer = self._timers.pop(key, None)
        if isinstance(timer, QObject):
            timer.deleteLater()

    def _fire(self, key: Hashable) -> None:
        callback = self._callbacks.pop(key, None)
        if callback is None:
            return
        try:
            callback()
        except Exception:
            _LOGGER.exception("Debounced callback for %r failed", key)
