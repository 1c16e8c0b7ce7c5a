"""In-process publish/subscribe channel shared by the crop engine and its UI."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Type

from .domain_events import DomainEvent


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = DomainEvent
    handler: Callable = field(default=lambda e: None)
    active: bool = True

    def cancel(self):
        self.active = False


class EventBus:
    """Typed event channel.

    Handlers are keyed by the exact event class and run on the publishing
    thread in subscription order.  A failing handler is logged and never
    prevents the remaining handlers from running.  Handlers may publish or
    (un)subscribe re-entrantly; a publish delivers to the subscribers present
    when it started.
    """

    def __init__(self, logger: logging.Logger = None):
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[Type[DomainEvent], List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler)
        with self._lock:
            self._handlers[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.active = False
        with self._lock:
            subs = self._handlers.get(subscription.event_type)
            if subs and subscription in subs:
                subs.remove(subscription)

    def publish(self, event: DomainEvent):
        event_type = type(event)
        with self._lock:
            subs = list(self._handlers.get(event_type, ()))

        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(event)
            except Exception:
                self._logger.exception("Handler failed for %s", event_type.__name__)

    def subscriber_count(self, event_type: Type[DomainEvent]) -> int:
        with self._lock:
            return sum(1 for sub in self._handlers.get(event_type, ()) if sub.active)

    def clear(self):
        """Drop every subscription, deactivating the outstanding handles."""
        with self._lock:
            subs = [sub for group in self._handlers.values() for sub in group]
            self._handlers.clear()
        for sub in subs:
            sub.active = False
