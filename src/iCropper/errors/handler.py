"""Central reporting of failures that must not interrupt the crop workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..events.bus import EventBus
from ..events.domain_events import DomainEvent


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def log_level(self) -> int:
        return logging.getLevelName(self.value.upper())

    @property
    def notifies_user(self) -> bool:
        return self in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)


@dataclass(frozen=True)
class ErrorOccurredEvent(DomainEvent):
    error: Optional[Exception] = None
    severity: ErrorSeverity = ErrorSeverity.ERROR
    image_id: Optional[str] = None
    context: dict = field(default_factory=dict)


class ErrorHandler:
    """Log a failure, broadcast it, and surface serious ones to the user.

    ``context`` may carry an ``image_id``; it is lifted onto the published
    :class:`ErrorOccurredEvent` so per-image views can filter on it.
    """

    def __init__(self, logger: logging.Logger, event_bus: Optional[EventBus] = None):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Optional[Callable[[str, ErrorSeverity], None]]):
        self._ui_callback = callback

    def handle(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[dict] = None,
    ) -> ErrorOccurredEvent:
        context = dict(context or {})
        image_id = context.get("image_id")
        if image_id is not None:
            self._logger.log(
                severity.log_level, "[%s] %s: %s", image_id, error.__class__.__name__, error,
                extra={"context": context},
            )
        else:
            self._logger.log(
                severity.log_level, "%s: %s", error.__class__.__name__, error,
                extra={"context": context},
            )

        event = ErrorOccurredEvent(
            error=error,
            severity=severity,
            image_id=image_id,
            context=context,
            source="errors",
        )
        if self._events is not None:
            self._events.publish(event)

        if self._ui_callback is not None and severity.notifies_user:
            self._ui_callback(str(error), severity)
        return event
