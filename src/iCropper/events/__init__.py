from .bus import EventBus, Subscription
from .domain_events import DomainEvent
from .crop_events import (
    BatchCancelledEvent,
    BatchCompletedEvent,
    CropResultInvalidatedEvent,
    CropResultReadyEvent,
    CropStatsChangedEvent,
    ImageRemovedEvent,
    RevealResultsEvent,
    SettingsChangedEvent,
    TaskProgressEvent,
    TaskRemovedEvent,
)

__all__ = [
    "BatchCancelledEvent",
    "BatchCompletedEvent",
    "CropResultInvalidatedEvent",
    "CropResultReadyEvent",
    "CropStatsChangedEvent",
    "DomainEvent",
    "EventBus",
    "ImageRemovedEvent",
    "RevealResultsEvent",
    "SettingsChangedEvent",
    "Subscription",
    "TaskProgressEvent",
    "TaskRemovedEvent",
]
