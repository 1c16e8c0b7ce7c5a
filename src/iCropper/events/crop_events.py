from dataclasses import dataclass, field
from typing import Optional

from ..domain.models import CropStats, Dimensions, TaskStatus
from .domain_events import DomainEvent


@dataclass(frozen=True)
class CropStatsChangedEvent(DomainEvent):
    image_id: str = ""
    stats: Optional[CropStats] = None


@dataclass(frozen=True)
class CropResultReadyEvent(DomainEvent):
    image_id: str = ""
    url_handle: str = ""
    dimensions: Optional[Dimensions] = None


@dataclass(frozen=True)
class CropResultInvalidatedEvent(DomainEvent):
    image_id: str = ""
    url_handle: str = ""


@dataclass(frozen=True)
class TaskProgressEvent(DomainEvent):
    task_id: str = ""
    progress: int = 0
    status: TaskStatus = TaskStatus.PENDING


@dataclass(frozen=True)
class TaskRemovedEvent(DomainEvent):
    task_id: str = ""


@dataclass(frozen=True)
class RevealResultsEvent(DomainEvent):
    task_id: str = ""


@dataclass(frozen=True)
class BatchCompletedEvent(DomainEvent):
    task_id: str = ""
    status: TaskStatus = TaskStatus.COMPLETED
    completed: tuple[str, ...] = field(default_factory=tuple)
    failed: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BatchCancelledEvent(DomainEvent):
    task_id: str = ""
    progress: int = 0


@dataclass(frozen=True)
class SettingsChangedEvent(DomainEvent):
    # ``None`` marks a change to the global settings every image inherits.
    image_id: Optional[str] = None
    keys: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ImageRemovedEvent(DomainEvent):
    image_id: str = ""
    position: int = -1
