"""Observable progress records for long-running operations."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from ..domain.models import Task, TaskStatus
from ..events.bus import EventBus
from ..events.crop_events import TaskProgressEvent, TaskRemovedEvent

_LOGGER = logging.getLogger(__name__)


class TaskTracker:
    """Keeps ``pending -> in_progress -> completed | failed`` task records.

    Updates to a task that no longer exists are ignored; a batch finishing
    after its task was dismissed is a normal race, not an error.
    """

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._events = event_bus
        self._tasks: Dict[str, Task] = {}
        self._lock = threading.Lock()

    def create_task(self, task_id: Optional[str] = None) -> Task:
        task = Task(id=task_id) if task_id else Task()
        with self._lock:
            self._tasks[task.id] = task
        self._publish(task)
        return replace(task)

    def update_task(self, task_id: str, progress: int, status: TaskStatus) -> Optional[Task]:
        progress = max(0, min(100, int(progress)))
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                _LOGGER.debug("Ignoring update for unknown task %s", task_id)
                return None
            task.progress = progress
            task.status = TaskStatus(status)
            snapshot = replace(task)
        self._publish(snapshot)
        return snapshot

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            removed = self._tasks.pop(task_id, None) is not None
        if removed and self._events is not None:
            self._events.publish(TaskRemovedEvent(task_id=task_id, source="tasks"))
        return removed

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            return replace(task) if task is not None else None

    def tasks(self) -> List[Task]:
        with self._lock:
            return [replace(task) for task in self._tasks.values()]

    def _publish(self, task: Task) -> None:
        if self._events is not None:
            self._events.publish(
                TaskProgressEvent(task_id=task.id, progress=task.progress, status=task.status, source="tasks")
            )
