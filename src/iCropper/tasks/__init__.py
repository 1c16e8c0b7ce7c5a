from .batch import (
    BatchOrchestrator,
    BatchStatusPolicy,
    Scheduler,
    complete_on_finish,
    fail_on_any_failure,
    qt_scheduler,
)
from .task_tracker import TaskTracker

__all__ = [
    "BatchOrchestrator",
    "BatchStatusPolicy",
    "Scheduler",
    "TaskTracker",
    "complete_on_finish",
    "fail_on_any_failure",
    "qt_scheduler",
]
