"""Sequential, cancellable regeneration of crop results."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Optional

from PySide6.QtCore import QTimer

from ..cache.result_cache import CropResultCache
from ..domain.models import BatchState, CropOptions, Task, TaskStatus
from ..errors import RasterizationError
from ..errors.handler import ErrorHandler, ErrorSeverity
from ..events.bus import EventBus
from ..events.crop_events import BatchCancelledEvent, BatchCompletedEvent, RevealResultsEvent
from ..state.store import CropperState
from .task_tracker import TaskTracker

_LOGGER = logging.getLogger(__name__)

Scheduler = Callable[[Callable[[], None]], None]
BatchStatusPolicy = Callable[[BatchState], TaskStatus]


def qt_scheduler(callback: Callable[[], None]) -> None:
    """Run *callback* on the next turn of the Qt event loop."""
    QTimer.singleShot(0, callback)


def complete_on_finish(batch: BatchState) -> TaskStatus:
    """A finished batch is complete even if some images failed."""
    return TaskStatus.COMPLETED


def fail_on_any_failure(batch: BatchState) -> TaskStatus:
    return TaskStatus.FAILED if batch.failed else TaskStatus.COMPLETED


class BatchOrchestrator:
    """Drive :meth:`CropResultCache.get` over many images, one at a time.

    Exactly one image is rasterized per scheduler turn, so a batch never
    holds more than one large canvas in flight.  Cancellation is checked
    between images; the image being rasterized always finishes.
    """

    def __init__(
        self,
        cache: CropResultCache,
        tracker: TaskTracker,
        state: CropperState,
        *,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        scheduler: Optional[Scheduler] = None,
        status_policy: BatchStatusPolicy = complete_on_finish,
    ) -> None:
        self._cache = cache
        self._tracker = tracker
        self._state = state
        self._events = event_bus
        self._errors = error_handler
        self._schedule = scheduler or qt_scheduler
        self._status_policy = status_policy
        self._batch: Optional[BatchState] = None
        self._options: Optional[CropOptions] = None
        self._step_queued = False
        self._scheduling = False

    @property
    def is_running(self) -> bool:
        return self._batch is not None and self._batch.in_progress

    @property
    def batch_state(self) -> Optional[BatchState]:
        return self._batch

    def crop_all(self, image_ids: Iterable[str], options: Optional[CropOptions] = None) -> Task:
        """Regenerate every image in *image_ids* that has no valid result.

        Returns the task tracking the run.  While a batch is running, calling
        again returns the running batch's task instead of starting another.
        """
        if self.is_running:
            _LOGGER.info("Batch %s already running", self._batch.task_id)
            return self._tracker.get_task(self._batch.task_id) or Task(id=self._batch.task_id)

        pending = [image_id for image_id in image_ids if not self._cache.has_valid(image_id)]
        task = self._tracker.create_task()
        if not pending:
            _LOGGER.info("All crops already exist; nothing to regenerate")
            return self._tracker.update_task(task.id, 100, TaskStatus.COMPLETED) or task

        self._batch = BatchState(
            configs=self._state.configs.snapshot(pending),
            image_ids=pending,
            task_id=task.id,
        )
        self._options = options
        _LOGGER.info("Starting batch %s over %d image(s)", task.id, len(pending))
        self._tracker.update_task(task.id, 0, TaskStatus.IN_PROGRESS)
        self._request_step()
        return self._tracker.get_task(task.id) or task

    def cancel(self) -> None:
        """Stop after the image currently being processed."""
        batch = self._batch
        if batch is None or not batch.in_progress:
            return
        batch.in_progress = False
        progress = self._progress(batch)
        _LOGGER.info("Batch %s cancelled at %d%%", batch.task_id, progress)
        self._tracker.update_task(batch.task_id, progress, TaskStatus.FAILED)
        self._batch = None
        self._options = None
        self._publish(BatchCancelledEvent(task_id=batch.task_id, progress=progress, source="batch"))

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _request_step(self) -> None:
        # Schedulers that run the callback inline would otherwise recurse once
        # per image; queue the step and let the outer call loop instead.
        if self._scheduling:
            self._step_queued = True
            return
        self._scheduling = True
        try:
            self._step_queued = True
            while self._step_queued:
                self._step_queued = False
                self._schedule(self._step)
        finally:
            self._scheduling = False

    def _step(self) -> None:
        batch = self._batch
        if batch is None or not batch.in_progress:
            return
        if batch.cursor >= batch.total:
            self._finish(batch)
            return

        image_id = batch.image_ids[batch.cursor]
        batch.cursor += 1
        self._process(batch, image_id)

        if not batch.in_progress or self._batch is not batch:
            return
        self._tracker.update_task(batch.task_id, self._progress(batch), TaskStatus.IN_PROGRESS)
        if batch.cursor >= batch.total:
            self._finish(batch)
        else:
            self._request_step()

    def _process(self, batch: BatchState, image_id: str) -> None:
        try:
            result = self._cache.get(image_id, self._options)
        except Exception as exc:  # noqa: BLE001 - one image never aborts the batch
            batch.failed.append(image_id)
            self._report(exc, image_id)
            return
        if result is None:
            batch.failed.append(image_id)
            self._report(RasterizationError(f"No crop result available for {image_id}"), image_id)
            return
        batch.completed.append(image_id)
        _LOGGER.debug("Batch %s processed %s", batch.task_id, image_id)

    def _report(self, error: Exception, image_id: str) -> None:
        if self._errors is not None:
            self._errors.handle(error, ErrorSeverity.WARNING, {"image_id": image_id})
        else:
            _LOGGER.warning("Crop failed for %s: %s", image_id, error)

    def _finish(self, batch: BatchState) -> None:
        batch.in_progress = False
        status = self._status_policy(batch)
        self._tracker.update_task(batch.task_id, 100, status)
        self._batch = None
        self._options = None
        _LOGGER.info(
            "Batch %s finished: %d completed, %d failed",
            batch.task_id, len(batch.completed), len(batch.failed),
        )
        self._publish(
            BatchCompletedEvent(
                task_id=batch.task_id,
                status=status,
                completed=tuple(batch.completed),
                failed=tuple(batch.failed),
                source="batch",
            )
        )
        self._publish(RevealResultsEvent(task_id=batch.task_id, source="batch"))

    @staticmethod
    def _progress(batch: BatchState) -> int:
        if not batch.total:
            return 100
        return round(100 * batch.processed / batch.total)

    def _publish(self, event) -> None:
        if self._events is not None:
            self._events.publish(event)

