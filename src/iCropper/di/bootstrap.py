from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..cache.handles import HandleRegistry
from ..cache.result_cache import CropResultCache
from ..catalog import ImageCatalog
from ..errors.handler import ErrorHandler
from ..events.bus import EventBus
from ..session.debounce import KeyedDebouncer, TimerFactory
from ..settings.manager import SettingsManager
from ..state.store import CropperState
from ..tasks.batch import BatchOrchestrator, BatchStatusPolicy, Scheduler, complete_on_finish
from ..tasks.task_tracker import TaskTracker
from ..workspace import CropWorkspace
from .container import Container
from .lifetime import Lifetime


def bootstrap(
    container: Container,
    settings_path: Optional[Path] = None,
    *,
    timer_factory: Optional[TimerFactory] = None,
    scheduler: Optional[Scheduler] = None,
    status_policy: BatchStatusPolicy = complete_on_finish,
    rebind_on_settings_change: bool = False,
    read_only_settings: bool = False,
) -> None:
    """Register all application services in the DI container.

    Settings are loaded from *settings_path* when one is given; otherwise
    they live in memory only.  With *read_only_settings* the file is read
    but changes made at runtime are never written back.
    """
    container.register_singleton(EventBus, EventBus)
    container.register_singleton(CropperState, CropperState)
    container.register_singleton(HandleRegistry, HandleRegistry)
    container.register_singleton(ImageCatalog, ImageCatalog)
    container.register_singleton(KeyedDebouncer, KeyedDebouncer, timer_factory=timer_factory)

    def make_settings(c: Container) -> SettingsManager:
        manager = SettingsManager(
            settings_path, event_bus=c.resolve(EventBus), read_only=read_only_settings
        )
        if settings_path is not None:
            manager.load()
        return manager

    container.register_factory(SettingsManager, make_settings, Lifetime.SINGLETON)
    container.register_factory(
        ErrorHandler,
        lambda c: ErrorHandler(logging.getLogger("iCropper"), c.resolve(EventBus)),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        CropResultCache,
        lambda c: CropResultCache(
            c.resolve(CropperState),
            c.resolve(SettingsManager),
            c.resolve(HandleRegistry),
            c.resolve(EventBus),
        ),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        TaskTracker, lambda c: TaskTracker(c.resolve(EventBus)), Lifetime.SINGLETON
    )
    container.register_factory(
        BatchOrchestrator,
        lambda c: BatchOrchestrator(
            c.resolve(CropResultCache),
            c.resolve(TaskTracker),
            c.resolve(CropperState),
            event_bus=c.resolve(EventBus),
            error_handler=c.resolve(ErrorHandler),
            scheduler=scheduler,
            status_policy=status_policy,
        ),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        CropWorkspace,
        lambda c: CropWorkspace(
            catalog=c.resolve(ImageCatalog),
            settings=c.resolve(SettingsManager),
            state=c.resolve(CropperState),
            cache=c.resolve(CropResultCache),
            orchestrator=c.resolve(BatchOrchestrator),
            debouncer=c.resolve(KeyedDebouncer),
            event_bus=c.resolve(EventBus),
            rebind_on_settings_change=rebind_on_settings_change,
        ),
        Lifetime.SINGLETON,
    )
