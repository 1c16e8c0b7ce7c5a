"""Application-wide context shared by the command line and embedding UIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .di import Container, bootstrap
from .events.bus import EventBus
from .settings.manager import SettingsManager
from .workspace import CropWorkspace


def _create_di_container(settings_path: Optional[Path] = None, **options) -> Container:
    container = Container()
    bootstrap(container, settings_path, **options)
    return container


@dataclass
class AppContext:
    """Resolved services of one iCropper application instance."""

    container: Container = field(default_factory=_create_di_container)

    @classmethod
    def create(cls, settings_path: Optional[Path] = None, **options) -> AppContext:
        return cls(container=_create_di_container(settings_path, **options))

    @property
    def events(self) -> EventBus:
        return self.container.resolve(EventBus)

    @property
    def settings(self) -> SettingsManager:
        return self.container.resolve(SettingsManager)

    @property
    def workspace(self) -> CropWorkspace:
        return self.container.resolve(CropWorkspace)

    def close(self) -> None:
        self.workspace.close()
        self.events.clear()
