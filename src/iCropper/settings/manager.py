"""Crop settings with per-image overrides, validation and change notifications."""

from __future__ import annotations

import logging
import os
import sys
import threading
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from jsonschema import ValidationError
from PySide6.QtCore import QObject, Signal

from ..config import SUPPORTED_MEDIA_TYPES
from ..domain.models import (
    AspectRatioSpec,
    Constraints,
    CropOptions,
    CustomAspect,
    FreeAspect,
    StandardAspect,
)
from ..errors import SettingsLoadError, SettingsValidationError
from ..events.bus import EventBus
from ..events.crop_events import SettingsChangedEvent
from ..utils.jsonio import read_json, write_json
from .schema import DEFAULT_SETTINGS, merge_with_defaults, profile_to_crop_settings, validate_override

_LOGGER = logging.getLogger(__name__)


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "iCropper" / "settings.json"
        return Path.home() / "AppData" / "Roaming" / "iCropper" / "settings.json"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "iCropper" / "settings.json"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "iCropper" / "settings.json"
    return Path.home() / ".config" / "iCropper" / "settings.json"


@dataclass(frozen=True)
class CropSettings:
    """Fully resolved crop settings for one image."""

    min_width: float
    max_width: float
    min_height: float
    max_height: float
    aspect_ratio_mode: str
    standard_aspect_ratio: str
    custom_aspect_ratio: float
    append_resolution: bool

    @property
    def constraints(self) -> Constraints:
        return Constraints(self.min_width, self.max_width, self.min_height, self.max_height)

    @property
    def aspect_ratio(self) -> AspectRatioSpec:
        if self.aspect_ratio_mode == "standard":
            return StandardAspect(self.standard_aspect_ratio)
        if self.aspect_ratio_mode == "custom":
            return CustomAspect(self.custom_aspect_ratio)
        return FreeAspect()


class SettingsManager(QObject):
    """Load, validate and persist crop settings.

    Global values live in the settings file; per-image overrides are partial
    mappings kept in memory for the lifetime of the image.  Every mutation
    publishes a :class:`SettingsChangedEvent` on the injected bus.  A
    ``read_only`` manager loads *path* but never writes it back.
    """

    settingsChanged = Signal(str, object)

    def __init__(
        self,
        path: Path | None = None,
        *,
        event_bus: EventBus | None = None,
        read_only: bool = False,
    ) -> None:
        super().__init__()
        self._path = path
        self._read_only = read_only
        self._events = event_bus
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)
        self._image_settings: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def read_only(self) -> bool:
        return self._read_only

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self._path or default_settings_path()
        self._path = path
        if path.exists():
            try:
                payload = read_json(path)
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(str(exc)) from exc
        else:
            payload = None
        try:
            data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        with self._lock:
            self._data = data
        self._write()

    # ------------------------------------------------------------------
    # Global settings
    # ------------------------------------------------------------------
    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        with self._lock:
            target: Any = self._data
            for part in key.split("."):
                if not isinstance(target, dict) or part not in target:
                    return default
                target = target[part]
            return deepcopy(target)

    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, persist it and notify observers."""

        self.update({key: value})

    def update(self, values: Mapping[str, Any]) -> None:
        """Apply several dotted-key updates as one validated change."""

        if not values:
            return
        with self._lock:
            candidate = deepcopy(self._data)
            for key, value in values.items():
                parts = key.split(".")
                target = candidate
                for part in parts[:-1]:
                    branch = target.get(part)
                    if not isinstance(branch, dict):
                        branch = {}
                        target[part] = branch
                    target = branch
                target[parts[-1]] = value
            try:
                self._data = merge_with_defaults(candidate)
            except ValidationError as exc:
                raise SettingsValidationError(exc.message) from exc
        self._write()
        for key, value in values.items():
            self.settingsChanged.emit(key, value)
        self._publish(None, tuple(values))

    def apply_profile(self, profile: Mapping[str, Any]) -> None:
        """Adopt the crop constraints of a stored profile as global settings."""

        try:
            crop_values = profile_to_crop_settings(dict(profile))
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        _LOGGER.info("Applying profile %r", profile.get("name", ""))
        self.update({f"crop.{key}": value for key, value in crop_values.items()})

    # ------------------------------------------------------------------
    # Per-image overrides
    # ------------------------------------------------------------------
    def set_image_settings(self, image_id: str, values: Mapping[str, Any]) -> None:
        """Merge *values* into the override for *image_id*."""

        with self._lock:
            merged = {**self._image_settings.get(image_id, {}), **dict(values)}
            try:
                validate_override(merged)
            except ValidationError as exc:
                raise SettingsValidationError(exc.message) from exc
            self._image_settings[image_id] = merged
        self._publish(image_id, tuple(values))

    def clear_image_settings(self, image_id: str) -> None:
        with self._lock:
            removed = self._image_settings.pop(image_id, None)
        if removed:
            self._publish(image_id, tuple(removed))

    def image_overrides(self, image_id: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._image_settings.get(image_id, {}))

    def settings_for_image(self, image_id: str | None = None) -> CropSettings:
        with self._lock:
            values = dict(self._data["crop"])
            if image_id is not None:
                values.update(self._image_settings.get(image_id, {}))
        return CropSettings(**values)

    def constraints_for(self, image_id: str | None = None) -> Constraints:
        return self.settings_for_image(image_id).constraints

    def aspect_ratio_for(self, image_id: str | None = None) -> AspectRatioSpec:
        return self.settings_for_image(image_id).aspect_ratio

    def crop_options_for(self, image_id: str | None = None) -> CropOptions:
        output = self.get("output", {}) or {}
        media_type = SUPPORTED_MEDIA_TYPES.get(str(output.get("format", "PNG")).upper(), "image/png")
        return CropOptions.from_constraints(
            self.constraints_for(image_id),
            media_type=media_type,
            quality=float(output.get("quality", 0.95)),
        )

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _publish(self, image_id: str | None, keys: tuple[str, ...]) -> None:
        if self._events is not None:
            self._events.publish(SettingsChangedEvent(image_id=image_id, keys=keys, source="settings"))

    def _write(self) -> None:
        if self._path is None or self._read_only:
            return
        with self._lock:
            data = deepcopy(self._data)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            write_json(self._path, data)
        except OSError:
            _LOGGER.exception("Could not write settings to %s", self._path)


__all__ = ["CropSettings", "SettingsManager", "default_settings_path"]
