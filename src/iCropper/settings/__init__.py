from .manager import CropSettings, SettingsManager, default_settings_path
from .schema import DEFAULT_SETTINGS, merge_with_defaults

__all__ = [
    "CropSettings",
    "DEFAULT_SETTINGS",
    "SettingsManager",
    "default_settings_path",
    "merge_with_defaults",
]
