from __future__ import annotations

import json
from pathlib import Path

import pytest

from iCropper.domain.models import Constraints, CustomAspect, FreeAspect, StandardAspect
from iCropper.errors import SettingsLoadError, SettingsValidationError
from iCropper.events.crop_events import SettingsChangedEvent
from iCropper.settings.manager import SettingsManager
from iCropper.settings.schema import DEFAULT_SETTINGS, merge_with_defaults


def test_defaults():
    manager = SettingsManager()
    assert manager.constraints_for() == Constraints(100, 2000, 100, 2000)
    assert manager.aspect_ratio_for() == FreeAspect()
    options = manager.crop_options_for()
    assert options.media_type == "image/png"
    assert options.quality == pytest.approx(0.95)


def test_roundtrip_persists_global_settings(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    assert settings_path.exists()

    manager.set("crop.max_width", 1200)

    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["crop"]["max_width"] == 1200
    reloaded = SettingsManager(path=settings_path)
    reloaded.load()
    assert reloaded.get("crop.max_width") == 1200
    assert reloaded.get("crop.min_height") == 100



def test_read_only_manager_never_writes(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    original = json.dumps({"crop": {"max_width": 2000}})
    settings_path.write_text(original, encoding="utf-8")
    manager = SettingsManager(path=settings_path, read_only=True)

    manager.load()
    manager.update({"crop.max_width": 50, "output.format": "JPEG"})

    assert manager.read_only
    assert manager.get("crop.max_width") == 50
    assert settings_path.read_text(encoding="utf-8") == original


def test_read_only_manager_does_not_create_missing_file(tmp_path: Path) -> None:
    settings_path = tmp_path / "missing" / "settings.json"
    manager = SettingsManager(path=settings_path, read_only=True)
    manager.load()
    assert manager.get("crop.min_width") == 100
    assert not settings_path.exists()

def test_nested_updates_preserve_defaults():
    manager = SettingsManager()
    manager.update({"crop.aspect_ratio_mode": "standard", "crop.standard_aspect_ratio": "16:9"})
    assert manager.aspect_ratio_for() == StandardAspect("16:9")
    assert manager.get("crop.max_height") == 2000
    assert manager.get("missing.key", "fallback") == "fallback"


def test_invalid_values_are_rejected_and_state_kept():
    manager = SettingsManager()
    with pytest.raises(SettingsValidationError):
        manager.set("crop.max_width", -5)
    with pytest.raises(SettingsValidationError):
        manager.set("crop.unknown", 1)
    assert manager.get("crop.max_width") == 2000


def test_unreadable_file_raises_load_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path=settings_path).load()


def test_invalid_file_raises_validation_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"output": {"format": "GIF"}}), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        SettingsManager(path=settings_path).load()


def test_per_image_overrides_inherit_globals():
    manager = SettingsManager()
    manager.set_image_settings("img", {"min_width": 300, "aspect_ratio_mode": "custom"})
    manager.set_image_settings("img", {"custom_aspect_ratio": 1.5})

    resolved = manager.settings_for_image("img")
    assert resolved.min_width == 300
    assert resolved.max_width == 2000
    assert manager.aspect_ratio_for("img") == CustomAspect(1.5)
    assert manager.constraints_for("other").min_width == 100

    manager.clear_image_settings("img")
    assert manager.settings_for_image("img") == manager.settings_for_image()


def test_invalid_override_is_rejected():
    manager = SettingsManager()
    with pytest.raises(SettingsValidationError):
        manager.set_image_settings("img", {"custom_aspect_ratio": 0})
    assert manager.image_overrides("img") == {}


def test_changes_are_published(bus, recorder):
    events = recorder(SettingsChangedEvent)
    manager = SettingsManager(event_bus=bus)

    manager.set("crop.max_width", 1000)
    manager.set_image_settings("img", {"max_width": 500})
    manager.clear_image_settings("img")
    manager.clear_image_settings("img")

    assert [(e.image_id, e.keys) for e in events] == [
        (None, ("crop.max_width",)),
        ("img", ("max_width",)),
        ("img", ("max_width",)),
    ]


def test_qt_signal_is_emitted(qapp):
    manager = SettingsManager()
    seen = []
    manager.settingsChanged.connect(lambda key, value: seen.append((key, value)))
    manager.set("output.format", "JPEG")
    assert seen == [("output.format", "JPEG")]
    assert manager.crop_options_for().media_type == "image/jpeg"


def test_apply_profile_reads_camel_case_keys():
    manager = SettingsManager()
    manager.apply_profile(
        {
            "name": "Square thumbnails",
            "settings": {
                "minWidth": 256,
                "maxWidth": 512,
                "aspectRatioMode": "standard",
                "standardAspectRatio": "1:1",
                "appendResolution": True,
                "notes": "ignored",
            },
        }
    )
    resolved = manager.settings_for_image()
    assert resolved.min_width == 256
    assert resolved.max_width == 512
    assert resolved.append_resolution is True
    assert manager.aspect_ratio_for() == StandardAspect("1:1")


def test_apply_profile_validates():
    with pytest.raises(SettingsValidationError):
        SettingsManager().apply_profile({"settings": {"standardAspectRatio": "wide"}})


def test_merge_with_defaults_does_not_mutate_defaults():
    merged = merge_with_defaults({"crop": {"max_width": 10}})
    assert merged["crop"]["max_width"] == 10
    assert DEFAULT_SETTINGS["crop"]["max_width"] == 2000
