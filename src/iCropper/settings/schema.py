"""Schema helpers for the crop settings file and constraint profiles."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import ENCODE_QUALITY

_CROP_PROPERTIES: dict[str, Any] = {
    "min_width": {"type": "number", "minimum": 0},
    "max_width": {"type": "number", "minimum": 0},
    "min_height": {"type": "number", "minimum": 0},
    "max_height": {"type": "number", "minimum": 0},
    "aspect_ratio_mode": {"type": "string", "enum": ["free", "standard", "custom"]},
    "standard_aspect_ratio": {"type": "string", "pattern": "^[1-9][0-9]*:[1-9][0-9]*$"},
    "custom_aspect_ratio": {"type": "number", "exclusiveMinimum": 0},
    "append_resolution": {"type": "boolean"},
}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "iCropper/settings.schema.json",
    "type": "object",
    "required": ["schema", "crop", "output"],
    "properties": {
        "schema": {"const": "iCropper/settings@1"},
        "crop": {
            "type": "object",
            "properties": _CROP_PROPERTIES,
            "additionalProperties": False,
        },
        "output": {
            "type": "object",
            "properties": {
                "format": {"type": "string", "enum": ["PNG", "JPEG"]},
                "quality": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

CROP_OVERRIDE_SCHEMA: dict[str, Any] = {
    "$id": "iCropper/crop-override.schema.json",
    "type": "object",
    "properties": _CROP_PROPERTIES,
    "additionalProperties": False,
}

# Profiles come from an external document store and keep its camelCase keys.
PROFILE_SCHEMA: dict[str, Any] = {
    "$id": "iCropper/profile.schema.json",
    "type": "object",
    "required": ["settings"],
    "properties": {
        "name": {"type": "string"},
        "settings": {
            "type": "object",
            "properties": {
                "minWidth": {"type": "number", "minimum": 0},
                "maxWidth": {"type": "number", "minimum": 0},
                "minHeight": {"type": "number", "minimum": 0},
                "maxHeight": {"type": "number", "minimum": 0},
                "aspectRatioMode": {"type": "string", "enum": ["free", "standard", "custom"]},
                "standardAspectRatio": {"type": "string", "pattern": "^[1-9][0-9]*:[1-9][0-9]*$"},
                "customAspectRatio": {"type": "number", "exclusiveMinimum": 0},
                "appendResolution": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

PROFILE_KEY_MAP: dict[str, str] = {
    "minWidth": "min_width",
    "maxWidth": "max_width",
    "minHeight": "min_height",
    "maxHeight": "max_height",
    "aspectRatioMode": "aspect_ratio_mode",
    "standardAspectRatio": "standard_aspect_ratio",
    "customAspectRatio": "custom_aspect_ratio",
    "appendResolution": "append_resolution",
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "iCropper/settings@1",
    "crop": {
        "min_width": 100,
        "max_width": 2000,
        "min_height": 100,
        "max_height": 2000,
        "aspect_ratio_mode": "free",
        "standard_aspect_ratio": "1:1",
        "custom_aspect_ratio": 1.0,
        "append_resolution": False,
    },
    "output": {
        "format": "PNG",
        "quality": ENCODE_QUALITY,
    },
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)
_override_validator = Draft202012Validator(CROP_OVERRIDE_SCHEMA)
_profile_validator = Draft202012Validator(PROFILE_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in ("crop", "output") and isinstance(value, dict):
                merged.setdefault(key, {}).update(value)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_override(data: dict[str, Any]) -> None:
    """Validate a per-image partial override."""

    _override_validator.validate(data)


def profile_to_crop_settings(profile: dict[str, Any]) -> dict[str, Any]:
    """Validate *profile* and return the crop keys it defines."""

    _profile_validator.validate(profile)
    settings = profile.get("settings") or {}
    return {
        PROFILE_KEY_MAP[key]: value
        for key, value in settings.items()
        if key in PROFILE_KEY_MAP
    }


__all__ = [
    "CROP_OVERRIDE_SCHEMA",
    "DEFAULT_SETTINGS",
    "PROFILE_SCHEMA",
    "SETTINGS_SCHEMA",
    "merge_with_defaults",
    "profile_to_crop_settings",
    "validate_override",
]
