"""Mapping linear sizes between display space and original-image space.

``scale`` is always ``natural / displayed``: a value above 1 means the image
is shown smaller than its native resolution.
"""

from __future__ import annotations

import logging
import math

_LOGGER = logging.getLogger(__name__)

NEUTRAL_SCALE = 1.0


def scale_of(surface) -> float:
    """Return the current scale of *surface*.

    Falls back to :data:`NEUTRAL_SCALE` when the surface cannot report usable
    dimensions, so constraint math downstream never divides by zero.
    """
    if surface is None:
        return NEUTRAL_SCALE
    try:
        data = surface.get_image_data()
        scale = float(data.natural_width) / float(data.display_width)
    except Exception:  # noqa: BLE001 - any surface failure degrades to neutral
        _LOGGER.warning("Could not read image data from surface; using neutral scale", exc_info=True)
        return NEUTRAL_SCALE
    if not math.isfinite(scale) or scale <= 0:
        _LOGGER.warning("Surface reported unusable scale %r; using neutral scale", scale)
        return NEUTRAL_SCALE
    return scale


def to_display(original_pixels: float, scale: float) -> float:
    return original_pixels / scale


def to_original(display_pixels: float, scale: float) -> float:
    return display_pixels * scale
