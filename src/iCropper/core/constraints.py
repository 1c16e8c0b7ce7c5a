"""Translate original-space constraints into the display space of a surface."""

from __future__ import annotations

import logging
import math

from ..domain.models import (
    AspectRatioSpec,
    Constraints,
    CropBoxData,
    CustomAspect,
    DisplayConstraints,
    FreeAspect,
    StandardAspect,
)
from ..errors import InvalidAspectRatioError, SurfaceContractError
from .scale import to_display

_LOGGER = logging.getLogger(__name__)

_RATIO_TOLERANCE = 1e-6


def resolve_aspect_ratio(spec: AspectRatioSpec) -> float | None:
    """Return the numeric ratio for *spec*, or ``None`` when unconstrained."""
    if spec is None or isinstance(spec, FreeAspect):
        return None
    if isinstance(spec, StandardAspect):
        width, height = spec.terms()
        return width / height
    if isinstance(spec, CustomAspect):
        return float(spec.ratio)
    raise InvalidAspectRatioError(f"Unsupported aspect ratio spec {spec!r}")


def to_display_constraints(
    constraints: Constraints, aspect: AspectRatioSpec, scale: float
) -> DisplayConstraints:
    """Convert *constraints* to display pixels at *scale*.

    Zero bounds stay zero so the surface keeps treating them as absent.
    """

    def convert(value: float) -> float:
        return to_display(float(value), scale) if value else 0.0

    return DisplayConstraints(
        min_crop_box_width=convert(constraints.min_width),
        max_crop_box_width=convert(constraints.max_width),
        min_crop_box_height=convert(constraints.min_height),
        max_crop_box_height=convert(constraints.max_height),
        aspect_ratio=resolve_aspect_ratio(aspect),
    )


def _clamp(value: float, lower: float, upper: float) -> float:
    if lower:
        value = max(value, lower)
    if upper:
        value = min(value, upper)
    return value


def clamp_region(box: CropBoxData, display: DisplayConstraints) -> CropBoxData:
    """Return *box* resized to the nearest legal size, keeping its center.

    When a maximum and a minimum disagree the maximum wins.
    """
    width = _clamp(box.width, display.min_crop_box_width, display.max_crop_box_width)
    height = _clamp(box.height, display.min_crop_box_height, display.max_crop_box_height)

    ratio = display.aspect_ratio
    if ratio and height > 0 and abs(width / height - ratio) > _RATIO_TOLERANCE * ratio:
        height = _clamp(width / ratio, display.min_crop_box_height, display.max_crop_box_height)
        width = _clamp(height * ratio, display.min_crop_box_width, display.max_crop_box_width)

    if math.isclose(width, box.width) and math.isclose(height, box.height):
        return box
    return box.resized_about_center(width, height)


class ConstraintEnforcer:
    """Keeps a surface's live option set in step with scale and settings.

    The last applied display constraints are remembered so repeated calls with
    unchanged inputs never touch the surface or its region.
    """

    def __init__(self) -> None:
        self._applied: DisplayConstraints | None = None

    @property
    def applied(self) -> DisplayConstraints | None:
        return self._applied

    def reset(self) -> None:
        self._applied = None

    def apply(
        self,
        surface,
        scale: float,
        constraints: Constraints,
        aspect: AspectRatioSpec,
        *,
        force: bool = False,
    ) -> DisplayConstraints | None:
        """Push display-space bounds onto *surface*.

        Returns the constraints applied, or ``None`` when nothing changed.
        Raises :class:`SurfaceContractError` if the surface rejects them.
        """
        display = to_display_constraints(constraints, aspect, scale)
        if not force and display == self._applied:
            return None

        try:
            surface.update_live_constraints(display)
            box = surface.get_crop_box_data()
            clamped = clamp_region(box, display)
            if clamped is not box:
                _LOGGER.debug(
                    "Clamping crop box %.1fx%.1f -> %.1fx%.1f",
                    box.width, box.height, clamped.width, clamped.height,
                )
                surface.set_crop_box_data(clamped)
        except Exception as exc:
            _LOGGER.exception("Could not apply constraints %r to surface", display)
            raise SurfaceContractError(f"Surface rejected live constraints: {exc}") from exc

        self._applied = display
        return display
