"""Capability interface the crop engine expects from a crop widget.

The engine never touches widget internals.  Anything that can report its
geometry, accept live constraints and rasterize a selection can back a
:class:`~iCropper.session.crop_session.CropSession`: a Qt widget, a web view
bridge, or the headless :class:`~iCropper.surface.pillow_surface.PillowCropSurface`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, runtime_checkable

from ..domain.models import (
    CanvasData,
    CropBoxData,
    CropOptions,
    DisplayConstraints,
    ImageData,
    RasterizedCrop,
)


def _noop() -> None:
    return None


@dataclass
class SurfaceListener:
    """Callbacks a surface fires back into its owning session."""

    on_ready: Callable[[], None] = _noop
    on_region_change: Callable[[], None] = _noop
    on_zoom: Callable[[], None] = _noop


@dataclass(frozen=True)
class SurfaceOptions:
    """Options applied when a surface is bound."""

    constraints: DisplayConstraints = DisplayConstraints()
    auto_crop_area: float = 0.9
    max_zoom: Optional[float] = None


@runtime_checkable
class CropSurface(Protocol):
    @property
    def is_ready(self) -> bool: ...

    def bind(self, options: SurfaceOptions, listener: SurfaceListener) -> None: ...

    def destroy(self) -> None: ...

    def get_image_data(self) -> ImageData: ...

    def get_crop_box_data(self) -> CropBoxData: ...

    def set_crop_box_data(self, data: CropBoxData) -> None: ...

    def get_canvas_data(self) -> CanvasData: ...

    def set_canvas_data(self, data: CanvasData) -> None: ...

    def update_live_constraints(self, constraints: DisplayConstraints) -> None: ...

    def set_max_zoom(self, value: float) -> None: ...

    def zoom_to_scale(self, scale: float) -> None: ...

    def get_rasterized_canvas(self, options: CropOptions) -> Optional[RasterizedCrop]: ...
