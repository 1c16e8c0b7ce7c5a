"""Headless crop surface backed by a Pillow image.

The surface mimics a crop widget in "view mode 1": the image is fitted into a
viewport, the crop box always stays inside the rendered image, and the live
constraint set is enforced on every change.  Programmatic setters never fire
listener callbacks; the interaction helpers (:meth:`move_crop_box`,
:meth:`resize_crop_box`, :meth:`zoom`) do, like user input would.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from ..config import AUTO_CROP_AREA, DEFAULT_VIEWPORT
from ..core.constraints import clamp_region
from ..core.output import fit_output_size
from ..domain.models import (
    CanvasData,
    CropBoxData,
    CropOptions,
    DisplayConstraints,
    ImageData,
    RasterizedCrop,
)
from ..errors import RasterizationError, SurfaceNotBoundError
from .protocol import SurfaceListener, SurfaceOptions

_LOGGER = logging.getLogger(__name__)

_PIL_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}


class PillowCropSurface:
    """Crop surface rendering a Pillow image into a fixed-size viewport."""

    def __init__(
        self,
        image: Union[Image.Image, Path, str],
        viewport: tuple[int, int] = DEFAULT_VIEWPORT,
    ) -> None:
        if isinstance(image, Image.Image):
            self._image = image
        else:
            with Image.open(image) as handle:
                handle.load()
                self._image = handle.copy()
        self._viewport = (max(1, int(viewport[0])), max(1, int(viewport[1])))
        self._listener = SurfaceListener()
        self._constraints = DisplayConstraints()
        self._canvas: Optional[CanvasData] = None
        self._crop_box: Optional[CropBoxData] = None
        self._max_zoom: Optional[float] = None
        self._ready = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def natural_size(self) -> tuple[int, int]:
        return self._image.size

    @property
    def live_constraints(self) -> DisplayConstraints:
        return self._constraints

    @property
    def max_zoom(self) -> Optional[float]:
        return self._max_zoom

    def bind(self, options: SurfaceOptions, listener: SurfaceListener) -> None:
        self._listener = listener
        self._constraints = options.constraints
        self._max_zoom = options.max_zoom
        self._canvas = self._fit_canvas()
        self._crop_box = self._initial_crop_box(options.auto_crop_area or AUTO_CROP_AREA)
        self._ready = True
        _LOGGER.debug("Surface bound: natural=%s canvas=%s", self._image.size, self._canvas)
        self._listener.on_ready()

    def destroy(self) -> None:
        self._ready = False
        self._listener = SurfaceListener()
        self._canvas = None
        self._crop_box = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def get_image_data(self) -> ImageData:
        canvas = self._require_canvas()
        natural_w, natural_h = self._image.size
        return ImageData(natural_w, natural_h, canvas.width, canvas.height)

    def get_crop_box_data(self) -> CropBoxData:
        self._require_canvas()
        return self._crop_box

    def set_crop_box_data(self, data: CropBoxData) -> None:
        self._require_canvas()
        self._crop_box = self._contain(clamp_region(data, self._constraints))

    def get_canvas_data(self) -> CanvasData:
        return self._require_canvas()

    def set_canvas_data(self, data: CanvasData) -> None:
        self._require_canvas()
        if data.width <= 0 or data.height <= 0:
            return
        self._canvas = data
        self._crop_box = self._contain(self._crop_box)

    def update_live_constraints(self, constraints: DisplayConstraints) -> None:
        self._constraints = constraints

    def set_max_zoom(self, value: float) -> None:
        self._max_zoom = float(value)

    def zoom_to_scale(self, scale: float) -> None:
        canvas = self._require_canvas()
        if scale <= 0:
            return
        natural_w, natural_h = self._image.size
        cx = canvas.left + canvas.width * 0.5
        cy = canvas.top + canvas.height * 0.5
        width = natural_w / scale
        height = natural_h / scale
        self.set_canvas_data(CanvasData(cx - width * 0.5, cy - height * 0.5, width, height))

    # ------------------------------------------------------------------
    # Interaction helpers
    # ------------------------------------------------------------------
    def move_crop_box(self, dx: float, dy: float) -> None:
        box = self.get_crop_box_data()
        self.set_crop_box_data(CropBoxData(box.left + dx, box.top + dy, box.width, box.height))
        self._listener.on_region_change()

    def resize_crop_box(self, width: float, height: float) -> None:
        box = self.get_crop_box_data()
        self.set_crop_box_data(CropBoxData(box.left, box.top, width, height))
        self._listener.on_region_change()

    def zoom(self, factor: float) -> None:
        """Zoom the rendered image about its center by *factor*."""
        if factor <= 0:
            return
        canvas = self._require_canvas()
        cx = canvas.left + canvas.width * 0.5
        cy = canvas.top + canvas.height * 0.5
        width = canvas.width * factor
        height = canvas.height * factor
        self.set_canvas_data(CanvasData(cx - width * 0.5, cy - height * 0.5, width, height))
        self._listener.on_zoom()

    # ------------------------------------------------------------------
    # Rasterization
    # ------------------------------------------------------------------
    def get_rasterized_canvas(self, options: CropOptions) -> Optional[RasterizedCrop]:
        if not self._ready:
            return None
        canvas = self._canvas
        box = self._crop_box
        natural_w, natural_h = self._image.size
        sx = natural_w / canvas.width
        sy = natural_h / canvas.height

        left = max(0, round((box.left - canvas.left) * sx))
        top = max(0, round((box.top - canvas.top) * sy))
        right = min(natural_w, round((box.left + box.width - canvas.left) * sx))
        bottom = min(natural_h, round((box.top + box.height - canvas.top) * sy))
        if right <= left or bottom <= top:
            return None

        fmt = _PIL_FORMATS.get(options.media_type)
        if fmt is None:
            raise RasterizationError(f"Unsupported media type {options.media_type!r}")

        cropped = self._image.crop((left, top, right, bottom))
        target = fit_output_size(cropped.width, cropped.height, options)
        if target.as_tuple() != cropped.size:
            cropped = cropped.resize(target.as_tuple(), Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        try:
            if fmt == "JPEG":
                cropped.convert("RGB").save(
                    buffer, "JPEG", quality=round(options.quality * 100), optimize=True
                )
            else:
                cropped.save(buffer, "PNG")
        except OSError as exc:
            raise RasterizationError(f"Could not encode crop: {exc}") from exc

        return RasterizedCrop(
            payload=buffer.getvalue(),
            width=cropped.width,
            height=cropped.height,
            media_type=options.media_type,
        )

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _require_canvas(self) -> CanvasData:
        if not self._ready or self._canvas is None:
            raise SurfaceNotBoundError("Surface is not bound")
        return self._canvas

    def _fit_canvas(self) -> CanvasData:
        natural_w, natural_h = self._image.size
        view_w, view_h = self._viewport
        fit = min(view_w / natural_w, view_h / natural_h)
        width = natural_w * fit
        height = natural_h * fit
        return CanvasData((view_w - width) * 0.5, (view_h - height) * 0.5, width, height)

    def _initial_crop_box(self, area: float) -> CropBoxData:
        canvas = self._canvas
        width = canvas.width * area
        height = canvas.height * area
        ratio = self._constraints.aspect_ratio
        if ratio:
            if width / height > ratio:
                width = height * ratio
            else:
                height = width / ratio
        box = CropBoxData(
            canvas.left + (canvas.width - width) * 0.5,
            canvas.top + (canvas.height - height) * 0.5,
            width,
            height,
        )
        return self._contain(clamp_region(box, self._constraints))

    def _contain(self, box: CropBoxData) -> CropBoxData:
        """Keep *box* inside the rendered image."""
        canvas = self._canvas
        width = min(box.width, canvas.width)
        height = min(box.height, canvas.height)
        left = min(max(box.left, canvas.left), canvas.left + canvas.width - width)
        top = min(max(box.top, canvas.top), canvas.top + canvas.height - height)
        return CropBoxData(left, top, width, height)
