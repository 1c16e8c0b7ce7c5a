"""Upsampling detection for the current crop and zoom."""

from __future__ import annotations

import logging

from ..config import MIN_PIXEL_DENSITY, QUALITY_CRITICAL_THRESHOLD, QUALITY_WARNING_THRESHOLD
from ..domain.models import QualityReport
from .scale import scale_of

_LOGGER = logging.getLogger(__name__)


class QualityEvaluator:
    """Compute how much native resolution survives the crop's effective zoom."""

    def __init__(
        self,
        warning_threshold: float = QUALITY_WARNING_THRESHOLD,
        critical_threshold: float = QUALITY_CRITICAL_THRESHOLD,
    ) -> None:
        self._warning = float(warning_threshold)
        self._critical = float(critical_threshold)

    def evaluate(self, scale: float, region_width: float, region_height: float) -> QualityReport:
        """Return the quality report for a display-space region at *scale*.

        ``1.0`` means no loss; a degenerate region reports no loss.
        """
        output_width = region_width * scale
        output_height = region_height * scale
        if region_width <= 0 or region_height <= 0:
            return QualityReport(1.0, False, False, output_width, output_height)

        ratio = min(output_width / region_width, output_height / region_height)
        return QualityReport(
            quality_ratio=ratio,
            is_warning=ratio < self._warning,
            is_critical=ratio < self._critical,
            output_width=output_width,
            output_height=output_height,
        )

    @staticmethod
    def max_zoom(scale: float, min_pixel_density: float = MIN_PIXEL_DENSITY) -> float:
        return scale * min_pixel_density

    def enforce_zoom_limit(self, surface, min_pixel_density: float = MIN_PIXEL_DENSITY) -> float:
        """Cap the surface's zoom so it never needs more than *min_pixel_density*.

        Advisory only: failures are logged and never block :meth:`evaluate`.
        """
        scale = scale_of(surface)
        limit = self.max_zoom(scale, min_pixel_density)
        try:
            surface.set_max_zoom(limit)
            if scale > limit:
                surface.zoom_to_scale(limit)
        except Exception:  # noqa: BLE001 - zoom limiting is best effort
            _LOGGER.warning("Could not apply zoom limit %.4f", limit, exc_info=True)
        return limit
