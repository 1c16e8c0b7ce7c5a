"""Output sizing shared by stats reporting and rasterization."""

from __future__ import annotations

from ..domain.models import CropOptions, Dimensions


def fit_output_size(width: float, height: float, options: CropOptions) -> Dimensions:
    """Fit a raw crop of *width* x *height* original pixels into *options*' bounds.

    Aspect ratio is preserved.  Oversized crops shrink to the maximum (width
    first, then height); undersized crops grow toward the minimum without ever
    crossing a maximum.  Zero bounds are ignored.
    """
    if width <= 0 or height <= 0:
        return Dimensions(0, 0)

    out_w = float(width)
    out_h = float(height)

    if options.max_width and out_w > options.max_width:
        out_h = out_h * options.max_width / out_w
        out_w = float(options.max_width)
    if options.max_height and out_h > options.max_height:
        out_w = out_w * options.max_height / out_h
        out_h = float(options.max_height)

    grow = 1.0
    if options.min_width and out_w < options.min_width:
        grow = max(grow, options.min_width / out_w)
    if options.min_height and out_h < options.min_height:
        grow = max(grow, options.min_height / out_h)
    if grow > 1.0:
        if options.max_width:
            grow = min(grow, options.max_width / out_w)
        if options.max_height:
            grow = min(grow, options.max_height / out_h)
        grow = max(grow, 1.0)
        out_w *= grow
        out_h *= grow

    return Dimensions(max(1, round(out_w)), max(1, round(out_h)))
