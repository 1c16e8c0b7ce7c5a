from .pillow_surface import PillowCropSurface
from .protocol import CropSurface, SurfaceListener, SurfaceOptions

__all__ = [
    "CropSurface",
    "PillowCropSurface",
    "SurfaceListener",
    "SurfaceOptions",
]
