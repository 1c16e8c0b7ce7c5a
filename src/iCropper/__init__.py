"""Batch image cropping against shared or per-image output constraints."""

from .appctx import AppContext
from .catalog import ImageCatalog
from .workspace import CropWorkspace

__all__ = ["AppContext", "CropWorkspace", "ImageCatalog"]

__version__ = "0.1.0"
