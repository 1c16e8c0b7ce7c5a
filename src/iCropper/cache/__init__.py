from .handles import HandleRegistry
from .result_cache import CropResultCache

__all__ = ["CropResultCache", "HandleRegistry"]
