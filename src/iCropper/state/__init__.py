from .store import CropperState, KeyedStore

__all__ = ["CropperState", "KeyedStore"]
