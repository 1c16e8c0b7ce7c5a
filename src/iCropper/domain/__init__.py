from .models import (
    AspectRatioSpec,
    BatchState,
    CanvasData,
    Constraints,
    CropBoxData,
    CropConfig,
    CropOptions,
    CropResult,
    CropStats,
    CustomAspect,
    Dimensions,
    DisplayConstraints,
    FreeAspect,
    ImageData,
    ImageEntry,
    QualityReport,
    RasterizedCrop,
    StandardAspect,
    Task,
    TaskStatus,
    parse_aspect_ratio,
)

__all__ = [
    "AspectRatioSpec",
    "BatchState",
    "CanvasData",
    "Constraints",
    "CropBoxData",
    "CropConfig",
    "CropOptions",
    "CropResult",
    "CropStats",
    "CustomAspect",
    "Dimensions",
    "DisplayConstraints",
    "FreeAspect",
    "ImageData",
    "ImageEntry",
    "QualityReport",
    "RasterizedCrop",
    "StandardAspect",
    "Task",
    "TaskStatus",
    "parse_aspect_ratio",
]
