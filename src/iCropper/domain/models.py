from __future__ import annotations

import math
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..config import ENCODE_QUALITY
from ..errors import InvalidAspectRatioError, InvalidConstraintsError


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Constraints:
    """Output bounds in original-image pixels.

    A bound of ``0`` means "no constraint" on that side, which is how the
    settings file encodes an absent limit.
    """

    min_width: float = 0
    max_width: float = 0
    min_height: float = 0
    max_height: float = 0

    def __post_init__(self) -> None:
        for name in ("min_width", "max_width", "min_height", "max_height"):
            value = getattr(self, name)
            if value is None or not math.isfinite(float(value)) or float(value) < 0:
                raise InvalidConstraintsError(f"{name} must be a finite value >= 0, got {value!r}")

    def bounds(self) -> tuple[float, float, float, float]:
        return (self.min_width, self.max_width, self.min_height, self.max_height)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> Constraints:
        return cls(
            min_width=values.get("min_width", 0) or 0,
            max_width=values.get("max_width", 0) or 0,
            min_height=values.get("min_height", 0) or 0,
            max_height=values.get("max_height", 0) or 0,
        )


@dataclass(frozen=True)
class FreeAspect:
    """No aspect ratio lock."""

    def __str__(self) -> str:
        return "free"


@dataclass(frozen=True)
class StandardAspect:
    """Aspect ratio given as a ``"W:H"`` string of two positive integers."""

    ratio: str

    def __post_init__(self) -> None:
        self.terms()

    def terms(self) -> tuple[int, int]:
        parts = str(self.ratio).split(":")
        if len(parts) != 2:
            raise InvalidAspectRatioError(f"Expected 'W:H', got {self.ratio!r}")
        try:
            width, height = int(parts[0]), int(parts[1])
        except ValueError as exc:
            raise InvalidAspectRatioError(f"Expected integers in {self.ratio!r}") from exc
        if width <= 0 or height <= 0:
            raise InvalidAspectRatioError(f"Aspect terms must be positive: {self.ratio!r}")
        return width, height

    def __str__(self) -> str:
        return self.ratio


@dataclass(frozen=True)
class CustomAspect:
    """Aspect ratio given directly as ``width / height``."""

    ratio: float

    def __post_init__(self) -> None:
        value = float(self.ratio)
        if not math.isfinite(value) or value <= 0:
            raise InvalidAspectRatioError(f"Custom ratio must be > 0, got {self.ratio!r}")

    def __str__(self) -> str:
        return f"{float(self.ratio):.2f}"


AspectRatioSpec = Union[FreeAspect, StandardAspect, CustomAspect]


def parse_aspect_ratio(text: str) -> AspectRatioSpec:
    """Parse ``"free"``, ``"16:9"`` or ``"1.5"`` into an :data:`AspectRatioSpec`."""

    value = str(text).strip().lower()
    if value in ("", "free", "none"):
        return FreeAspect()
    if ":" in value:
        return StandardAspect(value)
    try:
        return CustomAspect(float(value))
    except ValueError as exc:
        raise InvalidAspectRatioError(f"Unrecognised aspect ratio {text!r}") from exc


# ---------------------------------------------------------------------------
# Surface snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageData:
    natural_width: float
    natural_height: float
    display_width: float
    display_height: float


@dataclass(frozen=True)
class CropBoxData:
    """Crop region in display space."""

    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.left + self.width * 0.5, self.top + self.height * 0.5)

    def resized_about_center(self, width: float, height: float) -> CropBoxData:
        cx, cy = self.center
        return CropBoxData(cx - width * 0.5, cy - height * 0.5, width, height)


@dataclass(frozen=True)
class CanvasData:
    """Position and size of the rendered image inside the viewport."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class CropConfig:
    """Everything needed to restore a crop region on a recreated surface."""

    crop_box: CropBoxData
    image: ImageData
    canvas: CanvasData


@dataclass(frozen=True)
class DisplayConstraints:
    """Constraint set pushed onto a surface, in display pixels."""

    min_crop_box_width: float = 0.0
    max_crop_box_width: float = 0.0
    min_crop_box_height: float = 0.0
    max_crop_box_height: float = 0.0
    aspect_ratio: Optional[float] = None


@dataclass(frozen=True)
class QualityReport:
    quality_ratio: float
    is_warning: bool
    is_critical: bool
    output_width: float = 0.0
    output_height: float = 0.0


# ---------------------------------------------------------------------------
# Results and stats
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CropOptions:
    """Rasterization request: output bounds plus encoding."""

    min_width: float = 0
    max_width: float = 0
    min_height: float = 0
    max_height: float = 0
    media_type: str = "image/png"
    quality: float = ENCODE_QUALITY

    @classmethod
    def from_constraints(cls, constraints: Constraints, **kwargs: Any) -> CropOptions:
        return cls(
            min_width=constraints.min_width,
            max_width=constraints.max_width,
            min_height=constraints.min_height,
            max_height=constraints.max_height,
            **kwargs,
        )


@dataclass(frozen=True)
class RasterizedCrop:
    """Encoded pixels handed back by a surface."""

    payload: bytes
    width: int
    height: int
    media_type: str = "image/png"


@dataclass(frozen=True)
class CropResult:
    payload: bytes
    url_handle: str
    dimensions: Dimensions
    media_type: str = "image/png"

    @property
    def is_valid(self) -> bool:
        return bool(self.payload) and bool(self.url_handle)


@dataclass(frozen=True)
class CropStats:
    scale: float
    quality_ratio: float
    quality_warning: bool
    quality_critical: bool
    frame_dimensions: Optional[Dimensions]
    output_dimensions: Optional[Dimensions]
    # Only exists so observers comparing snapshots always see a change.
    timestamp: float = field(default_factory=time.monotonic)


# ---------------------------------------------------------------------------
# Tasks and batches
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    progress: int = 0
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class BatchState:
    """Progress of one batch run.

    ``configs`` records the crop configs the batch started from.  Results are
    generated from the live surfaces; the snapshot is kept for observers that
    want to know what the batch was asked to produce.
    """

    configs: dict[str, CropConfig]
    image_ids: list[str]
    task_id: str
    in_progress: bool = True
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cursor: int = 0

    @property
    def total(self) -> int:
        return len(self.image_ids)

    @property
    def processed(self) -> int:
        return len(self.completed) + len(self.failed)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@dataclass
class ImageEntry:
    id: str
    name: str
    source: Optional[Path] = None
    original_size: Optional[Dimensions] = None
    # Name at load time; ``name`` may be edited afterwards.
    loaded_as: str = ""

    @classmethod
    def create(cls, name: str, source: Optional[Path] = None,
               original_size: Optional[Dimensions] = None) -> ImageEntry:
        return cls(id=uuid.uuid4().hex, name=name, source=source,
                   original_size=original_size, loaded_as=name)

    @property
    def original_name(self) -> str:
        if self.source is not None:
            return self.source.name
        return self.loaded_as or self.name
