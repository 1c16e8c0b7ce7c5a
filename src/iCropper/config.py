"""Default configuration values for iCropper."""

from __future__ import annotations

from typing import Final

# A crop session waits this long after the last region/zoom event before it
# drops the cached result for its image.  Only the settled state of a drag
# invalidates; intermediate frames never touch the cache.
DEBOUNCE_MS: Final[int] = 500

# Quality ratio thresholds.  A ratio of 1.0 means the crop keeps the native
# resolution of the source; anything below implies upsampling.
QUALITY_WARNING_THRESHOLD: Final[float] = 0.8
QUALITY_CRITICAL_THRESHOLD: Final[float] = 0.5

# Minimum pixel density used when deriving the advisory zoom ceiling.
MIN_PIXEL_DENSITY: Final[float] = 1.0

# Fixed encoder quality factor for lossy output formats (0..1).
ENCODE_QUALITY: Final[float] = 0.95

# Fraction of the viewport the initial crop box covers on a fresh surface.
AUTO_CROP_AREA: Final[float] = 0.9

# Headless surfaces fit images into this viewport unless told otherwise.
DEFAULT_VIEWPORT: Final[tuple[int, int]] = (800, 600)

# Scheme used for the opaque handles that stand in for object URLs.
RESULT_HANDLE_SCHEME: Final[str] = "crop-result"

SUPPORTED_MEDIA_TYPES: Final[dict[str, str]] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}

MEDIA_TYPE_EXTENSIONS: Final[dict[str, str]] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
}
