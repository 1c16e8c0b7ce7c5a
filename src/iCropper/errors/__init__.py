"""Custom exception hierarchy for iCropper."""

from __future__ import annotations


class ICropperError(Exception):
    """Base class for all custom errors raised by iCropper."""


# --- Domain errors ---

class DomainError(ICropperError):
    """Base class for domain-level errors."""


class InvalidAspectRatioError(DomainError, ValueError):
    """Raised when an aspect ratio cannot be parsed or is not positive."""


class InvalidConstraintsError(DomainError, ValueError):
    """Raised when a constraint set contains negative or non-finite bounds."""


class ImageNotFoundError(DomainError, KeyError):
    """Raised when an image id is not part of the catalog."""


# --- Surface errors ---

class SurfaceError(ICropperError):
    """Base class for failures talking to a crop surface."""


class SurfaceNotBoundError(SurfaceError):
    """Raised when an operation needs a bound surface and none is attached."""


class SurfaceContractError(SurfaceError):
    """Raised when a surface breaks its contract (e.g. rejects live constraints)."""


class RasterizationError(SurfaceError):
    """Raised when a surface fails to produce an encoded crop."""


# --- Session errors ---

class SessionStateError(ICropperError):
    """Raised on an illegal crop session state transition."""


# --- Settings errors ---

class SettingsError(ICropperError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


# --- DI-specific errors ---

class CircularDependencyError(ICropperError):
    """Raised when a circular dependency is detected during resolution."""


class ResolutionError(ICropperError):
    """Raised when a dependency cannot be resolved."""


# --- Export errors ---

class ExportError(ICropperError):
    """Raised when crop results cannot be written to disk."""
