import pytest

from iCropper.errors import (
    CircularDependencyError,
    DomainError,
    ExportError,
    ICropperError,
    ImageNotFoundError,
    InvalidAspectRatioError,
    InvalidConstraintsError,
    RasterizationError,
    ResolutionError,
    SessionStateError,
    SettingsError,
    SettingsLoadError,
    SettingsValidationError,
    SurfaceContractError,
    SurfaceError,
    SurfaceNotBoundError,
)


@pytest.mark.parametrize(
    ("error", "parents"),
    [
        (InvalidAspectRatioError, (DomainError, ValueError)),
        (InvalidConstraintsError, (DomainError, ValueError)),
        (ImageNotFoundError, (DomainError, KeyError)),
        (SurfaceNotBoundError, (SurfaceError,)),
        (SurfaceContractError, (SurfaceError,)),
        (RasterizationError, (SurfaceError,)),
        (SettingsLoadError, (SettingsError,)),
        (SettingsValidationError, (SettingsError,)),
        (SessionStateError, ()),
        (CircularDependencyError, ()),
        (ResolutionError, ()),
        (ExportError, ()),
    ],
)
def test_hierarchy(error, parents):
    instance = error("message")
    assert isinstance(instance, ICropperError)
    for parent in parents:
        assert isinstance(instance, parent)


def test_value_errors_are_catchable_as_builtin():
    with pytest.raises(ValueError):
        raise InvalidAspectRatioError("0:1")
