from __future__ import annotations

from unittest.mock import Mock

import pytest

from fakes import StubSurface
from iCropper.core.constraints import (
    ConstraintEnforcer,
    clamp_region,
    resolve_aspect_ratio,
    to_display_constraints,
)
from iCropper.core.scale import scale_of, to_original
from iCropper.domain.models import (
    Constraints,
    CropBoxData,
    CustomAspect,
    DisplayConstraints,
    FreeAspect,
    StandardAspect,
)
from iCropper.errors import SurfaceContractError


def test_resolve_aspect_ratio_variants():
    assert resolve_aspect_ratio(FreeAspect()) is None
    assert resolve_aspect_ratio(StandardAspect("16:9")) == pytest.approx(16 / 9)
    assert resolve_aspect_ratio(CustomAspect(1.5)) == 1.5


def test_display_bounds_for_4000_by_3000_shown_at_800_by_600():
    surface = StubSurface(natural=(4000, 3000), display=(800, 600))
    enforcer = ConstraintEnforcer()

    applied = enforcer.apply(
        surface,
        scale_of(surface),
        Constraints(min_width=100, max_width=2000, min_height=100, max_height=2000),
        FreeAspect(),
    )

    assert applied.min_crop_box_width == pytest.approx(20)
    assert applied.max_crop_box_width == pytest.approx(400)
    assert surface.constraints == applied


def test_zero_bounds_stay_unconstrained():
    display = to_display_constraints(Constraints(max_width=1000), FreeAspect(), 4.0)
    assert display.min_crop_box_width == 0
    assert display.max_crop_box_width == pytest.approx(250)
    assert display.max_crop_box_height == 0


def test_unchanged_inputs_do_not_touch_the_surface():
    surface = StubSurface()
    enforcer = ConstraintEnforcer()
    constraints = Constraints(100, 2000, 100, 2000)

    assert enforcer.apply(surface, 5.0, constraints, FreeAspect()) is not None
    assert enforcer.apply(surface, 5.0, constraints, FreeAspect()) is None
    assert len(surface.constraint_history) == 1

    enforcer.apply(surface, 5.0, constraints, FreeAspect(), force=True)
    assert len(surface.constraint_history) == 2


def test_scale_change_reapplies_bounds():
    surface = StubSurface()
    enforcer = ConstraintEnforcer()
    constraints = Constraints(100, 2000, 100, 2000)
    enforcer.apply(surface, 5.0, constraints, FreeAspect())
    enforcer.apply(surface, 2.5, constraints, FreeAspect())
    assert surface.constraints.max_crop_box_width == pytest.approx(800)


def test_relaxed_max_clamps_region_about_its_center():
    surface = StubSurface(crop_box=CropBoxData(100, 100, 600, 400))
    ConstraintEnforcer().apply(surface, 5.0, Constraints(100, 2000, 100, 1000), FreeAspect())

    box = surface.crop_box
    assert box.width == pytest.approx(400)
    assert box.height == pytest.approx(200)
    assert box.center == pytest.approx((400, 300))


@pytest.mark.parametrize(
    "box",
    [
        CropBoxData(0, 0, 5, 5),
        CropBoxData(0, 0, 700, 500),
        CropBoxData(10, 10, 150, 90),
    ],
)
def test_region_satisfies_bounds_in_original_pixels(box):
    surface = StubSurface(crop_box=box)
    constraints = Constraints(min_width=100, max_width=2000, min_height=200, max_height=1500)
    scale = scale_of(surface)
    ConstraintEnforcer().apply(surface, scale, constraints, FreeAspect())

    width = to_original(surface.crop_box.width, scale)
    height = to_original(surface.crop_box.height, scale)
    assert constraints.min_width - 1e-6 <= width <= constraints.max_width + 1e-6
    assert constraints.min_height - 1e-6 <= height <= constraints.max_height + 1e-6


def test_clamp_region_enforces_aspect_ratio():
    display = DisplayConstraints(aspect_ratio=2.0)
    box = clamp_region(CropBoxData(0, 0, 200, 200), display)
    assert box.width / box.height == pytest.approx(2.0)


def test_clamp_region_returns_same_box_when_legal():
    box = CropBoxData(0, 0, 100, 50)
    assert clamp_region(box, DisplayConstraints(min_crop_box_width=10, aspect_ratio=2.0)) is box


def test_surface_rejecting_constraints_is_reraised():
    surface = Mock()
    surface.update_live_constraints.side_effect = RuntimeError("options are frozen")

    with pytest.raises(SurfaceContractError):
        ConstraintEnforcer().apply(surface, 1.0, Constraints(1, 2, 1, 2), FreeAspect())
