from __future__ import annotations

from unittest.mock import Mock

import pytest

from fakes import StubSurface
from iCropper.domain.models import CanvasData, CropBoxData, Dimensions
from iCropper.errors import SessionStateError, SurfaceContractError
from iCropper.events.crop_events import CropStatsChangedEvent
from iCropper.session.crop_session import CropSession, SessionState


@pytest.fixture
def make_session(settings, state, cache, debouncer, bus):
    def make(image_id: str = "img", **kwargs) -> CropSession:
        return CropSession(
            image_id,
            settings=settings,
            state=state,
            cache=cache,
            debouncer=debouncer,
            event_bus=bus,
            **kwargs,
        )

    return make


def test_bind_applies_constraints_and_publishes_stats(make_session, recorder):
    events = recorder(CropStatsChangedEvent)
    surface = StubSurface(natural=(4000, 3000), display=(800, 600))
    session = make_session()

    session.bind(surface)

    assert session.status is SessionState.BOUND
    assert surface.constraints.min_crop_box_width == pytest.approx(20)
    assert surface.constraints.max_crop_box_width == pytest.approx(400)
    assert surface.max_zoom == pytest.approx(5.0)
    assert len(events) == 1
    stats = events[0].stats
    assert stats.scale == pytest.approx(5.0)
    assert stats.frame_dimensions == Dimensions(1000, 750)
    assert stats.output_dimensions == Dimensions(1000, 750)
    assert not stats.quality_warning
    assert session.stats is stats


def test_bound_surface_feeds_the_cache(make_session, cache):
    make_session("img").bind(StubSurface())
    assert cache.get("img").is_valid


def test_config_round_trips_across_rebinding(make_session, state):
    first = StubSurface()
    session = make_session()
    session.bind(first)
    first.drag(37)
    session.dispose(refresh=False)
    saved = state.configs.get("img")
    assert saved.crop_box.left == pytest.approx(137)

    second = StubSurface()
    make_session().bind(second)
    assert second.crop_box == saved.crop_box


def test_restore_failure_is_swallowed(make_session, state, recorder):
    events = recorder(CropStatsChangedEvent)
    first = StubSurface()
    session = make_session()
    session.bind(first)
    session.dispose(refresh=False)

    broken = StubSurface()
    broken.set_canvas_data = Mock(side_effect=RuntimeError("stale canvas"))
    restored = make_session()
    restored.bind(broken)

    assert restored.status is SessionState.BOUND
    assert len(events) == 2


def test_interaction_publishes_stats_then_config_then_schedules(make_session, state, debouncer):
    session = make_session()
    surface = StubSurface()
    session.bind(surface)
    order = []
    state.stats.subscribe(lambda key, value: order.append(("stats", debouncer.is_pending(key))))
    state.configs.subscribe(lambda key, value: order.append(("config", debouncer.is_pending(key))))

    surface.drag(5)

    assert order == [("stats", False), ("config", False)]
    assert debouncer.is_pending("img")


def test_only_the_settled_interaction_invalidates(make_session, cache, clock):
    session = make_session()
    surface = StubSurface()
    session.bind(surface)
    result = cache.get("img")

    surface.drag(1)
    clock.advance(100)
    surface.drag(1)
    clock.advance(100)
    surface.drag(1)
    clock.advance(499)
    assert cache.peek("img") is result

    clock.advance(1)
    assert cache.peek("img") is None
    assert clock.fired == [700]


def test_zoom_reapplies_constraints_at_new_scale(make_session):
    surface = StubSurface(natural=(4000, 3000), display=(800, 600))
    make_session().bind(surface)

    surface.zoom(2.0)

    assert surface.constraints.max_crop_box_width == pytest.approx(800)


def test_contract_breach_on_bind_is_reraised(make_session):
    surface = StubSurface()
    surface.update_live_constraints = Mock(side_effect=RuntimeError("frozen options"))
    session = make_session()

    with pytest.raises(SurfaceContractError):
        session.bind(surface)
    assert session.status is SessionState.UNBOUND
    assert surface.destroyed == 1


def test_dispose_flushes_pending_invalidation_then_refreshes(make_session, cache, handles, debouncer):
    session = make_session()
    surface = StubSurface()
    session.bind(surface)
    old = cache.get("img")

    surface.drag(3)
    session.dispose()

    fresh = cache.peek("img")
    assert fresh is not None and fresh.url_handle != old.url_handle
    assert not handles.is_live(old.url_handle)
    assert not debouncer.is_pending("img")
    assert surface.destroyed == 1
    assert session.status is SessionState.DISPOSED
    assert cache.surface_for("img") is None


def test_dispose_without_pending_keeps_result(make_session, cache):
    session = make_session()
    session.bind(StubSurface())
    result = cache.get("img")
    session.dispose()
    assert cache.peek("img") is result


def test_illegal_transitions(make_session):
    session = make_session()
    session.bind(StubSurface())
    with pytest.raises(SessionStateError):
        session.bind(StubSurface())

    session.dispose()
    session.dispose()
    with pytest.raises(SessionStateError):
        session.bind(StubSurface())


def test_unbound_session_cannot_rebind(make_session):
    with pytest.raises(SessionStateError):
        make_session().rebind()


def test_per_image_settings_update_live_constraints(make_session, settings, cache, debouncer):
    surface = StubSurface()
    session = make_session()
    session.bind(surface)
    cache.get("img")
    surface.drag(1)

    settings.set_image_settings("img", {"max_width": 1500})

    assert surface.constraints.max_crop_box_width == pytest.approx(300)
    assert cache.peek("img") is None
    assert not debouncer.is_pending("img")
    assert surface.destroyed == 0


def test_settings_for_other_images_are_ignored(make_session, settings):
    surface = StubSurface()
    make_session().bind(surface)
    applied = len(surface.constraint_history)

    settings.set_image_settings("other", {"max_width": 1500})

    assert len(surface.constraint_history) == applied


def test_rebind_on_settings_change_replays_restore(make_session, settings, state):
    surface = StubSurface()
    session = make_session(rebind_on_settings_change=True)
    session.bind(surface)
    surface.drag(10)
    box = surface.crop_box

    settings.set_image_settings("img", {"max_width": 1900})

    assert surface.destroyed == 1
    assert surface.ready
    assert session.status is SessionState.BOUND
    assert surface.crop_box == box
    assert surface.constraints.max_crop_box_width == pytest.approx(380)


def test_restored_canvas_changes_scale(make_session, state):
    first = StubSurface()
    session = make_session()
    session.bind(first)
    first.canvas = CanvasData(0, 0, 1600, 1200)
    first.crop_box = CropBoxData(10, 10, 300, 200)
    first.drag(0)
    session.dispose(refresh=False)

    second = StubSurface()
    make_session().bind(second)
    assert second.constraints.max_crop_box_width == pytest.approx(800)
