"""Per-image binding between a crop surface and the crop engine."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from ..cache.result_cache import CropResultCache
from ..core.constraints import ConstraintEnforcer, resolve_aspect_ratio
from ..core.output import fit_output_size
from ..core.quality import QualityEvaluator
from ..core.scale import scale_of
from ..domain.models import CropConfig, CropStats, Dimensions, DisplayConstraints
from ..errors import SessionStateError, SurfaceError
from ..events.bus import EventBus, Subscription
from ..events.crop_events import CropStatsChangedEvent, SettingsChangedEvent
from ..settings.manager import SettingsManager
from ..state.store import CropperState
from ..surface.protocol import CropSurface, SurfaceListener, SurfaceOptions
from .debounce import KeyedDebouncer

_LOGGER = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    DISPOSED = "disposed"


class CropSession:
    """Owns the live surface of one image.

    The session translates surface callbacks into constraint enforcement,
    quality stats and config snapshots, and schedules a debounced cache
    invalidation so only the settled state of an interaction drops the
    cached result.
    """

    def __init__(
        self,
        image_id: str,
        *,
        settings: SettingsManager,
        state: CropperState,
        cache: CropResultCache,
        debouncer: KeyedDebouncer,
        event_bus: Optional[EventBus] = None,
        evaluator: Optional[QualityEvaluator] = None,
        enforcer: Optional[ConstraintEnforcer] = None,
        rebind_on_settings_change: bool = False,
    ) -> None:
        self._image_id = image_id
        self._settings = settings
        self._state = state
        self._cache = cache
        self._debouncer = debouncer
        self._events = event_bus
        self._evaluator = evaluator or QualityEvaluator()
        self._enforcer = enforcer or ConstraintEnforcer()
        self._rebind = rebind_on_settings_change
        self._surface: Optional[CropSurface] = None
        self._status = SessionState.UNBOUND
        self._subscription: Optional[Subscription] = None

    @property
    def image_id(self) -> str:
        return self._image_id

    @property
    def status(self) -> SessionState:
        return self._status

    @property
    def surface(self) -> Optional[CropSurface]:
        return self._surface

    @property
    def is_bound(self) -> bool:
        return self._status is SessionState.BOUND

    @property
    def stats(self) -> Optional[CropStats]:
        return self._state.stats.get(self._image_id)

    @property
    def config(self) -> Optional[CropConfig]:
        return self._state.configs.get(self._image_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def bind(self, surface: CropSurface) -> None:
        """Attach *surface*; constraints and any saved config follow on ready."""
        if self._status is not SessionState.UNBOUND:
            raise SessionStateError(f"Cannot bind session {self._image_id} while {self._status.value}")

        aspect = self._settings.aspect_ratio_for(self._image_id)
        options = SurfaceOptions(constraints=DisplayConstraints(aspect_ratio=resolve_aspect_ratio(aspect)))
        listener = SurfaceListener(
            on_ready=self._on_ready,
            on_region_change=self._on_interaction,
            on_zoom=self._on_interaction,
        )
        self._surface = surface
        self._status = SessionState.BOUND
        self._enforcer.reset()
        if self._events is not None and self._subscription is None:
            self._subscription = self._events.subscribe(SettingsChangedEvent, self._on_settings_changed)
        try:
            surface.bind(options, listener)
        except Exception:
            _LOGGER.exception("Binding surface for %s failed", self._image_id)
            self._release_binding()
            self._status = SessionState.UNBOUND
            raise

    def dispose(self, *, refresh: bool = True) -> None:
        """Detach the surface, keeping the final config for the next bind.

        With *refresh*, a result is generated before the surface goes away.
        """
        if self._status is SessionState.DISPOSED:
            return
        if self._status is SessionState.UNBOUND:
            self._status = SessionState.DISPOSED
            return

        surface = self._surface
        if self._debouncer.cancel(self._image_id):
            self._cache.invalidate(self._image_id)
        if surface is not None and surface.is_ready:
            self._save_config()
            if refresh:
                try:
                    self._cache.get(self._image_id)
                except Exception:  # noqa: BLE001 - refresh on dispose is best effort
                    _LOGGER.warning("Could not refresh result for %s on dispose", self._image_id, exc_info=True)

        self._debouncer.discard(self._image_id)
        self._release_binding()
        self._status = SessionState.DISPOSED
        _LOGGER.debug("Session %s disposed", self._image_id)

    def rebind(self) -> None:
        """Tear the surface down and bind it again, replaying the saved config."""
        if self._status is not SessionState.BOUND or self._surface is None:
            raise SessionStateError(f"Session {self._image_id} has no surface to rebind")
        surface = self._surface
        if surface.is_ready:
            self._save_config()
        self._release_binding()
        self._status = SessionState.UNBOUND
        self.bind(surface)

    # ------------------------------------------------------------------
    # Surface callbacks
    # ------------------------------------------------------------------
    def _on_ready(self) -> None:
        surface = self._surface
        if self._status is not SessionState.BOUND or surface is None:
            return
        self._cache.register_surface(self._image_id, surface)

        self._apply_constraints(force=True)
        self._evaluator.enforce_zoom_limit(surface)

        saved = self._state.configs.get(self._image_id)
        if saved is not None:
            try:
                surface.set_canvas_data(saved.canvas)
                surface.set_crop_box_data(saved.crop_box)
            except Exception:  # noqa: BLE001 - restore falls back to the default region
                _LOGGER.warning("Could not restore crop config for %s", self._image_id, exc_info=True)
            else:
                self._apply_constraints()

        self._publish_stats()

    def _on_interaction(self) -> None:
        surface = self._surface
        if self._status is not SessionState.BOUND or surface is None or not surface.is_ready:
            return
        self._apply_constraints()
        self._publish_stats()
        self._save_config()
        self._debouncer.schedule(self._image_id, self._invalidate_result)

    def _on_settings_changed(self, event: SettingsChangedEvent) -> None:
        if event.image_id is not None and event.image_id != self._image_id:
            return
        if self._status is not SessionState.BOUND or self._surface is None:
            return

        self._debouncer.cancel(self._image_id)
        self._cache.invalidate(self._image_id)
        if not self._surface.is_ready:
            return
        if self._rebind:
            _LOGGER.debug("Settings changed; rebinding surface for %s", self._image_id)
            self.rebind()
            return
        self._apply_constraints()
        self._publish_stats()
        self._save_config()

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _apply_constraints(self, *, force: bool = False) -> Optional[DisplayConstraints]:
        surface = self._surface
        scale = scale_of(surface)
        return self._enforcer.apply(
            surface,
            scale,
            self._settings.constraints_for(self._image_id),
            self._settings.aspect_ratio_for(self._image_id),
            force=force,
        )

    def _compute_stats(self) -> CropStats:
        surface = self._surface
        scale = scale_of(surface)
        box = surface.get_crop_box_data()
        report = self._evaluator.evaluate(scale, box.width, box.height)
        frame = Dimensions(round(report.output_width), round(report.output_height))
        output = fit_output_size(frame.width, frame.height, self._settings.crop_options_for(self._image_id))
        return CropStats(
            scale=scale,
            quality_ratio=report.quality_ratio,
            quality_warning=report.is_warning,
            quality_critical=report.is_critical,
            frame_dimensions=frame,
            output_dimensions=output,
        )

    def _publish_stats(self) -> None:
        try:
            stats = self._compute_stats()
        except SurfaceError:
            _LOGGER.debug("Surface for %s not ready for stats", self._image_id)
            return
        self._state.stats.set(self._image_id, stats)
        if self._events is not None:
            self._events.publish(CropStatsChangedEvent(image_id=self._image_id, stats=stats, source="session"))

    def _save_config(self) -> None:
        surface = self._surface
        try:
            config = CropConfig(
                crop_box=surface.get_crop_box_data(),
                image=surface.get_image_data(),
                canvas=surface.get_canvas_data(),
            )
        except SurfaceError:
            _LOGGER.debug("Surface for %s not ready for a config snapshot", self._image_id)
            return
        self._state.configs.set(self._image_id, config)

    def _invalidate_result(self) -> None:
        self._cache.invalidate(self._image_id)

    def _release_binding(self) -> None:
        if self._subscription is not None and self._events is not None:
            self._events.unsubscribe(self._subscription)
        self._subscription = None
        self._cache.unregister_surface(self._image_id)
        surface, self._surface = self._surface, None
        if surface is not None:
            try:
                surface.destroy()
            except Exception:  # noqa: BLE001 - a dead surface must not block teardown
                _LOGGER.warning("Destroying surface for %s failed", self._image_id, exc_info=True)
