"""
Sighting Engine
===============
One engine per renderer session.  It owns the viewport controller,
the fetch & decay transform and the mark-mode machine, and routes
renderer events to them:

    load      → declare the source (empty) + heatmap / circle layers
    viewport  → debounced, threshold-filtered refresh
    geolocate → immediate refresh of the located viewport
    click     → submission (mark mode only) → refresh
    toggle    → flip mark mode, tell the renderer

Initialization preconditions come back as an :class:`InitResult`
rather than an exception: a renderer without a map container or
without geolocation is an expected configuration, not a bug.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping

from heatsight.config import Settings, get_settings
from heatsight.errors import InvalidBounds
from heatsight.render.sink import RenderSink
from heatsight.schemas.sighting import FeatureCollection, PointOut
from heatsight.services.layers import build_layers
from heatsight.services.mark_mode import MarkMode, MarkModeMachine
from heatsight.services.store import PointStore
from heatsight.services.transform import FetchDecayTransform, utcnow
from heatsight.services.viewport import ViewportController
from heatsight.spatial.bounds import ViewportBounds
from heatsight.spatial.decay import DecayParams

logger = logging.getLogger(__name__)


class InitError(str, enum.Enum):
    MISSING_CONTAINER = "missing_container"
    GEOLOCATION_UNSUPPORTED = "geolocation_unsupported"


@dataclass(frozen=True)
class InitResult:
    error: InitError | None = None
    already_initialized: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def _coerce_bounds(bounds: ViewportBounds | Mapping[str, Any]) -> ViewportBounds:
    if isinstance(bounds, ViewportBounds):
        return bounds
    if not isinstance(bounds, Mapping):
        raise InvalidBounds(f"Expected a bounds mapping, got {type(bounds).__name__}")
    return ViewportBounds.from_mapping(dict(bounds))


class SightingEngine:
    def __init__(
        self,
        store: PointStore,
        sink: RenderSink,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings or get_settings()
        self._sink = sink
        self.owner_id: str | None = None

        self.transform = FetchDecayTransform(
            store,
            sink,
            source_name=self.settings.source_name,
            params=DecayParams.from_settings(self.settings),
            clock=clock,
            drop_stale_responses=self.settings.drop_stale_responses,
        )
        self.controller = ViewportController(
            self.transform.refresh,
            debounce_seconds=self.settings.debounce_seconds,
            threshold_deg=self.settings.bounds_threshold_deg,
            ready=lambda: self.transform.ready,
        )
        self.mark_mode = MarkModeMachine(
            store,
            self._after_submit,
            anonymous_owner_id=self.settings.anonymous_owner_id,
        )

    @property
    def current_bounds(self) -> ViewportBounds | None:
        return self.controller.current_bounds

    @property
    def mark_mode_active(self) -> bool:
        return self.mark_mode.active

    # ── Initialization ────────────────────────────────────────

    async def initialize(
        self,
        *,
        has_container: bool = True,
        geolocation_available: bool = True,
    ) -> InitResult:
        """Declare the point source and its layers.  Safe to call twice."""
        if not has_container:
            logger.warning("Renderer reported no map container")
            return InitResult(error=InitError.MISSING_CONTAINER)
        if not geolocation_available:
            logger.warning("Renderer reported no geolocation support")
            return InitResult(error=InitError.GEOLOCATION_UNSUPPORTED)

        name = self.settings.source_name
        if self._sink.has_source(name):
            return InitResult(already_initialized=True)

        await self._sink.add_source(name, FeatureCollection.empty())
        for layer in build_layers(
            name,
            self.settings.heatmap_max_magnitude,
            self.settings.map_zoom,
            self.settings.min_map_zoom,
        ):
            await self._sink.add_layer(layer)

        logger.info("Initialized source %s with heatmap and circle layers", name)
        return InitResult()

    # ── Renderer events ───────────────────────────────────────

    async def on_load(
        self,
        *,
        has_container: bool = True,
        geolocation_available: bool = True,
        bounds: ViewportBounds | Mapping[str, Any] | None = None,
    ) -> InitResult:
        result = await self.initialize(
            has_container=has_container,
            geolocation_available=geolocation_available,
        )
        if result.ok and bounds is not None:
            await self.on_geolocate(bounds)
        return result

    def on_viewport_change(self, bounds: ViewportBounds | Mapping[str, Any]) -> bool:
        """Feed the controller; returns False when the bounds were rejected."""
        try:
            vb = _coerce_bounds(bounds)
        except InvalidBounds as exc:
            logger.warning("Ignoring viewport change: %s", exc)
            return False
        self.controller.on_viewport_change(vb)
        return True

    async def on_geolocate(
        self, bounds: ViewportBounds | Mapping[str, Any]
    ) -> FeatureCollection | None:
        """Refresh right away for the viewport the renderer jumped to."""
        try:
            vb = _coerce_bounds(bounds)
        except InvalidBounds as exc:
            logger.warning("Ignoring geolocated viewport: %s", exc)
            return None
        self.controller.set_current_bounds(vb)
        return await self._refresh(vb)

    async def on_click(self, lng: float, lat: float) -> PointOut | None:
        return await self.mark_mode.handle_click(lng, lat, self.owner_id)

    async def toggle_mark_mode(self) -> MarkMode:
        state = self.mark_mode.toggle()
        await self._sink.set_mark_mode(state is MarkMode.ACTIVE)
        return state

    def set_owner(self, owner_id: str | None) -> None:
        self.owner_id = owner_id or None

    async def _after_submit(self, point: PointOut) -> None:
        bounds = self.controller.current_bounds
        if bounds is None:
            logger.debug("No viewport yet; sighting %s will show on next refresh", point.id)
            return
        await self._refresh(bounds)

    async def _refresh(self, bounds: ViewportBounds) -> FeatureCollection | None:
        try:
            return await self.transform.refresh(bounds)
        except Exception:
            logger.exception("Refresh failed for %s", bounds.as_dict())
            return None

    # ── Lifecycle ─────────────────────────────────────────────

    async def close(self) -> None:
        """Drop the pending debounce and wait for in-flight fetches."""
        self.controller.close()
        await self.controller.drain()
