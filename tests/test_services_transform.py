"""
Tests for heatsight.services.transform — feature building and the
fetch & decay refresh.
"""
from __future__ import annotations

import asyncio
import math
import uuid

import pytest
import pytest_asyncio

from heatsight.errors import NetworkFailure
from heatsight.render.sink import InMemoryRenderSink
from heatsight.schemas.sighting import FeatureCollection
from heatsight.services.transform import FetchDecayTransform, build_feature_collection
from heatsight.spatial.bounds import ViewportBounds
from heatsight.spatial.decay import DecayParams, to_millis
from tests.conftest import NOW, SAMPLE_BOUNDS, make_point

BOUNDS = ViewportBounds(**SAMPLE_BOUNDS)


# ═══════════════════════════════════════════════════════════════════
# build_feature_collection
# ═══════════════════════════════════════════════════════════════════
class TestBuildFeatureCollection:
    def test_empty(self):
        fc = build_feature_collection([], now=NOW)
        assert fc.type == "FeatureCollection"
        assert fc.features == []

    def test_feature_shape(self):
        pid = uuid.UUID("12345678-1234-5678-1234-567812345678")
        fc = build_feature_collection([make_point(id=pid, lng=-117.7, lat=33.5)], now=NOW)
        feat = fc.features[0]
        assert feat.type == "Feature"
        assert feat.geometry.type == "Point"
        assert feat.geometry.coordinates == (-117.7, 33.5)
        assert feat.properties.id == str(pid)
        assert feat.properties.created_at_millis == to_millis(NOW)

    def test_weights_follow_age(self):
        points = [make_point(age_days=d) for d in (0, 30, 10_000)]
        weights = [f.properties.weight for f in build_feature_collection(points, now=NOW).features]
        assert weights[0] == 5.0
        assert math.isclose(weights[1], 5 * math.exp(-1), rel_tol=1e-9)
        assert weights[2] == 0.1

    def test_preserves_store_order(self):
        points = [make_point(age_days=d) for d in (1, 2, 3)]
        fc = build_feature_collection(points, now=NOW)
        assert [f.properties.id for f in fc.features] == [str(p.id) for p in points]

    def test_custom_params(self):
        params = DecayParams(max_weight=1.0, min_weight=0.0, decay_days=1.0)
        fc = build_feature_collection([make_point(age_days=1)], now=NOW, params=params)
        assert math.isclose(fc.features[0].properties.weight, math.exp(-1))

    def test_json_serialisable(self):
        fc = build_feature_collection([make_point()], now=NOW)
        data = fc.model_dump(mode="json", by_alias=True)
        assert data["features"][0]["geometry"]["coordinates"] == [-117.66, 33.51]
        assert set(data["features"][0]["properties"]) == {"id", "weight", "createdAtMillis"}


# ═══════════════════════════════════════════════════════════════════
# FetchDecayTransform.refresh
# ═══════════════════════════════════════════════════════════════════
class TestFetchDecayTransform:
    @pytest_asyncio.fixture()
    async def ready_sink(self):
        sink = InMemoryRenderSink()
        await sink.add_source("sighting", FeatureCollection.empty())
        return sink

    @pytest.fixture()
    def transform(self, store, ready_sink, clock):
        return FetchDecayTransform(store, ready_sink, source_name="sighting", clock=clock)

    @pytest.mark.asyncio
    async def test_empty_viewport_still_sets_data(self, transform, store, ready_sink):
        fc = await transform.refresh(BOUNDS)
        store.query.assert_awaited_once_with(BOUNDS)
        assert fc is not None and fc.features == []
        assert ready_sink.set_data_calls == 1
        assert ready_sink.sources["sighting"].type == "FeatureCollection"

    @pytest.mark.asyncio
    async def test_replaces_not_merges(self, transform, store, ready_sink):
        store.query.return_value = [make_point(), make_point()]
        await transform.refresh(BOUNDS)
        assert len(ready_sink.sources["sighting"].features) == 2

        store.query.return_value = [make_point()]
        await transform.refresh(BOUNDS)
        assert len(ready_sink.sources["sighting"].features) == 1

    @pytest.mark.asyncio
    async def test_idempotent_for_unchanged_store(self, transform, store):
        store.query.return_value = [make_point(age_days=d) for d in (0, 5, 50)]
        first = await transform.refresh(BOUNDS)
        second = await transform.refresh(BOUNDS)
        assert first == second

    @pytest.mark.asyncio
    async def test_store_failure_keeps_previous_data(self, transform, store, ready_sink):
        store.query.return_value = [make_point()]
        await transform.refresh(BOUNDS)
        before = ready_sink.sources["sighting"]

        store.query.side_effect = NetworkFailure("connection refused")
        assert await transform.refresh(BOUNDS) is None
        assert ready_sink.sources["sighting"] is before
        assert ready_sink.set_data_calls == 1

    @pytest.mark.asyncio
    async def test_skips_when_source_missing(self, store, clock):
        transform = FetchDecayTransform(
            store, InMemoryRenderSink(), source_name="sighting", clock=clock
        )
        assert await transform.refresh(BOUNDS) is None
        store.query.assert_not_awaited()


class TestOverlappingRefreshes:
    """Two fetches in flight; the first one resolves last."""

    async def _run(self, drop_stale: bool):
        sink = InMemoryRenderSink()
        await sink.add_source("sighting", FeatureCollection.empty())

        slow_release = asyncio.Event()
        old = [make_point(), make_point(), make_point()]
        new = [make_point()]

        class _Store:
            calls = 0

            async def query(self, bounds):
                self.calls += 1
                if self.calls == 1:
                    await slow_release.wait()
                    return old
                return new

        transform = FetchDecayTransform(
            _Store(), sink, source_name="sighting",
            clock=lambda: NOW, drop_stale_responses=drop_stale,
        )
        first = asyncio.create_task(transform.refresh(BOUNDS))
        await asyncio.sleep(0)
        await transform.refresh(BOUNDS)
        slow_release.set()
        await first
        return sink

    @pytest.mark.asyncio
    async def test_last_write_wins_by_default(self):
        sink = await self._run(drop_stale=False)
        assert len(sink.sources["sighting"].features) == 3
        assert sink.set_data_calls == 2

    @pytest.mark.asyncio
    async def test_stale_response_dropped_when_hardened(self):
        sink = await self._run(drop_stale=True)
        assert len(sink.sources["sighting"].features) == 1
        assert sink.set_data_calls == 1
