"""
Fetch & Decay Transform
=======================
Converts a viewport rectangle into a ready-to-render feature set.

1. Query the store for every point inside the bounds, newest first.
2. Weight each point by age (:mod:`heatsight.spatial.decay`).
3. Replace the renderer source contents with the new collection.

A store failure is logged and the renderer keeps whatever it was
showing; stale-but-valid data beats a cleared view.  Nothing retries
automatically: the next viewport change or submission does.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from heatsight.errors import NetworkFailure
from heatsight.render.sink import RenderSink
from heatsight.schemas.sighting import (
    FeatureCollection,
    FeatureProperties,
    PointGeometry,
    PointOut,
    RenderFeature,
)
from heatsight.services.store import PointStore
from heatsight.spatial.bounds import ViewportBounds
from heatsight.spatial.decay import DecayParams, decay_weights, to_millis

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_feature_collection(
    points: Sequence[PointOut],
    *,
    now: datetime,
    params: DecayParams = DecayParams(),
) -> FeatureCollection:
    """Project stored points into weighted render features, preserving order."""
    if not points:
        return FeatureCollection.empty()

    created_ms = [to_millis(p.created_at) for p in points]
    weights = decay_weights(created_ms, to_millis(now), params)

    return FeatureCollection(
        features=[
            RenderFeature(
                geometry=PointGeometry(coordinates=(p.lng, p.lat)),
                properties=FeatureProperties(
                    id=str(p.id),
                    weight=float(weight),
                    created_at_millis=ms,
                ),
            )
            for p, ms, weight in zip(points, created_ms, weights)
        ]
    )


class FetchDecayTransform:
    """
    Fetches points for a viewport and hands them to the renderer.

    Overlapping refreshes are not cancelled.  By default whichever
    response arrives last wins; with ``drop_stale_responses`` each
    refresh is numbered and a response older than one already applied
    is discarded.
    """

    def __init__(
        self,
        store: PointStore,
        sink: RenderSink,
        *,
        source_name: str,
        params: DecayParams = DecayParams(),
        clock: Callable[[], datetime] = utcnow,
        drop_stale_responses: bool = False,
    ) -> None:
        self._store = store
        self._sink = sink
        self.source_name = source_name
        self.params = params
        self._clock = clock
        self.drop_stale_responses = drop_stale_responses
        self._issued_seq = 0
        self._applied_seq = 0

    @property
    def ready(self) -> bool:
        """True once the renderer has declared the target source."""
        return self._sink.has_source(self.source_name)

    async def refresh(self, bounds: ViewportBounds) -> FeatureCollection | None:
        """
        Fetch, weight and publish the points inside ``bounds``.

        Returns the published collection, or ``None`` when nothing was
        written (source not declared yet, store failure, stale response).
        """
        if not self.ready:
            logger.debug("Source %s not declared yet; skipping refresh", self.source_name)
            return None

        self._issued_seq += 1
        seq = self._issued_seq

        try:
            points = await self._store.query(bounds)
        except NetworkFailure as exc:
            logger.error("Failed to fetch points for %s: %s", bounds.as_dict(), exc)
            return None

        collection = build_feature_collection(points, now=self._clock(), params=self.params)

        if self.drop_stale_responses and seq < self._applied_seq:
            logger.debug(
                "Dropping stale response #%d (already applied #%d)", seq, self._applied_seq
            )
            return None

        await self._sink.set_data(self.source_name, collection)
        self._applied_seq = max(self._applied_seq, seq)
        logger.debug(
            "Published %d features for %s", len(collection.features), bounds.as_dict()
        )
        return collection
