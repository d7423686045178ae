"""
Point Store
===========
PostGIS-backed persistence for sighting points.

- **PointRepository** runs queries on an injected ``AsyncSession``
  (request-scoped, used by the REST routes).
- **SessionPointStore** opens one short-lived session per operation
  from a session factory (used by long-lived renderer sessions) and
  translates driver / database failures into :class:`NetworkFailure`.

Viewport queries use ``ST_Intersects`` against ``ST_MakeEnvelope`` so
that points lying exactly on a viewport edge are included, and the
GIST index on ``points.geom`` serves the lookup.
"""

from __future__ import annotations

import logging
from typing import Protocol

from geoalchemy2.functions import ST_Intersects, ST_MakeEnvelope
from geoalchemy2.shape import from_shape
from shapely.geometry import Point as ShapelyPoint
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heatsight.errors import NetworkFailure
from heatsight.models.point import WGS84_SRID, Point
from heatsight.schemas.sighting import PointOut
from heatsight.spatial.bounds import ViewportBounds, validate_coordinates

logger = logging.getLogger(__name__)


class PointStore(Protocol):
    """What the engine needs from the store."""

    async def query(self, bounds: ViewportBounds) -> list[PointOut]: ...

    async def insert(self, lng: float, lat: float, owner_id: str) -> PointOut: ...


class PointRepository:
    """
    Executes point queries against the PostGIS ``points`` table.
    All methods are async and use the injected AsyncSession.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Viewport query ────────────────────────────────────────

    async def query_in_bounds(
        self,
        bounds: ViewportBounds,
        max_results: int = 50_000,
    ) -> list[PointOut]:
        """
        Fetch all points inside ``bounds`` (edges inclusive), most
        recent first.

        Parameters
        ----------
        bounds : ViewportBounds
            Viewport rectangle; clamped to valid lon/lat before querying.
        max_results : int
            Safety cap to prevent memory exhaustion.
        """
        clamped = bounds.clamped()
        envelope = ST_MakeEnvelope(
            clamped.west, clamped.south,
            clamped.east, clamped.north,
            WGS84_SRID,
        )

        stmt = (
            select(
                Point.id,
                Point.lng,
                Point.lat,
                Point.owner_id,
                Point.created_at,
            )
            .where(ST_Intersects(envelope, Point.geom))
            .order_by(Point.created_at.desc())
            .limit(max_results)
        )

        result = await self.session.execute(stmt)
        rows = result.all()

        return [
            PointOut(
                id=row.id,
                lng=row.lng,
                lat=row.lat,
                owner_id=row.owner_id,
                created_at=row.created_at,
            )
            for row in rows
        ]

    # ── Insert ────────────────────────────────────────────────

    async def insert(self, lng: float, lat: float, owner_id: str) -> PointOut:
        """Insert one point and return it with its store-assigned fields."""
        point = Point(
            lng=lng,
            lat=lat,
            owner_id=owner_id,
            geom=from_shape(ShapelyPoint(lng, lat), srid=WGS84_SRID),
        )
        self.session.add(point)
        await self.session.flush()
        # Load server-side defaults (created_at).
        await self.session.refresh(point)
        await self.session.commit()
        return PointOut.model_validate(point)

    # ── Bulk delete ───────────────────────────────────────────

    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every point owned by ``owner_id``; returns the row count."""
        result = await self.session.execute(
            delete(Point).where(Point.owner_id == owner_id)
        )
        await self.session.commit()
        deleted = result.rowcount or 0
        logger.info("Deleted %d points for owner %s", deleted, owner_id)
        return deleted


class SessionPointStore:
    """:class:`PointStore` that opens one session per operation."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_results: int = 50_000,
    ) -> None:
        self._session_factory = session_factory
        self.max_results = max_results

    async def query(self, bounds: ViewportBounds) -> list[PointOut]:
        try:
            async with self._session_factory() as session:
                repo = PointRepository(session)
                return await repo.query_in_bounds(bounds, self.max_results)
        except (SQLAlchemyError, OSError) as exc:
            raise NetworkFailure(f"Point query failed: {exc}") from exc

    async def insert(self, lng: float, lat: float, owner_id: str) -> PointOut:
        lng, lat = validate_coordinates(lng, lat)
        try:
            async with self._session_factory() as session:
                return await PointRepository(session).insert(lng, lat, owner_id)
        except (SQLAlchemyError, OSError) as exc:
            raise NetworkFailure(f"Point insert failed: {exc}") from exc

    async def delete_by_owner(self, owner_id: str) -> int:
        try:
            async with self._session_factory() as session:
                return await PointRepository(session).delete_by_owner(owner_id)
        except (SQLAlchemyError, OSError) as exc:
            raise NetworkFailure(f"Point delete failed: {exc}") from exc
