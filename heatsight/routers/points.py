"""
Point Endpoints
===============
Viewport fetch (with age decay), submission and owner-scoped bulk
deletion of sighting points.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from heatsight.config import get_settings
from heatsight.errors import InvalidBounds
from heatsight.models.database import get_db
from heatsight.schemas.sighting import (
    DeletePointsResponse,
    FeatureCollection,
    PointCreate,
    PointOut,
)
from heatsight.services.store import PointRepository
from heatsight.services.transform import build_feature_collection, utcnow
from heatsight.spatial.bounds import ViewportBounds
from heatsight.spatial.decay import DecayParams

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/points", tags=["Points"])
settings = get_settings()


# ── Viewport points (decayed GeoJSON) ─────────────────────────────
@router.get("", response_model=FeatureCollection)
async def points_in_viewport(
    west: float = Query(..., description="Western edge (degrees)"),
    south: float = Query(..., description="Southern edge (degrees)"),
    east: float = Query(..., description="Eastern edge (degrees)"),
    north: float = Query(..., description="Northern edge (degrees)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Return every point inside the viewport as a GeoJSON
    FeatureCollection, newest first, each carrying its decayed weight.
    """
    try:
        bounds = ViewportBounds(west=west, south=south, east=east, north=north)
    except InvalidBounds as exc:
        raise HTTPException(422, str(exc))

    try:
        points = await PointRepository(db).query_in_bounds(bounds, settings.max_results)
    except SQLAlchemyError as exc:
        logger.error("Point query failed: %s", exc)
        raise HTTPException(503, "Point store unavailable")

    return build_feature_collection(
        points,
        now=utcnow(),
        params=DecayParams.from_settings(settings),
    )


# ── Submit a point ────────────────────────────────────────────────
@router.post("", response_model=PointOut, status_code=201)
async def create_point(
    req: PointCreate,
    db: AsyncSession = Depends(get_db),
):
    """Store a new sighting; the store assigns ``id`` and ``created_at``."""
    owner_id = req.owner_id or settings.anonymous_owner_id
    try:
        return await PointRepository(db).insert(req.lng, req.lat, owner_id)
    except SQLAlchemyError as exc:
        logger.error("Point insert failed: %s", exc)
        raise HTTPException(503, "Point store unavailable")


# ── Delete all points of an owner ─────────────────────────────────
@router.delete("/owner/{owner_id}", response_model=DeletePointsResponse)
async def delete_owner_points(
    owner_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Bulk-delete every sighting submitted by ``owner_id``."""
    try:
        deleted = await PointRepository(db).delete_by_owner(owner_id)
    except SQLAlchemyError as exc:
        logger.error("Point delete failed: %s", exc)
        raise HTTPException(503, "Point store unavailable")

    return DeletePointsResponse(owner_id=owner_id, deleted=deleted)
