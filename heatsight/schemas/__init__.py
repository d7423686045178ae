"""Schemas subpackage — Pydantic request/response models."""

from heatsight.schemas.sighting import (
    DeletePointsResponse,
    FeatureCollection,
    FeatureProperties,
    MapConfigOut,
    PointCreate,
    PointGeometry,
    PointOut,
    RenderFeature,
)

__all__ = [
    "DeletePointsResponse",
    "FeatureCollection",
    "FeatureProperties",
    "MapConfigOut",
    "PointCreate",
    "PointGeometry",
    "PointOut",
    "RenderFeature",
]
