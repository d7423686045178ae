"""
Pydantic schemas for API request/response serialization and for the
GeoJSON payloads handed to the renderer.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════
# Point schemas
# ═══════════════════════════════════════════════════════════════════
class PointCreate(BaseModel):
    """A new sighting submitted by the user."""

    lng: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False, description="Longitude (degrees)")
    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False, description="Latitude (degrees)")
    owner_id: str | None = Field(
        default=None,
        description="Opaque user id; anonymous sentinel when omitted",
    )


class PointOut(BaseModel):
    """A stored sighting."""

    id: uuid.UUID
    lng: float
    lat: float
    owner_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class DeletePointsResponse(BaseModel):
    owner_id: str
    deleted: int


# ═══════════════════════════════════════════════════════════════════
# GeoJSON render payload
# ═══════════════════════════════════════════════════════════════════
class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float] = Field(description="[lng, lat]")


class FeatureProperties(BaseModel):
    id: str
    weight: float
    created_at_millis: int = Field(serialization_alias="createdAtMillis")


class RenderFeature(BaseModel):
    """A point projected for the current render pass."""

    type: Literal["Feature"] = "Feature"
    geometry: PointGeometry
    properties: FeatureProperties


class FeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[RenderFeature] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "FeatureCollection":
        return cls(features=[])


# ═══════════════════════════════════════════════════════════════════
# Map configuration (renderer start-up parameters)
# ═══════════════════════════════════════════════════════════════════
class MapConfigOut(BaseModel):
    style_url: str
    center: tuple[float, float]
    zoom: float
    min_zoom: float
    max_zoom: float
    source_name: str
    max_magnitude: float
    debounce_ms: int
