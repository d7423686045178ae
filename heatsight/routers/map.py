"""
Map Endpoints
=============
Start-up parameters and layer declarations for the renderer.
"""

from __future__ import annotations

from fastapi import APIRouter

from heatsight.config import get_settings
from heatsight.schemas.sighting import MapConfigOut
from heatsight.services.layers import build_layers

router = APIRouter(prefix="/map", tags=["Map"])
settings = get_settings()


@router.get("/config", response_model=MapConfigOut)
async def map_config():
    return MapConfigOut(
        style_url=settings.map_style_url,
        center=(settings.map_center_lng, settings.map_center_lat),
        zoom=settings.map_zoom,
        min_zoom=settings.min_map_zoom,
        max_zoom=settings.max_map_zoom,
        source_name=settings.source_name,
        max_magnitude=settings.heatmap_max_magnitude,
        debounce_ms=settings.debounce_ms,
    )


@router.get("/layers")
async def map_layers() -> list[dict]:
    """Heatmap and circle layer specs for the sighting source."""
    return build_layers(
        settings.source_name,
        settings.heatmap_max_magnitude,
        settings.map_zoom,
        settings.min_map_zoom,
    )
