"""
Layer Specification Builder
===========================
Builds the heatmap and circle layer declarations (MapLibre style-spec
expressions) for the sighting source.

The builder is pure: identical arguments always produce structurally
identical, freshly allocated dicts, so callers may cache, diff or
mutate the result freely.

Zoom behaviour, relative to ``reference_zoom`` (``z``):

- heatmap intensity ramps from 1× at ``z`` to 3× at ``z + 4``;
- heatmap opacity fades from 1 at ``z`` to 0 at ``z + 2``;
- circle stroke and opacity ramp in over the same ``z → z + 2`` band,
  so markers take over as the heatmap fades out.
"""

from __future__ import annotations

import math
from typing import Any

# Density ramp: transparent at 0 for a blur-like edge, then blue → red.
TRANSPARENT_STOP = "rgba(33,102,172,0)"
COLOR_RAMP: tuple[str, ...] = (
    "rgb(103,169,207)",
    "rgb(209,229,240)",
    "rgb(253,219,199)",
    "rgb(239,138,98)",
    "rgb(178,24,43)",
)

# (zoom, radius px) for the heatmap kernel.
HEATMAP_RADIUS_STOPS: tuple[tuple[float, float], ...] = ((1, 2), (8, 4), (13, 8))

# Circle radius (px) for (low weight, high weight) at each zoom breakpoint.
CIRCLE_RADIUS_LOW_ZOOM = (2.0, 4.0)
CIRCLE_RADIUS_HIGH_ZOOM = (3.0, 6.0)

HANDOFF_BAND = 2.0
INTENSITY_BAND = 4.0


def _ramp_stops(domain_max: float) -> list[Any]:
    """Flattened ``[0, transparent, d1, c1, …, domain_max, c5]`` stops."""
    stops: list[Any] = [0, TRANSPARENT_STOP]
    n = len(COLOR_RAMP)
    for i, color in enumerate(COLOR_RAMP, start=1):
        stops.extend([domain_max * i / n, color])
    return stops


def _check_magnitude(max_magnitude: float) -> None:
    if not (isinstance(max_magnitude, (int, float)) and math.isfinite(max_magnitude)):
        raise ValueError(f"max_magnitude must be a finite number, got {max_magnitude!r}")
    if max_magnitude <= 0:
        raise ValueError(f"max_magnitude must be > 0, got {max_magnitude}")


def _heatmap_radius() -> list[Any]:
    expr: list[Any] = ["interpolate", ["linear"], ["zoom"]]
    for zoom, radius in HEATMAP_RADIUS_STOPS:
        expr.extend([zoom, radius])
    return expr


def build_heatmap_layer(
    source_name: str,
    max_magnitude: float,
    reference_zoom: float,
) -> dict[str, Any]:
    _check_magnitude(max_magnitude)
    z = reference_zoom

    return {
        "id": f"{source_name}-heat",
        "type": "heatmap",
        "source": source_name,
        "paint": {
            "heatmap-weight": [
                "interpolate", ["linear"], ["get", "weight"],
                0, 0,
                max_magnitude, 1,
            ],
            "heatmap-intensity": [
                "interpolate", ["linear"], ["zoom"],
                z, 1,
                z + INTENSITY_BAND, 3,
            ],
            "heatmap-color": [
                "interpolate", ["linear"], ["heatmap-density"],
                *_ramp_stops(1),
            ],
            "heatmap-radius": _heatmap_radius(),
            "heatmap-opacity": [
                "interpolate", ["linear"], ["zoom"],
                z, 1,
                z + HANDOFF_BAND, 0,
            ],
        },
    }


def _weight_radius(max_magnitude: float, small: float, large: float) -> list[Any]:
    return ["interpolate", ["linear"], ["get", "weight"], 0, small, max_magnitude, large]


def build_circle_layer(
    source_name: str,
    max_magnitude: float,
    reference_zoom: float,
    min_zoom_for_circles: float,
) -> dict[str, Any]:
    _check_magnitude(max_magnitude)
    z = reference_zoom
    low_zoom = max(0.0, z - 3)
    high_zoom = z + HANDOFF_BAND

    return {
        "id": f"{source_name}-point",
        "type": "circle",
        "source": source_name,
        "minzoom": min_zoom_for_circles,
        "paint": {
            # Bivariate: zoom picks the breakpoint, weight picks the size.
            "circle-radius": [
                "interpolate", ["linear"], ["zoom"],
                low_zoom, _weight_radius(max_magnitude, *CIRCLE_RADIUS_LOW_ZOOM),
                high_zoom, _weight_radius(max_magnitude, *CIRCLE_RADIUS_HIGH_ZOOM),
            ],
            "circle-color": [
                "interpolate", ["linear"], ["get", "weight"],
                *_ramp_stops(max_magnitude),
            ],
            "circle-stroke-color": "white",
            "circle-stroke-width": [
                "interpolate", ["linear"], ["zoom"],
                z, 0,
                z + HANDOFF_BAND, 2.5,
            ],
            "circle-opacity": [
                "interpolate", ["linear"], ["zoom"],
                z, 0.5,
                z + HANDOFF_BAND, 1,
            ],
        },
    }


def build_layers(
    source_name: str,
    max_magnitude: float,
    reference_zoom: float,
    min_zoom_for_circles: float,
) -> list[dict[str, Any]]:
    """Heatmap then circle layer, in declaration order."""
    return [
        build_heatmap_layer(source_name, max_magnitude, reference_zoom),
        build_circle_layer(source_name, max_magnitude, reference_zoom, min_zoom_for_circles),
    ]
