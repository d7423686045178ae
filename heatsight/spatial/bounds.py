"""
Viewport Bounds
===============
Axis-aligned lon/lat rectangle describing the visible map area.

Bounds are transient: they are never stored, only compared with the
threshold rule in :meth:`ViewportBounds.approx_equals` so that
sub-threshold panning does not trigger a fetch storm.

Antimeridian-crossing viewports (``west > east``) are not supported;
renderer world copies that spill past ±180° are clamped instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from heatsight.errors import InvalidBounds, InvalidSubmission

LNG_MIN, LNG_MAX = -180.0, 180.0
LAT_MIN, LAT_MAX = -90.0, 90.0


def validate_coordinates(lng: float, lat: float) -> tuple[float, float]:
    """Return ``(lng, lat)`` as floats or raise :class:`InvalidSubmission`."""
    try:
        lng_f, lat_f = float(lng), float(lat)
    except (TypeError, ValueError) as exc:
        raise InvalidSubmission(f"Coordinates are not numeric: {lng!r}, {lat!r}") from exc

    if not (math.isfinite(lng_f) and math.isfinite(lat_f)):
        raise InvalidSubmission(f"Coordinates must be finite: {lng_f}, {lat_f}")
    if not LNG_MIN <= lng_f <= LNG_MAX:
        raise InvalidSubmission(f"Longitude {lng_f} outside [{LNG_MIN}, {LNG_MAX}]")
    if not LAT_MIN <= lat_f <= LAT_MAX:
        raise InvalidSubmission(f"Latitude {lat_f} outside [{LAT_MIN}, {LAT_MAX}]")
    return lng_f, lat_f


@dataclass(frozen=True, slots=True)
class ViewportBounds:
    """A rectangle in WGS84 degrees."""

    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        edges = (self.west, self.south, self.east, self.north)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in edges):
            raise InvalidBounds(f"Bounds edges must be finite numbers: {edges}")
        if self.west > self.east:
            raise InvalidBounds(
                f"west ({self.west}) > east ({self.east}); antimeridian "
                "crossing is not supported"
            )
        if self.south > self.north:
            raise InvalidBounds(f"south ({self.south}) > north ({self.north})")

    @classmethod
    def from_mapping(cls, data: dict) -> "ViewportBounds":
        """Build bounds from a ``{west, south, east, north}`` mapping."""
        try:
            edges = {k: float(data[k]) for k in ("west", "south", "east", "north")}
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidBounds(f"Malformed bounds payload: {data!r}") from exc
        return cls(**edges)

    # ── Comparison ────────────────────────────────────────────

    def approx_equals(self, other: "ViewportBounds", threshold: float) -> bool:
        """True iff every edge differs from ``other``'s by less than ``threshold``."""
        return (
            abs(self.west - other.west) < threshold
            and abs(self.south - other.south) < threshold
            and abs(self.east - other.east) < threshold
            and abs(self.north - other.north) < threshold
        )

    # ── Conversion ──────────────────────────────────────────────

    def clamped(self) -> "ViewportBounds":
        """Clamp edges to the valid lon/lat ranges."""
        return ViewportBounds(
            west=min(max(self.west, LNG_MIN), LNG_MAX),
            south=min(max(self.south, LAT_MIN), LAT_MAX),
            east=min(max(self.east, LNG_MIN), LNG_MAX),
            north=min(max(self.north, LAT_MIN), LAT_MAX),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "west": self.west,
            "south": self.south,
            "east": self.east,
            "north": self.north,
        }
