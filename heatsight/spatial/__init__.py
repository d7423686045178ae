"""Spatial subpackage — viewport bounds and age decay."""

from heatsight.spatial.bounds import ViewportBounds, validate_coordinates
from heatsight.spatial.decay import DecayParams, decay_weight, decay_weights

__all__ = [
    "DecayParams",
    "ViewportBounds",
    "decay_weight",
    "decay_weights",
    "validate_coordinates",
]
