"""Services subpackage — the sighting engine and its components."""

from heatsight.services.engine import InitError, InitResult, SightingEngine
from heatsight.services.layers import build_circle_layer, build_heatmap_layer, build_layers
from heatsight.services.mark_mode import MarkMode, MarkModeMachine
from heatsight.services.store import PointRepository, PointStore, SessionPointStore
from heatsight.services.transform import FetchDecayTransform, build_feature_collection
from heatsight.services.viewport import ViewportController

__all__ = [
    "FetchDecayTransform",
    "InitError",
    "InitResult",
    "MarkMode",
    "MarkModeMachine",
    "PointRepository",
    "PointStore",
    "SessionPointStore",
    "SightingEngine",
    "ViewportController",
    "build_circle_layer",
    "build_feature_collection",
    "build_heatmap_layer",
    "build_layers",
]
