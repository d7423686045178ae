"""Render subpackage — the seam to the external map renderer."""

from heatsight.render.sink import InMemoryRenderSink, RenderSink
from heatsight.render.websocket import WebSocketRenderSink

__all__ = [
    "InMemoryRenderSink",
    "RenderSink",
    "WebSocketRenderSink",
]
