"""
WebSocket-backed :class:`~heatsight.render.sink.RenderSink`.

Every renderer call becomes one JSON message to the browser:

- ``{"type": "add_source", "source": ..., "data": <FeatureCollection>}``
- ``{"type": "add_layer", "layer": <layer spec>}``
- ``{"type": "set_data", "source": ..., "data": <FeatureCollection>}``
- ``{"type": "mark_mode", "active": bool, "cursor": "crosshair" | ""}``
"""

from __future__ import annotations

from typing import Any

from fastapi import WebSocket

from heatsight.schemas.sighting import FeatureCollection

MARK_MODE_CURSOR = "crosshair"


def _payload(data: FeatureCollection) -> dict[str, Any]:
    """GeoJSON as the renderer expects it (camelCase property names)."""
    return data.model_dump(mode="json", by_alias=True)


class WebSocketRenderSink:
    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self._sources: set[str] = set()

    def has_source(self, name: str) -> bool:
        return name in self._sources

    async def add_source(self, name: str, data: FeatureCollection) -> None:
        self._sources.add(name)
        await self._ws.send_json(
            {"type": "add_source", "source": name, "data": _payload(data)}
        )

    async def add_layer(self, layer: dict[str, Any]) -> None:
        await self._ws.send_json({"type": "add_layer", "layer": layer})

    async def set_data(self, name: str, data: FeatureCollection) -> None:
        if name not in self._sources:
            raise KeyError(name)
        await self._ws.send_json(
            {"type": "set_data", "source": name, "data": _payload(data)}
        )

    async def set_mark_mode(self, active: bool) -> None:
        await self._ws.send_json(
            {
                "type": "mark_mode",
                "active": active,
                "cursor": MARK_MODE_CURSOR if active else "",
            }
        )

    async def send_error(self, message: str) -> None:
        await self._ws.send_json({"type": "error", "message": message})
