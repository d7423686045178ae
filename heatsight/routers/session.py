"""
Renderer Session (WebSocket)
============================
Each connection gets its own :class:`SightingEngine`.  The browser
forwards map events as JSON messages; the engine answers through a
:class:`WebSocketRenderSink`.

Client → server:
    - ``{"type": "load", "container"?: bool, "geolocation"?: bool, "bounds"?: {...}}``
      (flags default to true and must be JSON booleans)
    - ``{"type": "viewport", "bounds": {west, south, east, north}}``
    - ``{"type": "geolocate", "bounds": {...}}``
    - ``{"type": "click", "lng": float, "lat": float}``
    - ``{"type": "toggle"}``
    - ``{"type": "identity", "owner_id": str | null}``
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from heatsight.config import get_settings
from heatsight.models.database import async_session_factory
from heatsight.render.websocket import WebSocketRenderSink
from heatsight.services.engine import SightingEngine
from heatsight.services.store import SessionPointStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Session"])
settings = get_settings()


async def dispatch(
    engine: SightingEngine,
    sink: WebSocketRenderSink,
    message: Any,
) -> None:
    """Route one decoded client message to the engine."""
    kind = message.get("type") if isinstance(message, dict) else None

    if kind == "load":
        flags = {key: message.get(key, True) for key in ("container", "geolocation")}
        invalid = [key for key, value in flags.items() if not isinstance(value, bool)]
        if invalid:
            await sink.send_error(f"Expected a boolean for: {', '.join(invalid)}")
            return
        result = await engine.on_load(
            has_container=flags["container"],
            geolocation_available=flags["geolocation"],
            bounds=message.get("bounds"),
        )
        if not result.ok:
            await sink.send_error(f"Initialization failed: {result.error.value}")
    elif kind == "viewport":
        if not engine.on_viewport_change(message.get("bounds")):
            await sink.send_error("Invalid viewport bounds")
    elif kind == "geolocate":
        await engine.on_geolocate(message.get("bounds"))
    elif kind == "click":
        await engine.on_click(message.get("lng"), message.get("lat"))
    elif kind == "toggle":
        await engine.toggle_mark_mode()
    elif kind == "identity":
        engine.set_owner(message.get("owner_id"))
    else:
        await sink.send_error(f"Unknown message type: {kind!r}")


@router.websocket("/session")
async def renderer_session(websocket: WebSocket):
    await websocket.accept()
    sink = WebSocketRenderSink(websocket)
    engine = SightingEngine(
        SessionPointStore(async_session_factory, max_results=settings.max_results),
        sink,
        settings=settings,
    )
    logger.info("Renderer session opened")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await sink.send_error("Malformed JSON message")
                continue
            await dispatch(engine, sink, message)
    except WebSocketDisconnect:
        logger.info("Renderer session closed")
    finally:
        await engine.close()
