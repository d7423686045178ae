"""Routers subpackage — HTTP and WebSocket layer."""

from heatsight.routers import map, points, session

__all__ = ["map", "points", "session"]
