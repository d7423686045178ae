"""
Renderer seam.

The map renderer is an external collaborator.  The engine talks to it
only through :class:`RenderSink`: declare a GeoJSON source, declare
layers, replace a source's contents wholesale, and show the mark-mode
affordance.  ``set_data`` always receives a complete collection; there
is no incremental patch.
"""

from __future__ import annotations

from typing import Any, Protocol

from heatsight.schemas.sighting import FeatureCollection


class RenderSink(Protocol):
    def has_source(self, name: str) -> bool: ...

    async def add_source(self, name: str, data: FeatureCollection) -> None: ...

    async def add_layer(self, layer: dict[str, Any]) -> None: ...

    async def set_data(self, name: str, data: FeatureCollection) -> None: ...

    async def set_mark_mode(self, active: bool) -> None: ...


class InMemoryRenderSink:
    """Keeps the latest renderer state in memory."""

    def __init__(self) -> None:
        self.sources: dict[str, FeatureCollection] = {}
        self.layers: list[dict[str, Any]] = []
        self.mark_mode = False
        self.set_data_calls = 0

    def has_source(self, name: str) -> bool:
        return name in self.sources

    async def add_source(self, name: str, data: FeatureCollection) -> None:
        if name in self.sources:
            raise ValueError(f"Source {name!r} already exists")
        self.sources[name] = data

    async def add_layer(self, layer: dict[str, Any]) -> None:
        if any(existing["id"] == layer["id"] for existing in self.layers):
            raise ValueError(f"Layer {layer['id']!r} already exists")
        self.layers.append(layer)

    async def set_data(self, name: str, data: FeatureCollection) -> None:
        if name not in self.sources:
            raise KeyError(name)
        self.sources[name] = data
        self.set_data_calls += 1

    async def set_mark_mode(self, active: bool) -> None:
        self.mark_mode = active
