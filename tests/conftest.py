"""
Shared fixtures for the Heatsight test suite.

This conftest provides:
- Sample data factories for stored points and ORM rows
- A mocked point store and an in-memory render sink
- A fixed clock and test settings with a short debounce window
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from heatsight.config import Settings
from heatsight.render.sink import InMemoryRenderSink
from heatsight.schemas.sighting import PointOut


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------
SAMPLE_POINT_ID = uuid.UUID("aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee")
SAMPLE_OWNER_ID = "user-123"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

# Dana Point, CA: the default map area.
SAMPLE_BOUNDS = {"west": -118.0, "south": 33.4, "east": -117.6, "north": 33.6}


def make_point(
    *,
    id: uuid.UUID | None = None,
    lng: float = -117.66,
    lat: float = 33.51,
    owner_id: str = SAMPLE_OWNER_ID,
    age_days: float = 0.0,
    now: datetime = NOW,
) -> PointOut:
    """Return a stored point created ``age_days`` before ``now``."""
    return PointOut(
        id=id or uuid.uuid4(),
        lng=lng,
        lat=lat,
        owner_id=owner_id,
        created_at=now - timedelta(days=age_days),
    )


def make_point_row(
    *,
    id: uuid.UUID | None = None,
    lng: float = -117.66,
    lat: float = 33.51,
    owner_id: str = SAMPLE_OWNER_ID,
    created_at: datetime = NOW,
) -> MagicMock:
    """Return a mock that behaves like a row from a points query."""
    row = MagicMock()
    row.id = id or SAMPLE_POINT_ID
    row.lng = lng
    row.lat = lat
    row.owner_id = owner_id
    row.created_at = created_at
    return row


def make_settings(**overrides) -> Settings:
    """Settings isolated from the host env, with a fast debounce."""
    values = {"debounce_ms": 10}
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def store() -> AsyncMock:
    """A mocked PointStore: empty viewport, inserts echo a fresh point."""
    mock = AsyncMock()
    mock.query.return_value = []

    async def _insert(lng, lat, owner_id):
        return make_point(lng=lng, lat=lat, owner_id=owner_id)

    mock.insert.side_effect = _insert
    return mock


@pytest.fixture()
def sink() -> InMemoryRenderSink:
    return InMemoryRenderSink()


@pytest.fixture()
def clock():
    return lambda: NOW
