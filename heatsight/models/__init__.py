"""Models subpackage."""

from heatsight.models.database import Base, engine, async_session_factory, get_db, init_models
from heatsight.models.point import Point

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db",
    "init_models",
    "Point",
]
