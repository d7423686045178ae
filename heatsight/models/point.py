"""
SQLAlchemy ORM model for sighting points.

Each row is an immutable sighting: coordinates, owner and a
store-assigned creation time.  The ``geom`` column duplicates
``lng``/``lat`` as a PostGIS POINT (SRID 4326) so that viewport queries
hit the GIST index.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from geoalchemy2 import Geometry
from sqlalchemy import CheckConstraint, DateTime, Float, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from heatsight.models.database import Base

WGS84_SRID = 4326


class Point(Base):
    __tablename__ = "points"
    __table_args__ = (
        Index("idx_points_geom_gist", "geom", postgresql_using="gist"),
        Index("idx_points_owner_id", "owner_id"),
        Index("idx_points_created_at", "created_at"),
        CheckConstraint("lng >= -180.0 AND lng <= 180.0", name="ck_points_lng_range"),
        CheckConstraint("lat >= -90.0 AND lat <= 90.0", name="ck_points_lat_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    geom = mapped_column(
        Geometry(geometry_type="POINT", srid=WGS84_SRID), nullable=False
    )
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
