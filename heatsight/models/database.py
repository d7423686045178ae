"""
Async SQLAlchemy engine & session factory for the PostGIS point store.

Two kinds of callers share the same ``async_session_factory``:

- REST routes receive a request-scoped session through ``get_db``.
- Renderer sessions own a long-lived ``SightingEngine`` whose store
  opens one short session per query / insert.

Neither path auto-commits; writers call ``await session.commit()``
at the end of their unit of work.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from heatsight.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=10,
    max_overflow=10,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency — yields an async DB session.

    On error the session is rolled back and the exception re-raised so
    the route's exception handling produces the HTTP response.
    """
    session = async_session_factory()
    try:
        yield session
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Database error: %s", exc, exc_info=True)
        raise
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_models() -> None:
    """
    Create all tables in ``Base.metadata`` if they do not exist yet.

    Idempotent (``CREATE TABLE IF NOT EXISTS``); must run after the
    model modules are imported.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
