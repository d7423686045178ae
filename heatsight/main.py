"""
Heatsight — FastAPI Application
===============================
Viewport-synchronised sighting heatmap backed by PostGIS.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from heatsight.config import get_settings
from heatsight.routers import map, points, session

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Lifespan (startup / shutdown) ─────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Verify DB connectivity and PostGIS availability.
        - Create the ``points`` table if missing.
    Shutdown:
        - Dispose engine pool.
    """
    logger.info("Heatsight starting up...")

    from sqlalchemy import text

    from heatsight.models.database import engine as db_engine, init_models

    async with db_engine.begin() as conn:
        result = await conn.execute(text("SELECT PostGIS_Version()"))
        version = result.scalar()
        logger.info("PostGIS connected (version=%s)", version)

    # The Point model is registered on Base.metadata through the router
    # imports, so create_all sees the points table.
    await init_models()
    logger.info("Database schema verified / created.")

    yield

    await db_engine.dispose()
    logger.info("Heatsight shut down.")


# ── App factory ───────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Geolocated sightings rendered as an age-decayed heatmap, "
            "synchronised with the map viewport."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the browser map client (configurable via HEATSIGHT_CORS_ORIGINS).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(points.router, prefix="/api")
    app.include_router(map.router, prefix="/api")
    app.include_router(session.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": settings.app_name}

    return app


# ── Module-level app instance (for `uvicorn heatsight.main:app`) ──
app = create_app()  # pragma: no cover
