"""
Tests for heatsight.main — create_app, health endpoint and lifespan.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from heatsight.main import create_app


# ═══════════════════════════════════════════════════════════════════
# create_app
# ═══════════════════════════════════════════════════════════════════
class TestCreateApp:
    def test_returns_fastapi_instance(self):
        app = create_app()
        assert isinstance(app, FastAPI)

    def test_app_title(self):
        app = create_app()
        assert app.title == "Heatsight"

    def test_app_version(self):
        app = create_app()
        assert app.version == "0.1.0"

    def test_routes_registered(self):
        app = create_app()
        paths = [r.path for r in app.routes]
        assert "/api/points" in paths
        assert "/api/points/owner/{owner_id}" in paths
        assert "/api/map/config" in paths
        assert "/api/map/layers" in paths
        assert "/api/session" in paths
        assert "/health" in paths


# ═══════════════════════════════════════════════════════════════════
# Health endpoint (no lifespan needed)
# ═══════════════════════════════════════════════════════════════════
class TestHealthEndpoint:
    """Test /health without triggering lifespan."""

    @pytest.fixture()
    def client(self):
        app = create_app()

        @asynccontextmanager
        async def noop_lifespan(app):
            yield

        app.router.lifespan_context = noop_lifespan
        return TestClient(app)

    def test_health_returns_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "Heatsight"

    def test_cors_preflight(self, client):
        resp = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"


# ═══════════════════════════════════════════════════════════════════
# Lifespan
# ═══════════════════════════════════════════════════════════════════
class TestLifespan:
    """Test the lifespan function with a mocked DB engine."""

    def _make_mock_db_engine(self):
        """Create a properly-structured mock async DB engine."""
        mock_db_engine = MagicMock()
        mock_conn = MagicMock()
        mock_result = MagicMock()
        mock_result.scalar.return_value = "3.4.2"
        mock_conn.execute = AsyncMock(return_value=mock_result)
        mock_conn.run_sync = AsyncMock()

        mock_ctx = AsyncMock()
        mock_ctx.__aenter__ = AsyncMock(return_value=mock_conn)
        mock_ctx.__aexit__ = AsyncMock(return_value=None)
        mock_db_engine.begin.return_value = mock_ctx
        mock_db_engine.dispose = AsyncMock()
        return mock_db_engine, mock_conn

    @pytest.mark.asyncio
    async def test_startup_checks_postgis_and_creates_schema(self):
        from heatsight.main import lifespan
        from heatsight.models.database import Base

        mock_db_engine, mock_conn = self._make_mock_db_engine()

        with patch("heatsight.models.database.engine", mock_db_engine):
            async with lifespan(FastAPI()):
                sql = str(mock_conn.execute.call_args[0][0])
                assert "PostGIS_Version" in sql
                mock_conn.run_sync.assert_awaited_once_with(Base.metadata.create_all)
                mock_db_engine.dispose.assert_not_awaited()

        mock_db_engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_startup_fails_without_database(self):
        from heatsight.main import lifespan

        mock_db_engine, mock_conn = self._make_mock_db_engine()
        mock_conn.execute.side_effect = OSError("connection refused")

        with patch("heatsight.models.database.engine", mock_db_engine):
            with pytest.raises(OSError):
                async with lifespan(FastAPI()):
                    pass

        mock_db_engine.dispose.assert_not_awaited()
