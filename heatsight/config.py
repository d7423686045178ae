"""
Heatsight — Configuration via pydantic-settings.

Environment variables override defaults.  The decay constants are the
knobs that turn a sighting's age into its render weight; they are
startup parameters, never mutated at runtime.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env_path: ClassVar[str] = str(Path(__file__).resolve().parents[1] / ".env")
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        env_prefix="HEATSIGHT_",
        # Ignore unrelated environment variables (for example the
        # POSTGRES_* variables used by Docker) so loading the env_file
        # does not cause validation errors for unknown keys.
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────
    app_name: str = "Heatsight"
    debug: bool = False

    # ── Database (PostGIS) ─────────────────────────────────────────
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "heatsight"
    db_password: str = "heatsight_secret"
    db_name: str = "heatsight"

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy connection string (asyncpg driver)."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Map ────────────────────────────────────────────────────────
    map_style_url: str = "https://tiles.openfreemap.org/styles/liberty"
    map_center_lng: float = -117.6591
    map_center_lat: float = 33.5104
    # Reference zoom: the heatmap → circle handoff is anchored here.
    map_zoom: float = 11
    min_map_zoom: float = 3
    max_map_zoom: float = 21
    source_name: str = "sighting"
    heatmap_max_magnitude: float = 5.0

    # ── Decay ──────────────────────────────────────────────────────
    # weight = max(min_weight, max_weight * exp(-age_days / decay_days))
    max_weight: float = 5.0
    min_weight: float = 0.1
    decay_days: float = 30.0

    # ── Viewport synchronisation ───────────────────────────────────
    debounce_ms: int = 300
    # ~100 m at mid-latitudes.
    bounds_threshold_deg: float = 0.001
    # Safety cap on rows returned for a single viewport.
    max_results: int = 50_000
    # Tag each refresh with a sequence number and drop responses that
    # arrive after a newer one was applied.  Off = last-write-wins.
    drop_stale_responses: bool = False

    # ── Identity ───────────────────────────────────────────────────
    anonymous_owner_id: str = "anonymous"

    # ── CORS ───────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
