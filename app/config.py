# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 secret used to verify Supabase access tokens"
    )

    # Which Store implementation backs the services
    STORE_BACKEND: Literal["supabase", "memory"] = Field(
        default="supabase",
        description="Persistence backend: 'supabase' for production, 'memory' for local runs"
    )

    # -------------------------------------------------------------------------
    # Geocoding
    # -------------------------------------------------------------------------

    NOMINATIM_URL: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL of the Nominatim (OpenStreetMap) geocoder"
    )

    MAPBOX_TOKEN: str | None = Field(
        default=None,
        description="Mapbox access token. When unset the free Nominatim geocoder is used"
    )

    GEOCODER_USER_AGENT: str = Field(
        default="FruityApp/1.0",
        description="User-Agent header sent to geocoders (required by Nominatim)"
    )

    GEOCODE_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per geocoding call before giving up"
    )

    GEOCODE_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Linear backoff step: retry n waits n * this many seconds"
    )

    GEOCODE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0.0,
        description="HTTP timeout for a single geocoding request"
    )

    # -------------------------------------------------------------------------
    # Location Privacy
    # -------------------------------------------------------------------------

    FUZZ_OFFSET_DEGREES: float = Field(
        default=0.005,
        gt=0.0,
        le=0.1,
        description="Max offset per axis applied to public listing coordinates (~500m)"
    )

    PROPERTY_MAX_DISTANCE_METERS: float = Field(
        default=50.0,
        gt=0.0,
        description="Max distance between claimed property and live GPS reading"
    )

    PROPERTY_PROXIMITY_CHECK: bool = Field(
        default=True,
        description="Re-check GPS proximity server-side on property upsert"
    )

    # -------------------------------------------------------------------------
    # Messaging
    # -------------------------------------------------------------------------

    MESSAGE_POLL_INTERVAL_SECONDS: int = Field(
        default=5,
        ge=1,
        le=300,
        description="Polling cadence advertised to chat clients"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://fruity.app" -> ["http://localhost:3000", "https://fruity.app"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def use_mapbox(self) -> bool:
        """Mapbox is used only when a real token is configured."""
        return bool(self.MAPBOX_TOKEN) and "your_token" not in self.MAPBOX_TOKEN

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
