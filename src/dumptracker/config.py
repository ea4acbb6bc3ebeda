"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_URL = "YOUR_SUPABASE_URL"
_PLACEHOLDER_KEY = "YOUR_SUPABASE_ANON_KEY"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with DUMP_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="DUMP_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    app_base_url: str = "http://localhost:5173"
    redis_url: str = ""
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Managed backend (required) ---
    supabase_url: str
    supabase_anon_key: str
    http_timeout_seconds: float = 10.0

    # --- Location data ---
    geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoding_user_agent: str = "DumpTracker/1.0 (https://github.com/dump-tracker/dump_tracker)"
    geolocation_timeout_seconds: float = 15.0

    # --- Calendar ---
    civil_timezone: str = "America/New_York"
    backdate_utc_offset_hours: int = -5

    # --- Notifications ---
    notifications_limit: int = 50

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Refuse to start with a missing or placeholder service URL."""
        v = v.strip()
        if not v or v == _PLACEHOLDER_URL or not v.startswith("http"):
            shown = f'"{v[:20]}..."' if v else "undefined"
            msg = (
                f"Invalid or missing DUMP_SUPABASE_URL. Current value: {shown}. "
                "Please set DUMP_SUPABASE_URL in your environment variables."
            )
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("supabase_anon_key")
    @classmethod
    def validate_supabase_anon_key(cls, v: str) -> str:
        """Refuse to start with a missing or placeholder API key."""
        v = v.strip()
        if not v or v == _PLACEHOLDER_KEY:
            msg = (
                "Invalid or missing DUMP_SUPABASE_ANON_KEY. "
                "Please set DUMP_SUPABASE_ANON_KEY in your environment variables."
            )
            raise ValueError(msg)
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]
