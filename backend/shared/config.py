"""
Centralized configuration for the HadalHub client core.

All settings are loaded from environment variables with sensible defaults.
The backend URL and public key have no defaults: they must be provided.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "HadalHub"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Where the signed-in session is kept between runs
    session_file: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "hadalhub" / "session.json"
    )

    # Session cache (seconds)
    session_fresh_max_age: float = 120.0
    session_active_max_age: float = 300.0
    activity_window: float = 300.0
    identity_max_age: float = 600.0
    profile_max_age: float = 600.0
    validation_wait_timeout: float = 3.0
    startup_validation_timeout_ms: int = 3000

    # Session maintenance (seconds)
    background_check_interval: float = 120.0
    background_active_window: float = 1800.0
    visibility_refresh_age: float = 60.0
    connection_check_timeout: float = 5.0

    # Group lifecycle (seconds)
    group_poll_interval: float = 5.0
    countdown_tick_interval: float = 1.0
    realtime_retry_base_delay: float = 1.0
    realtime_retry_max_delay: float = 30.0
    realtime_max_retries: int = 8

    def require_backend(self) -> None:
        """
        Fail fast when the backend URL or public key is missing.

        Raises:
            ConfigurationError: naming every missing variable
        """
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationError(
                "Supabase configuration missing. "
                f"Set {' and '.join(missing)} environment variable(s).",
                code="CONFIG_MISSING",
                details={"missing": missing},
            )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
