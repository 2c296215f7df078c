"""Application configuration: environment-driven settings via pydantic-settings.

Every setting can be overridden with a ``SCHEDULE_``-prefixed environment
variable or a ``.env`` file. ``get_settings()`` is cached: one instance per
process.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SCHEDULE_", case_sensitive=False
    )

    app_name: str = "Event Schedule Service"

    # Tracks without an explicit colour render in this one
    default_track_color: str = "#6B7280"

    # Load a sample event, speakers and sessions on startup
    seed_demo_data: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
