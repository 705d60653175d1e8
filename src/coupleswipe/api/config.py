"""Configuration for the CoupleSwipe API service."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    # Auth
    SERVICE_API_KEY: str

    # TMDB; may be left empty and supplied later through the settings store
    TMDB_API_TOKEN: str = ""
    TMDB_TIMEOUT_SECONDS: float = Field(default=10, ge=1, le=60)

    # Persisted local state
    COUPLESWIPE_STATE_FILE: str = str(Path.home() / ".coupleswipe" / "state.json")


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
