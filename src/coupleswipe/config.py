"""
Configuration management for CoupleSwipe.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Config:
    """Configuration settings loaded from environment."""

    # TMDB (Candidate Source)
    TMDB_API_TOKEN: str = os.getenv('TMDB_API_TOKEN', '')
    TMDB_BASE_URL: str = os.getenv('TMDB_BASE_URL', 'https://api.themoviedb.org/3')
    TMDB_IMAGE_BASE: str = os.getenv('TMDB_IMAGE_BASE', 'https://image.tmdb.org/t/p/w780')
    TMDB_TIMEOUT_SECONDS: float = float(os.getenv('TMDB_TIMEOUT_SECONDS', '10'))
    TMDB_RATE_LIMIT_ATTEMPTS: int = int(os.getenv('TMDB_RATE_LIMIT_ATTEMPTS', '5'))

    # Persisted local state
    STATE_FILE: str = os.getenv(
        'COUPLESWIPE_STATE_FILE', str(Path.home() / '.coupleswipe' / 'state.json')
    )

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        The token may also come from the settings store, so a missing value here
        only matters once a network action is attempted.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.TMDB_API_TOKEN:
            missing.append('TMDB_API_TOKEN')
        return missing


# Singleton config instance
config = Config()
