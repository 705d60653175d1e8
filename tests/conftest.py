"""
Pytest configuration and shared fixtures.

Key fixtures:
- make_candidate / cohort: Candidate factories
- you_first_rng / partner_first_rng: deterministic random sources
- memory_store: empty in-process settings store
- mock_client: TMDBClient stand-in with AsyncMock endpoints

No test talks to the real TMDB API; HTTP is faked with httpx.MockTransport.
"""

import random
import sys
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from coupleswipe.models.candidate import Candidate
from coupleswipe.store.settings_store import MemoryStore

IMAGE_BASE = 'https://image.tmdb.org/t/p/w780'


class FixedRandom(random.Random):
    """Random source whose coin flip is fixed and whose choice takes the first item."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    """Factory for Candidate instances."""

    def _make(candidate_id: int, title: str | None = None) -> Candidate:
        return Candidate(
            id=candidate_id,
            title=title or f"Movie {candidate_id}",
            synopsis=f"Synopsis {candidate_id}",
            year='2021',
            poster_url=f"{IMAGE_BASE}/p{candidate_id}.jpg",
        )

    return _make


@pytest.fixture
def cohort(make_candidate) -> tuple[Candidate, ...]:
    """Four-title cohort with ids 1..4."""
    return tuple(make_candidate(i) for i in (1, 2, 3, 4))


@pytest.fixture
def you_first_rng() -> random.Random:
    """Coin flip lands on You; the winner pick takes the first agreed id."""
    return FixedRandom(0.1)


@pytest.fixture
def partner_first_rng() -> random.Random:
    """Coin flip lands on Partner."""
    return FixedRandom(0.9)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def mock_client() -> MagicMock:
    """TMDBClient stand-in; endpoints are AsyncMocks the test configures."""
    client = MagicMock()
    client.has_token = True
    client.image_base = IMAGE_BASE
    client.discover_candidates = AsyncMock()
    client.get_candidate_detail = AsyncMock()
    client.get_candidate_videos = AsyncMock(return_value=[])
    client.get_category_list = AsyncMock(return_value=[])
    client.find_trailer_key = AsyncMock(return_value=None)
    client.verify_connectivity = AsyncMock(return_value=None)
    return client
