"""
TMDB client for CoupleSwipe (the Candidate Source).

Handles:
- Bearer-authenticated JSON requests over httpx
- Rate-limit retry with randomized backoff (tenacity)
- Schema validation of every response before it leaves the client
"""

from typing import Any, TypeVar
from urllib.parse import quote_plus

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)
from tenacity.wait import wait_base

from ..config import config
from ..errors import (
    CandidateSourceError,
    ConfigurationError,
    RateLimitError,
    RetryableFetchError,
    wrap_http_error,
)
from ..logging import get_logger
from ..models.candidate import (
    CandidateDetail,
    DiscoverPage,
    Genre,
    GenreList,
    Video,
    VideoList,
    select_trailer,
)
from ..models.preferences import Preferences

logger = get_logger(__name__)

T = TypeVar('T', bound=BaseModel)

TMDB_SITE_URL = 'https://www.themoviedb.org/movie'
YOUTUBE_WATCH_URL = 'https://www.youtube.com/watch?v='
YOUTUBE_SEARCH_URL = 'https://www.youtube.com/results?search_query='


def trailer_url(key: str | None, title: str) -> str:
    """YouTube link for a trailer key, or a trailer search when there is no key."""
    if key:
        return f"{YOUTUBE_WATCH_URL}{key}"
    return f"{YOUTUBE_SEARCH_URL}{quote_plus(f'{title} trailer'.strip())}"


def candidate_page_url(candidate_id: int) -> str:
    """Public TMDB page for a title."""
    return f"{TMDB_SITE_URL}/{candidate_id}"


def _log_rate_limited(retry_state: RetryCallState) -> None:
    logger.warning('tmdb.rate_limited', attempt=retry_state.attempt_number)


class TMDBClient:
    """
    Async client for the movie metadata API.

    Configuration via environment variables (see Config):
    - TMDB_API_TOKEN: Bearer token (may also be supplied later with set_token)
    - TMDB_BASE_URL: API root (default: https://api.themoviedb.org/3)
    - TMDB_IMAGE_BASE: Poster image root
    - TMDB_TIMEOUT_SECONDS: Per-request timeout
    - TMDB_RATE_LIMIT_ATTEMPTS: Attempts per request while rate limited
    """

    def __init__(
        self,
        api_token: str | None = None,
        base_url: str | None = None,
        image_base: str | None = None,
        timeout: float | None = None,
        max_rate_limit_attempts: int | None = None,
        rate_limit_wait: wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the TMDB client.

        Args:
            api_token: Bearer token (defaults to TMDB_API_TOKEN)
            base_url: API root (defaults to TMDB_BASE_URL)
            image_base: Poster root (defaults to TMDB_IMAGE_BASE)
            timeout: Request timeout in seconds (defaults to TMDB_TIMEOUT_SECONDS)
            max_rate_limit_attempts: Attempts before giving up on 429s
            rate_limit_wait: tenacity wait strategy between 429 retries
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_token = api_token if api_token is not None else config.TMDB_API_TOKEN
        self.base_url = base_url or config.TMDB_BASE_URL
        self.image_base = image_base or config.TMDB_IMAGE_BASE
        self.timeout = timeout or config.TMDB_TIMEOUT_SECONDS
        self.max_rate_limit_attempts = max_rate_limit_attempts or config.TMDB_RATE_LIMIT_ATTEMPTS
        self.rate_limit_wait = rate_limit_wait or wait_random(min=0.8, max=1.4)

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    @property
    def has_token(self) -> bool:
        return bool(self.api_token)

    def set_token(self, api_token: str) -> None:
        """Swap the credential used for subsequent requests."""
        self.api_token = api_token.strip()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(self, path: str, params: dict[str, Any] | None) -> Any:
        try:
            response = await self._client.get(
                path,
                params=params,
                headers={
                    'Authorization': f"Bearer {self.api_token}",
                    'Accept': 'application/json',
                },
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise wrap_http_error(e, context={'path': path}) from e

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self.api_token:
            raise ConfigurationError(
                'Please provide your TMDB API token.', context={'path': path}
            )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_rate_limit_attempts),
                wait=self.rate_limit_wait,
                retry=retry_if_exception_type(RateLimitError),
                before_sleep=_log_rate_limited,
                reraise=True,
            ):
                with attempt:
                    return await self._request(path, params)
        except RateLimitError as e:
            raise RetryableFetchError(
                'TMDB is rate limiting. Try again shortly.',
                context={**e.context, 'attempts': self.max_rate_limit_attempts},
            ) from e

    def _parse(self, model: type[T], data: Any, path: str) -> T:
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise wrap_http_error(e, context={'path': path}) from e

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def discover_candidates(self, preferences: Preferences, page: int = 1) -> DiscoverPage:
        """
        Fetch one page of candidates matching the discovery filters.

        Args:
            preferences: Region, providers, monetization, sort order and vote floor
            page: 1-based page number

        Returns:
            Validated DiscoverPage
        """
        path = '/discover/movie'
        data = await self._get_json(path, preferences.discover_params(page))
        return self._parse(DiscoverPage, data, path)

    async def get_candidate_detail(self, candidate_id: int, language: str = 'en-GB') -> CandidateDetail:
        path = f"/movie/{candidate_id}"
        data = await self._get_json(path, {'language': language})
        return self._parse(CandidateDetail, data, path)

    async def get_candidate_videos(self, candidate_id: int, language: str = 'en-GB') -> list[Video]:
        path = f"/movie/{candidate_id}/videos"
        data = await self._get_json(path, {'language': language})
        return self._parse(VideoList, data, path).results

    async def get_category_list(self, language: str = 'en-GB') -> list[Genre]:
        path = '/genre/movie/list'
        data = await self._get_json(path, {'language': language})
        return self._parse(GenreList, data, path).genres

    async def find_trailer_key(self, candidate_id: int, language: str = 'en-GB') -> str | None:
        """
        YouTube key of the first trailer or teaser.

        Any Candidate Source failure counts as "no trailer".
        """
        try:
            videos = await self.get_candidate_videos(candidate_id, language)
        except CandidateSourceError as e:
            logger.info('tmdb.trailer_unavailable', candidate_id=candidate_id, error=str(e))
            return None
        trailer = select_trailer(videos)
        return trailer.key if trailer else None

    async def verify_connectivity(self) -> None:
        """Raise if the API is unreachable or the token is rejected."""
        await self._get_json('/configuration')

    async def close(self) -> None:
        await self._client.aclose()
