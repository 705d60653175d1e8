"""
Candidate Source schemas.

Responses from the movie metadata API are loosely typed: fields go missing, come
back as null, or arrive with the wrong type. These models validate and normalize
on ingress so the deck builder and state machine only ever see clean values.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TRAILER_SITE = 'YouTube'
TRAILER_TYPES = ('Trailer', 'Teaser')


def _has_valid_url(value: str | None) -> bool:
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return bool(stripped) and stripped.lower().startswith(('http://', 'https://'))


def _as_text(value: Any, default: str = '') -> str:
    """Scalars become text; None and containers become the default."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _year_of(release_date: str | None) -> str | None:
    if not release_date:
        return None
    year = str(release_date)[:4]
    return year or None


def build_poster_url(image_base: str, poster_path: str | None) -> str | None:
    """Join the image base with a poster path; None when no usable URL results."""
    if not poster_path:
        return None
    url = f"{image_base.rstrip('/')}/{poster_path.lstrip('/')}"
    return url if _has_valid_url(url) else None


class Candidate(BaseModel):
    """
    A movie offered to both users in the same order.

    Immutable once fetched; the state machine only holds it as a read-only
    reference inside the cohort.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description='Candidate Source identifier, unique within a deck')
    title: str = Field(default='Unknown title')
    synopsis: str | None = Field(default=None)
    year: str | None = Field(default=None, description='Four-digit release year')
    poster_url: str | None = Field(default=None, description='Absolute http(s) poster URL')
    genre_ids: tuple[int, ...] = Field(default=())


class DiscoverResult(BaseModel):
    """One entry of a discover page, as returned by the Candidate Source."""

    id: int
    title: str = 'Unknown title'
    overview: str = ''
    release_date: str = ''
    poster_path: str | None = None
    genre_ids: list[int] = Field(default_factory=list)

    @field_validator('title', mode='before')
    @classmethod
    def _default_title(cls, value: Any) -> str:
        return _as_text(value).strip() or 'Unknown title'

    @field_validator('overview', 'release_date', mode='before')
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator('poster_path', mode='before')
    @classmethod
    def _path_or_none(cls, value: Any) -> str | None:
        return value if isinstance(value, str) and value.strip() else None

    @field_validator('genre_ids', mode='before')
    @classmethod
    def _coerce_genres(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [g for g in value if isinstance(g, int)]

    def to_candidate(self, image_base: str) -> Candidate:
        """Normalize into the internal Candidate shape."""
        synopsis = self.overview.strip()
        return Candidate(
            id=self.id,
            title=self.title,
            synopsis=synopsis or None,
            year=_year_of(self.release_date),
            poster_url=build_poster_url(image_base, self.poster_path),
            genre_ids=tuple(self.genre_ids),
        )


class DiscoverPage(BaseModel):
    """A page of discover results plus pagination info."""

    page: int = 1
    total_pages: int = 1
    results: list[DiscoverResult] = Field(default_factory=list)

    @field_validator('total_pages', 'page', mode='before')
    @classmethod
    def _coerce_int(cls, value: Any) -> Any:
        try:
            return int(value) if value is not None else 1
        except (TypeError, ValueError):
            return 1

    @field_validator('results', mode='before')
    @classmethod
    def _drop_unusable(cls, value: Any) -> Any:
        # Entries without an integer id can never be tracked by the state machine
        if not isinstance(value, list):
            return []
        return [
            r for r in value
            if isinstance(r, dict) and isinstance(r.get('id'), int) and not isinstance(r.get('id'), bool)
        ]


class Genre(BaseModel):
    """Category tag."""

    id: int
    name: str = ''

    @field_validator('name', mode='before')
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return _as_text(value)


def _usable_genres(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [
        g for g in value
        if isinstance(g, Genre) or (isinstance(g, dict) and type(g.get('id')) is int)
    ]


class GenreList(BaseModel):
    genres: list[Genre] = Field(default_factory=list)

    @field_validator('genres', mode='before')
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return _usable_genres(value)


class CandidateDetail(BaseModel):
    """Full record for a single candidate (detail endpoint)."""

    id: int
    title: str = ''
    overview: str = ''
    tagline: str = ''
    release_date: str = ''
    poster_path: str | None = None
    runtime: int | None = None
    vote_average: float | None = None
    genres: list[Genre] = Field(default_factory=list)

    @field_validator('title', 'overview', 'tagline', 'release_date', mode='before')
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator('poster_path', mode='before')
    @classmethod
    def _path_or_none(cls, value: Any) -> str | None:
        return value if isinstance(value, str) and value.strip() else None

    @field_validator('genres', mode='before')
    @classmethod
    def _coerce_genres(cls, value: Any) -> Any:
        return _usable_genres(value)

    @field_validator('runtime', 'vote_average', mode='before')
    @classmethod
    def _number_or_none(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return None

    @property
    def year(self) -> str | None:
        return _year_of(self.release_date)

    @property
    def description(self) -> str:
        """Tagline if present, otherwise the overview."""
        return (self.tagline or self.overview or '').strip()

    def poster_url(self, image_base: str) -> str | None:
        return build_poster_url(image_base, self.poster_path)


class Video(BaseModel):
    """A video attached to a candidate (trailers, teasers, clips...)."""

    key: str = ''
    site: str = ''
    type: str = ''
    name: str = ''

    @field_validator('key', 'site', 'type', 'name', mode='before')
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class VideoList(BaseModel):
    results: list[Video] = Field(default_factory=list)

    @field_validator('results', mode='before')
    @classmethod
    def _drop_unusable(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, dict)]


def select_trailer(videos: list[Video]) -> Video | None:
    """First YouTube trailer or teaser, if any."""
    for video in videos:
        if video.site == TRAILER_SITE and video.type in TRAILER_TYPES and video.key:
            return video
    return None
