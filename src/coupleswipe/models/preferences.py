"""
Users, display names and discovery preferences.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

MIN_DECK_SIZE = 4
MAX_DECK_SIZE = 200


class User(str, Enum):
    """The two people sharing the device."""

    YOU = 'You'
    PARTNER = 'Partner'

    @property
    def other(self) -> 'User':
        return User.PARTNER if self is User.YOU else User.YOU


class DisplayNames(BaseModel):
    """Names shown for each user. Blank until entered on the welcome screen."""

    you: str = ''
    partner: str = ''

    @property
    def both_provided(self) -> bool:
        return bool(self.you.strip()) and bool(self.partner.strip())

    def name_for(self, user: User) -> str:
        return self.you if user is User.YOU else self.partner


def clamp_deck_size(value: int) -> int:
    return max(MIN_DECK_SIZE, min(MAX_DECK_SIZE, value))


class Preferences(BaseModel):
    """
    Discovery filters and deck size.

    Defaults match a UK household streaming on Netflix and Prime Video.
    """

    region: str = Field(default='GB', description='watch_region')
    monetization: str = Field(
        default='flatrate',
        description='"flatrate", "rent|buy" or "flatrate|rent|buy"',
    )
    provider_ids: list[int] = Field(default_factory=lambda: [8, 9])
    min_vote_count: int = Field(default=50)
    language: str = Field(default='en-GB')
    sort_by: str = Field(default='popularity.desc')
    target_count: int = Field(default=10)

    @field_validator('region', mode='before')
    @classmethod
    def _upper_region(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator('min_vote_count', mode='after')
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator('target_count', mode='before')
    @classmethod
    def _clamp_target(cls, value: Any) -> Any:
        try:
            return clamp_deck_size(int(value))
        except (TypeError, ValueError):
            return 10

    def discover_params(self, page: int) -> dict[str, str | int]:
        """Query parameters for the discover endpoint."""
        return {
            'watch_region': self.region,
            'include_adult': 'false',
            'sort_by': self.sort_by,
            'page': page,
            'with_watch_providers': '|'.join(str(p) for p in self.provider_ids),
            'with_watch_monetization_types': self.monetization,
            'vote_count.gte': self.min_vote_count,
        }
