"""
Deck building.

Pulls discover pages in order until enough fresh candidates are collected:
excluded ids and duplicates are skipped, and the walk stops at the target size,
the last page, or an empty page. Coming up short is a valid outcome, reported
through ``DeckResult.exhausted`` rather than an exception.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from ..clients.tmdb_client import TMDBClient
from ..logging import get_logger, log_duration
from ..models.candidate import Candidate
from ..models.preferences import Preferences

logger = get_logger(__name__)


@dataclass
class DeckResult:
    """Result of a deck build."""

    cohort: tuple[Candidate, ...]
    target_size: int
    pages_fetched: int = 0
    exhausted: bool = False

    @property
    def short_by(self) -> int:
        return max(0, self.target_size - len(self.cohort))


class DeckBuilder:
    """
    Builds a cohort from the Candidate Source.

    Usage:
        builder = DeckBuilder(client)
        result = await builder.build_deck(10, excluded_ids, preferences)
    """

    def __init__(self, client: TMDBClient):
        self.client = client

    async def build_deck(
        self,
        target_size: int,
        exclusion_set: Iterable[int],
        preferences: Preferences,
    ) -> DeckResult:
        """
        Collect up to ``target_size`` fresh candidates.

        Args:
            target_size: Number of candidates wanted
            exclusion_set: Ids never to offer again (not modified)
            preferences: Discovery filters

        Returns:
            DeckResult with at most target_size candidates

        Raises:
            ConfigurationError: No API credential
            RetryableFetchError: Rate-limit retries exhausted
            TransportError: Any other Candidate Source failure
        """
        excluded = frozenset(exclusion_set)
        collected: list[Candidate] = []
        seen: set[int] = set()
        page = 0
        exhausted = False

        with log_duration(logger, 'deck.built', target_size=target_size, excluded=len(excluded)) as summary:
            while len(collected) < target_size:
                page += 1
                result = await self.client.discover_candidates(preferences, page)

                for entry in result.results:
                    if entry.id in excluded or entry.id in seen:
                        continue
                    seen.add(entry.id)
                    collected.append(entry.to_candidate(self.client.image_base))
                    if len(collected) >= target_size:
                        break

                logger.debug(
                    'deck.page_fetched',
                    page=page,
                    total_pages=result.total_pages,
                    returned=len(result.results),
                    collected=len(collected),
                )

                if len(collected) < target_size and (page >= result.total_pages or not result.results):
                    exhausted = True
                    break

            summary.update(size=len(collected), pages_fetched=page, exhausted=exhausted)

        return DeckResult(
            cohort=tuple(collected),
            target_size=target_size,
            pages_fetched=page,
            exhausted=exhausted,
        )
