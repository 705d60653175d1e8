"""
Tests for deck building.

The client is mocked; each test scripts the discover pages it returns.
"""

from unittest.mock import AsyncMock, patch

import pytest

from coupleswipe.deck.builder import DeckBuilder
from coupleswipe.errors import RetryableFetchError
from coupleswipe.models.candidate import DiscoverPage
from coupleswipe.models.preferences import Preferences


def _page(ids, total_pages=10, page=1) -> DiscoverPage:
    return DiscoverPage.model_validate({
        "page": page,
        "total_pages": total_pages,
        "results": [{"id": i, "title": f"Movie {i}", "poster_path": f"/p{i}.jpg"} for i in ids],
    })


class TestDeckBuilder:
    @pytest.mark.asyncio
    async def test_fills_target_from_first_page(self, mock_client):
        mock_client.discover_candidates = AsyncMock(return_value=_page(range(1, 21)))
        result = await DeckBuilder(mock_client).build_deck(5, set(), Preferences())

        assert [c.id for c in result.cohort] == [1, 2, 3, 4, 5]
        assert result.pages_fetched == 1
        assert not result.exhausted
        assert result.short_by == 0
        assert result.cohort[0].poster_url == f"{mock_client.image_base}/p1.jpg"

    @pytest.mark.asyncio
    async def test_skips_excluded_and_walks_pages(self, mock_client):
        mock_client.discover_candidates = AsyncMock(side_effect=[
            _page([1, 2, 3], total_pages=3, page=1),
            _page([4, 5, 6], total_pages=3, page=2),
        ])
        excluded = {1, 2, 4}
        result = await DeckBuilder(mock_client).build_deck(3, excluded, Preferences())

        assert [c.id for c in result.cohort] == [3, 5, 6]
        assert result.pages_fetched == 2
        assert excluded == {1, 2, 4}
        pages = [call.args[1] for call in mock_client.discover_candidates.await_args_list]
        assert pages == [1, 2]

    @pytest.mark.asyncio
    async def test_duplicates_across_pages_are_dropped(self, mock_client):
        mock_client.discover_candidates = AsyncMock(side_effect=[
            _page([1, 2], total_pages=2, page=1),
            _page([2, 3], total_pages=2, page=2),
        ])
        result = await DeckBuilder(mock_client).build_deck(4, set(), Preferences())

        assert [c.id for c in result.cohort] == [1, 2, 3]
        assert result.exhausted
        assert result.short_by == 1

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, mock_client):
        mock_client.discover_candidates = AsyncMock(side_effect=[
            _page([1], total_pages=50, page=1),
            _page([], total_pages=50, page=2),
        ])
        result = await DeckBuilder(mock_client).build_deck(10, set(), Preferences())

        assert [c.id for c in result.cohort] == [1]
        assert result.exhausted
        assert mock_client.discover_candidates.await_count == 2

    @pytest.mark.asyncio
    async def test_no_results_at_all(self, mock_client):
        mock_client.discover_candidates = AsyncMock(return_value=_page([], total_pages=1))
        result = await DeckBuilder(mock_client).build_deck(10, set(), Preferences())

        assert result.cohort == ()
        assert result.exhausted

    @pytest.mark.asyncio
    async def test_source_errors_propagate(self, mock_client):
        mock_client.discover_candidates = AsyncMock(side_effect=RetryableFetchError("slow down"))
        with pytest.raises(RetryableFetchError):
            await DeckBuilder(mock_client).build_deck(10, set(), Preferences())

    @pytest.mark.asyncio
    async def test_build_summary_logged(self, mock_client):
        mock_client.discover_candidates = AsyncMock(side_effect=[
            _page([1], total_pages=2, page=1),
            _page([2], total_pages=2, page=2),
        ])
        with patch("coupleswipe.deck.builder.logger") as log:
            result = await DeckBuilder(mock_client).build_deck(2, {9}, Preferences())

        assert result.pages_fetched == 2
        event, kwargs = log.info.call_args.args[0], log.info.call_args.kwargs
        assert event == "deck.built"
        assert kwargs["size"] == 2
        assert kwargs["pages_fetched"] == 2
        assert kwargs["excluded"] == 1
        assert kwargs["exhausted"] is False
        assert kwargs["duration_ms"] >= 0
