"""
Tests for Candidate Source schemas and preferences.
"""

import pytest
from pydantic import ValidationError

from coupleswipe.models.candidate import (
    CandidateDetail,
    DiscoverPage,
    DiscoverResult,
    GenreList,
    Video,
    VideoList,
    build_poster_url,
    select_trailer,
)
from coupleswipe.models.preferences import (
    MAX_DECK_SIZE,
    MIN_DECK_SIZE,
    DisplayNames,
    Preferences,
    User,
)

IMAGE_BASE = "https://image.tmdb.org/t/p/w780"


class TestDiscoverNormalization:
    """Loosely typed discover payloads become clean candidates."""

    def test_full_entry(self):
        entry = DiscoverResult.model_validate({
            "id": 603,
            "title": "The Matrix",
            "overview": "  A hacker learns the truth.  ",
            "release_date": "1999-03-31",
            "poster_path": "/matrix.jpg",
            "genre_ids": [28, 878],
        })
        candidate = entry.to_candidate(IMAGE_BASE)

        assert candidate.id == 603
        assert candidate.title == "The Matrix"
        assert candidate.synopsis == "A hacker learns the truth."
        assert candidate.year == "1999"
        assert candidate.poster_url == f"{IMAGE_BASE}/matrix.jpg"
        assert candidate.genre_ids == (28, 878)

    def test_missing_fields_fall_back(self):
        entry = DiscoverResult.model_validate({
            "id": 7,
            "title": None,
            "overview": None,
            "release_date": None,
            "poster_path": None,
            "genre_ids": "nope",
        })
        candidate = entry.to_candidate(IMAGE_BASE)

        assert candidate.title == "Unknown title"
        assert candidate.synopsis is None
        assert candidate.year is None
        assert candidate.poster_url is None
        assert candidate.genre_ids == ()

    def test_blank_title_falls_back(self):
        entry = DiscoverResult.model_validate({"id": 1, "title": "   "})
        assert entry.title == "Unknown title"

    def test_wrongly_typed_scalars_keep_the_page(self):
        page = DiscoverPage.model_validate({"results": [
            {"id": 1, "title": "Brazil"},
            {"id": 2, "title": 1984, "overview": 5, "release_date": None, "poster_path": 7},
            {"id": 3, "title": ["list"], "overview": {"a": 1}, "genre_ids": [18, "x", 35]},
        ]})

        assert [r.id for r in page.results] == [1, 2, 3]
        second = page.results[1].to_candidate(IMAGE_BASE)
        assert second.title == "1984"
        assert second.synopsis == "5"
        assert second.poster_url is None
        third = page.results[2].to_candidate(IMAGE_BASE)
        assert third.title == "Unknown title"
        assert third.synopsis is None
        assert third.genre_ids == (18, 35)

    def test_page_drops_entries_without_int_id(self):
        page = DiscoverPage.model_validate({
            "page": 1,
            "total_pages": "3",
            "results": [
                {"id": 1, "title": "A"},
                {"id": "2", "title": "B"},
                {"title": "C"},
                {"id": True, "title": "D"},
                "junk",
                {"id": 5, "title": "E"},
            ],
        })

        assert [r.id for r in page.results] == [1, 5]
        assert page.total_pages == 3

    def test_page_defaults(self):
        page = DiscoverPage.model_validate({"results": None, "total_pages": None})

        assert page.results == []
        assert page.total_pages == 1

    def test_candidate_is_immutable(self):
        candidate = DiscoverResult(id=1).to_candidate(IMAGE_BASE)
        with pytest.raises(ValidationError):
            candidate.title = "changed"


class TestPosterUrl:
    def test_joins_slashes(self):
        assert build_poster_url(IMAGE_BASE + "/", "/a.jpg") == f"{IMAGE_BASE}/a.jpg"

    def test_missing_path(self):
        assert build_poster_url(IMAGE_BASE, None) is None
        assert build_poster_url(IMAGE_BASE, "") is None

    def test_non_http_base_rejected(self):
        assert build_poster_url("ftp://images", "/a.jpg") is None


class TestDetailAndVideos:
    def test_detail_description_prefers_tagline(self):
        detail = CandidateDetail.model_validate({
            "id": 1, "title": "X", "tagline": "Short.", "overview": "Long overview.",
            "release_date": "2020-01-01",
        })
        assert detail.description == "Short."
        assert detail.year == "2020"

    def test_detail_nulls(self):
        detail = CandidateDetail.model_validate({
            "id": 1, "title": None, "tagline": None, "overview": None, "genres": None,
        })
        assert detail.description == ""
        assert detail.genres == []
        assert detail.poster_url(IMAGE_BASE) is None

    def test_select_trailer_first_match(self):
        videos = VideoList.model_validate({"results": [
            {"key": "clip1", "site": "YouTube", "type": "Clip"},
            {"key": "vim1", "site": "Vimeo", "type": "Trailer"},
            {"key": "", "site": "YouTube", "type": "Trailer"},
            {"key": "teaser1", "site": "YouTube", "type": "Teaser"},
            {"key": "trailer1", "site": "YouTube", "type": "Trailer"},
        ]}).results

        assert select_trailer(videos).key == "teaser1"

    def test_select_trailer_none(self):
        assert select_trailer([Video(key="x", site="YouTube", type="Featurette")]) is None
        assert select_trailer([]) is None

    def test_genre_list_null(self):
        assert GenreList.model_validate({"genres": None}).genres == []

    def test_detail_bad_types(self):
        detail = CandidateDetail.model_validate({
            "id": 1,
            "title": 42,
            "runtime": "two hours",
            "vote_average": True,
            "poster_path": 0,
            "genres": [{"id": 18, "name": "Drama"}, {"id": "x"}, {"name": "Nameless"}, 7, {"id": 35, "name": None}],
        })

        assert detail.title == "42"
        assert detail.runtime is None
        assert detail.vote_average is None
        assert detail.poster_path is None
        assert [(g.id, g.name) for g in detail.genres] == [(18, "Drama"), (35, "")]

    def test_video_numeric_key(self):
        video = Video.model_validate({"key": 123, "site": "YouTube", "type": "Trailer", "name": None})
        assert video.key == "123"
        assert video.name == ""


class TestPreferences:
    def test_defaults(self):
        prefs = Preferences()

        assert prefs.region == "GB"
        assert prefs.monetization == "flatrate"
        assert prefs.provider_ids == [8, 9]
        assert prefs.min_vote_count == 50
        assert prefs.target_count == 10

    def test_target_count_clamped(self):
        assert Preferences(target_count=1).target_count == MIN_DECK_SIZE
        assert Preferences(target_count=999).target_count == MAX_DECK_SIZE
        assert Preferences(target_count="abc").target_count == 10

    def test_region_uppercased_and_votes_floored(self):
        prefs = Preferences(region=" us ", min_vote_count=-5)

        assert prefs.region == "US"
        assert prefs.min_vote_count == 0

    def test_discover_params(self):
        params = Preferences(provider_ids=[8, 337], monetization="rent|buy").discover_params(2)

        assert params["page"] == 2
        assert params["with_watch_providers"] == "8|337"
        assert params["with_watch_monetization_types"] == "rent|buy"
        assert params["watch_region"] == "GB"
        assert params["include_adult"] == "false"
        assert params["vote_count.gte"] == 50


class TestUsersAndNames:
    def test_other_user(self):
        assert User.YOU.other is User.PARTNER
        assert User.PARTNER.other is User.YOU

    def test_names(self):
        names = DisplayNames(you="Alex", partner="Sam")

        assert names.both_provided
        assert names.name_for(User.PARTNER) == "Sam"
        assert not DisplayNames(you="Alex", partner="  ").both_provided
