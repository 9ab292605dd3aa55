"""Unit tests for catalog browsing helpers."""

import pytest

from trekmate.data import load_catalog
from trekmate.models import Difficulty, TrekPreferences
from trekmate.services.catalog import (
    TrekFilters,
    calculate_trek_score,
    filter_treks,
    get_budget_friendly_treks,
    get_filter_statistics,
    get_trending_treks,
    search_treks,
    sort_treks,
)


def ids(treks) -> list[int]:
    return [t.id for t in treks]


class TestCatalog:
    """Tests for the bundled catalog."""

    def test_loaded_once(self) -> None:
        assert load_catalog() is load_catalog()

    def test_eight_treks_with_coordinates(self) -> None:
        catalog = load_catalog()
        assert ids(catalog) == [1, 2, 3, 4, 5, 6, 7, 8]
        assert all(t.coordinates is not None and t.coordinates.has_coordinates for t in catalog)

    def test_wire_names(self) -> None:
        payload = load_catalog()[0].to_payload()
        assert payload["durationInDays"] == 14
        assert payload["costInUSD"] == 1500
        assert payload["altitudeInMeters"] == 5364


class TestSortTreks:
    """Tests for sort criteria."""

    def test_rating_is_default(self) -> None:
        assert ids(sort_treks(load_catalog())) == [3, 8, 1, 4, 6, 2, 7, 5]

    def test_price_ascending(self) -> None:
        assert ids(sort_treks(load_catalog(), "price-asc")) == [7, 8, 3, 5, 4, 2, 6, 1]

    def test_altitude_descending(self) -> None:
        assert ids(sort_treks(load_catalog(), "altitude-desc"))[:2] == [2, 6]

    def test_newest_reverses(self) -> None:
        assert ids(sort_treks(load_catalog(), "newest")) == [8, 7, 6, 5, 4, 3, 2, 1]

    def test_unknown_keeps_order(self) -> None:
        assert ids(sort_treks(load_catalog(), "vibes")) == [1, 2, 3, 4, 5, 6, 7, 8]

    def test_input_not_mutated(self) -> None:
        treks = list(load_catalog())
        sort_treks(treks, "price-desc")
        assert ids(treks) == [1, 2, 3, 4, 5, 6, 7, 8]


class TestFilterTreks:
    """Tests for combined filters."""

    def test_defaults_keep_everything(self) -> None:
        assert len(filter_treks(load_catalog())) == 8

    def test_region(self) -> None:
        assert ids(filter_treks(load_catalog(), TrekFilters(region="Europe"))) == [7, 5]

    def test_difficulty_list(self) -> None:
        result = filter_treks(load_catalog(), TrekFilters(difficulty=[Difficulty.MEDIUM]))
        assert set(ids(result)) == {3, 7, 8}

    def test_ranges(self) -> None:
        filters = TrekFilters(duration_max=7, cost_max=1000, altitude_min=4000)
        assert ids(filter_treks(load_catalog(), filters)) == [3, 7]

    def test_rating_min_and_sort(self) -> None:
        filters = TrekFilters(rating_min=4.8, sort_by="price-asc")
        assert ids(filter_treks(load_catalog(), filters)) == [8, 3, 4, 6, 1]

    def test_search_text(self) -> None:
        assert set(ids(filter_treks(load_catalog(), TrekFilters(search="Patagonia")))) == {4}


class TestSearchTreks:
    """Tests for free-text search."""

    def test_matches_region_case_insensitively(self) -> None:
        assert ids(search_treks(load_catalog(), "himalayas")) == [1, 6]

    def test_matches_difficulty(self) -> None:
        assert ids(search_treks(load_catalog(), "Medium")) == [3, 7, 8]

    def test_blank_query_returns_all(self) -> None:
        assert len(search_treks(load_catalog(), "  ")) == 8


class TestRankings:
    """Tests for trending and budget lists."""

    def test_trending(self) -> None:
        assert ids(get_trending_treks(load_catalog(), limit=3)) == [3, 8, 6]

    def test_budget_friendly(self) -> None:
        assert ids(get_budget_friendly_treks(load_catalog(), 1000)) == [3, 8, 7, 5]


class TestCalculateTrekScore:
    """Tests for the 0-100 trek score."""

    def test_rating_and_popularity_only(self) -> None:
        inca = load_catalog()[2]
        assert calculate_trek_score(inca) == 49

    def test_with_preferences(self) -> None:
        ebc = load_catalog()[0]
        prefs = TrekPreferences(difficulty=Difficulty.HARD, max_duration=14)
        assert calculate_trek_score(ebc, prefs) == 57

    def test_bounded(self) -> None:
        prefs = TrekPreferences(difficulty=Difficulty.MEDIUM, max_duration=60)
        for trek in load_catalog():
            score = calculate_trek_score(trek, prefs, max_budget=5000, max_altitude=9000)
            assert 0 <= score <= 100


class TestFilterStatistics:
    """Tests for filter-control statistics."""

    def test_catalog_statistics(self) -> None:
        stats = get_filter_statistics(load_catalog())
        assert stats["totalCount"] == 8
        assert stats["byDifficulty"] == {"Easy": 0, "Medium": 3, "Hard": 5, "Expert": 0}
        assert stats["byRegion"]["Himalayas"] == 2
        assert stats["priceRange"]["min"] == 600
        assert stats["priceRange"]["max"] == 1500
        assert stats["durationRange"]["avg"] == 9
        assert stats["averageRating"] == pytest.approx(4.8, abs=0.05)

    def test_empty(self) -> None:
        stats = get_filter_statistics([])
        assert stats["totalCount"] == 0
        assert stats["averageRating"] == 0
