"""Catalog browsing: filtering, sorting, search and scoring.

Pure functions over sequences of ``Trek``. Inputs are never mutated;
every function returns a new list.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from trekmate.models import Difficulty, Trek, TrekPreferences

SORT_OPTIONS = (
    "rating",
    "price-asc",
    "price-desc",
    "duration-asc",
    "duration-desc",
    "altitude-asc",
    "altitude-desc",
    "name",
    "popularity",
    "newest",
)

DIFFICULTY_RANK = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
    Difficulty.EXPERT: 4,
}

# Score weights, out of 100
RATING_POINTS = 30
POPULARITY_POINTS = 20
POPULARITY_REVIEWS = 500
DIFFICULTY_POINTS = 15
DURATION_POINTS = 15
BUDGET_POINTS = 10
ALTITUDE_POINTS = 10


@dataclass
class TrekFilters:
    """Catalog filter criteria. Zero or empty means "no constraint"."""

    search: str = ""
    region: str = ""
    difficulty: list[Difficulty] = field(default_factory=list)
    duration_min: int = 0
    duration_max: int = 30
    cost_min: int = 0
    cost_max: int = 10000
    altitude_min: int = 0
    altitude_max: int = 0
    rating_min: float = 0
    sort_by: str = "rating"


def _matches_query(trek: Trek, query: str) -> bool:
    return any(
        query in value.lower()
        for value in (trek.name, trek.description, trek.region, trek.difficulty.value)
    )


def _passes(trek: Trek, filters: TrekFilters) -> bool:
    query = filters.search.strip().lower()
    if query and not _matches_query(trek, query):
        return False
    if filters.region and trek.region != filters.region:
        return False
    if filters.difficulty and trek.difficulty not in filters.difficulty:
        return False
    if filters.duration_max and trek.duration_in_days > filters.duration_max:
        return False
    if filters.duration_min and trek.duration_in_days < filters.duration_min:
        return False
    if filters.altitude_max and trek.altitude_in_meters > filters.altitude_max:
        return False
    if filters.altitude_min and trek.altitude_in_meters < filters.altitude_min:
        return False
    if filters.cost_max and trek.cost_in_usd > filters.cost_max:
        return False
    if filters.cost_min and trek.cost_in_usd < filters.cost_min:
        return False
    if filters.rating_min and trek.rating < filters.rating_min:
        return False
    return True


def filter_treks(treks: Iterable[Trek], filters: TrekFilters | None = None) -> list[Trek]:
    """Apply every filter criterion, then sort by ``filters.sort_by``."""
    filters = filters or TrekFilters()
    return sort_treks([t for t in treks if _passes(t, filters)], filters.sort_by)


def sort_treks(treks: Iterable[Trek], sort_by: str = "rating") -> list[Trek]:
    """Sort a copy of ``treks``. Unknown criteria keep the input order."""
    items = list(treks)
    if sort_by == "rating":
        return sorted(items, key=lambda t: t.rating, reverse=True)
    if sort_by == "price-asc":
        return sorted(items, key=lambda t: t.cost_in_usd)
    if sort_by == "price-desc":
        return sorted(items, key=lambda t: t.cost_in_usd, reverse=True)
    if sort_by == "duration-asc":
        return sorted(items, key=lambda t: t.duration_in_days)
    if sort_by == "duration-desc":
        return sorted(items, key=lambda t: t.duration_in_days, reverse=True)
    if sort_by == "altitude-asc":
        return sorted(items, key=lambda t: t.altitude_in_meters)
    if sort_by == "altitude-desc":
        return sorted(items, key=lambda t: t.altitude_in_meters, reverse=True)
    if sort_by == "name":
        return sorted(items, key=lambda t: t.name.lower())
    if sort_by == "popularity":
        return sorted(items, key=lambda t: t.reviews, reverse=True)
    if sort_by == "newest":
        return items[::-1]
    return items


def search_treks(treks: Iterable[Trek], query: str) -> list[Trek]:
    """Case-insensitive match on name, description, region or difficulty."""
    needle = query.strip().lower()
    if not needle:
        return list(treks)
    return [t for t in treks if _matches_query(t, needle)]


def trending_score(trek: Trek) -> float:
    return trek.rating * math.log(trek.reviews + 1)


def get_trending_treks(treks: Iterable[Trek], limit: int = 5) -> list[Trek]:
    """Top treks by rating weighted with log review count."""
    return sorted(treks, key=trending_score, reverse=True)[:limit]


def get_budget_friendly_treks(treks: Iterable[Trek], max_budget: int = 1000) -> list[Trek]:
    """Treks within budget, best rated first."""
    return sorted(
        (t for t in treks if t.cost_in_usd <= max_budget),
        key=lambda t: t.rating,
        reverse=True,
    )


def calculate_trek_score(
    trek: Trek,
    preferences: TrekPreferences | None = None,
    max_budget: int | None = None,
    max_altitude: int | None = None,
) -> int:
    """Overall 0-100 score from rating, popularity and preference fit.

    Rating contributes up to 30 points and review count up to 20. The
    remaining 50 points only count when the matching preference is given:
    difficulty closeness (15), duration under ``max_duration`` (15), cost
    under ``max_budget`` (10) and altitude under ``max_altitude`` (10).
    """
    prefs = preferences or TrekPreferences()
    score = 0.0

    if trek.rating:
        score += min(trek.rating / 5 * RATING_POINTS, RATING_POINTS)
    if trek.reviews:
        score += min(trek.reviews / POPULARITY_REVIEWS * POPULARITY_POINTS, POPULARITY_POINTS)

    if prefs.difficulty:
        gap = abs(DIFFICULTY_RANK[trek.difficulty] - DIFFICULTY_RANK[prefs.difficulty])
        score += (1 - gap / 3) * DIFFICULTY_POINTS
    if prefs.max_duration:
        score += (1 - min(trek.duration_in_days / prefs.max_duration, 1)) * DURATION_POINTS
    if max_budget:
        score += (1 - min(trek.cost_in_usd / max_budget, 1)) * BUDGET_POINTS
    if max_altitude:
        score += (1 - min(trek.altitude_in_meters / max_altitude, 1)) * ALTITUDE_POINTS

    return round(min(score, 100))


def _range(values: Sequence[float]) -> dict[str, float]:
    if not values:
        return {"min": 0, "max": 0, "avg": 0}
    return {"min": min(values), "max": max(values), "avg": round(sum(values) / len(values))}


def get_filter_statistics(treks: Iterable[Trek]) -> dict[str, Any]:
    """Counts and ranges for building filter controls."""
    items = list(treks)

    by_region: dict[str, int] = {}
    for trek in items:
        by_region[trek.region] = by_region.get(trek.region, 0) + 1

    return {
        "totalCount": len(items),
        "byDifficulty": {
            level.value: sum(1 for t in items if t.difficulty == level) for level in Difficulty
        },
        "byRegion": by_region,
        "priceRange": _range([t.cost_in_usd for t in items]),
        "durationRange": _range([t.duration_in_days for t in items]),
        "altitudeRange": _range([t.altitude_in_meters for t in items]),
        "averageRating": round(sum(t.rating for t in items) / len(items), 1) if items else 0,
    }
