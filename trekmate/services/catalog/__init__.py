from .service import (
    SORT_OPTIONS,
    TrekFilters,
    calculate_trek_score,
    filter_treks,
    get_budget_friendly_treks,
    get_filter_statistics,
    get_trending_treks,
    search_treks,
    sort_treks,
    trending_score,
)

__all__ = [
    "SORT_OPTIONS",
    "TrekFilters",
    "calculate_trek_score",
    "filter_treks",
    "get_budget_friendly_treks",
    "get_filter_statistics",
    "get_trending_treks",
    "search_treks",
    "sort_treks",
    "trending_score",
]
