"""Location-based trek recommendations.

Combines the user's location with the static catalog and the real-time
conditions service:
- catalog treks are ranked by distance from the user and filtered
- AI-side recommendations are fetched independently and merged in
- a failure on the AI side still yields the local ranking, flagged as mock

Distance is the haversine great-circle distance when both sides have
coordinates. Without coordinates the engine falls back to a region-name
heuristic with randomised distances (see ``calculate_distance``).
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Optional, Sequence

from trekmate.data import load_catalog
from trekmate.models import (
    GeoPoint,
    RecommendationResult,
    ScoredTrek,
    Trek,
    TrekPreferences,
    WeatherAndSafety,
)
from trekmate.services.conditions import RealTimeConditionsService
from trekmate.utils.geo import haversine_distance

logger = logging.getLogger(__name__)

DEFAULT_TREK_COUNT = 6
MAX_RESULTS = 10

# Region heuristic ranges in km: [low, low + span)
NEARBY_RANGE = (0.0, 50.0)
FAR_RANGE = (100.0, 500.0)

GEOLOCATION_TIMEOUT = 10.0
GEOLOCATION_MAX_AGE = 60.0

GeolocationProvider = Callable[[], Awaitable[GeoPoint]]


class LocationRecommendationEngine:
    """Ranks catalog treks around a user location and merges AI suggestions.

    Args:
        conditions: Real-time conditions service (AI recommendations, weather).
        catalog: Trek catalog; defaults to the bundled sample catalog.
        rng: Random source for the region heuristic.
    """

    def __init__(
        self,
        conditions: RealTimeConditionsService,
        catalog: Optional[Sequence[Trek]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._conditions = conditions
        self._catalog: tuple[Trek, ...] = tuple(catalog) if catalog is not None else load_catalog()
        self._rng = rng or random.Random()
        self._last_fix: Optional[tuple[float, GeoPoint]] = None

    @property
    def catalog(self) -> tuple[Trek, ...]:
        return self._catalog

    # ── Recommendations ───────────────────────────────────────────────

    async def get_location_based_treks(
        self,
        user_location: Optional[GeoPoint],
        preferences: Optional[TrekPreferences] = None,
    ) -> RecommendationResult:
        """AI recommendations plus distance-ranked catalog treks. Never raises."""
        location = user_location or GeoPoint()
        local_treks = self.filter_treks_by_location(location, preferences)

        try:
            ai = await self._conditions.get_location_based_recommendations(location, "treks")
        except Exception as e:
            logger.error(f"[LOCATION] AI recommendations failed: {type(e).__name__}: {e}")
            return RecommendationResult(
                ai_recommendations=[],
                local_treks=local_treks,
                user_location=location,
                is_mock_data=True,
                error=str(e) or type(e).__name__,
            )

        ai = ai if isinstance(ai, dict) else {}
        return RecommendationResult(
            ai_recommendations=ai.get("recommendations") or [],
            local_treks=local_treks,
            user_location=location,
            is_mock_data=bool(ai.get("isMockData", False)),
        )

    def filter_treks_by_location(
        self,
        location: Optional[GeoPoint],
        preferences: Optional[TrekPreferences] = None,
    ) -> list[ScoredTrek]:
        """Rank the catalog by distance, then filter and cap.

        An unset location returns the first six catalog treks, unranked.
        Filters apply after sorting in a fixed order: max distance,
        difficulty, max duration. At most ten treks are returned.
        """
        if location is None or location.is_unset:
            return [
                ScoredTrek(**trek.model_dump())
                for trek in self._catalog[:DEFAULT_TREK_COUNT]
            ]

        scored = [
            ScoredTrek(**trek.model_dump(), distance_km=self.calculate_distance(location, trek))
            for trek in self._catalog
        ]
        scored.sort(key=lambda t: t.distance_km)

        prefs = preferences or TrekPreferences()
        if prefs.max_distance:
            scored = [t for t in scored if t.distance_km <= prefs.max_distance]
        if prefs.difficulty:
            scored = [t for t in scored if t.difficulty == prefs.difficulty]
        if prefs.max_duration:
            scored = [t for t in scored if t.duration_in_days <= prefs.max_duration]

        return scored[:MAX_RESULTS]

    def calculate_distance(self, user_location: GeoPoint, trek: Trek) -> float:
        """Distance in km from the user to a trek.

        With coordinates on both sides this is the haversine distance. Otherwise
        a case-insensitive containment match between the user's place name and
        the trek's region gives a random "nearby" distance in [0, 50), and
        anything else a random "far" distance in [100, 600). The randomised
        branch stands in for real geocoding.
        """
        coords = trek.coordinates
        if user_location.has_coordinates and coords is not None and coords.has_coordinates:
            return haversine_distance(user_location.lat, user_location.lng, coords.lat, coords.lng)

        name = (user_location.name or "").strip().lower()
        region = (trek.region or "").strip().lower()
        if name and region and (name in region or region in name):
            low, span = NEARBY_RANGE
        else:
            low, span = FAR_RANGE
        distance = low + self._rng.random() * span
        logger.debug(f"[LOCATION] Estimated distance to {trek.name}: {distance:.0f}km (no coordinates)")
        return distance

    # ── Weather & safety ──────────────────────────────────────────────

    async def get_location_weather_and_safety(self, location: GeoPoint) -> WeatherAndSafety:
        """Weather and safety alerts fetched concurrently. A failed branch degrades alone."""
        weather, safety = await asyncio.gather(
            self._conditions.get_weather_forecast(location),
            self._conditions.get_safety_alerts(location),
            return_exceptions=True,
        )

        errors: list[str] = []
        if isinstance(weather, BaseException):
            logger.error(f"[LOCATION] Weather fetch failed: {weather}")
            errors.append(f"weather: {weather}")
            weather = {"isMockData": True, "forecast": []}
        if isinstance(safety, BaseException):
            logger.error(f"[LOCATION] Safety fetch failed: {safety}")
            errors.append(f"safety: {safety}")
            safety = {"isMockData": True, "alerts": [], "warnings": []}

        return WeatherAndSafety(
            weather=weather,
            safety=safety,
            location=location,
            error="; ".join(errors) or None,
        )

    # ── Geolocation ───────────────────────────────────────────────────

    async def resolve_user_location(
        self,
        provider: GeolocationProvider,
        timeout: float = GEOLOCATION_TIMEOUT,
        maximum_age: float = GEOLOCATION_MAX_AGE,
        clock: Callable[[], float] = time.monotonic,
    ) -> Optional[GeoPoint]:
        """One-shot position from the host's geolocation provider.

        Reuses the previous fix if it is younger than ``maximum_age`` seconds.
        Returns None when the provider fails or exceeds ``timeout``.
        """
        now = clock()
        if self._last_fix is not None and now - self._last_fix[0] <= maximum_age:
            return self._last_fix[1]

        try:
            fix = await asyncio.wait_for(provider(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[LOCATION] Geolocation timed out after {timeout}s")
            return None
        except Exception as e:
            logger.warning(f"[LOCATION] Geolocation failed: {type(e).__name__}: {e}")
            return None

        self._last_fix = (clock(), fix)
        return fix
