"""Conditions tracker: latest real-time state for one view.

Wraps RealTimeConditionsService with an in-process LRU layer and keeps the
last payload of each resource (weather, route conditions, alerts,
atmosphere, recommendations, emergency services). Live-update
subscriptions are tracked per trek so they can be cancelled together.
"""

import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional, Union

from trekmate.models import GeoPoint
from trekmate.services.conditions import (
    LiveUpdateSubscription,
    RealTimeConditionsService,
    location_identity,
)
from trekmate.services.conditions.service import Subject, UpdateCallback
from trekmate.utils.cache import LRUCache

logger = logging.getLogger(__name__)

CACHE_EXPIRY = 5 * 60


class ConditionsTracker:
    """Per-view conditions state with memoised fetches.

    Args:
        conditions: Real-time conditions service.
        cache_expiry: Seconds a memoised payload stays fresh.
        clock: Time source for the LRU layer.
    """

    def __init__(
        self,
        conditions: RealTimeConditionsService,
        cache_expiry: float = CACHE_EXPIRY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._conditions = conditions
        self._cache = LRUCache(ttl_seconds=cache_expiry, clock=clock)
        self._subscriptions: dict[Union[int, str], LiveUpdateSubscription] = {}

        self.weather: Any = None
        self.route_conditions: Any = None
        self.safety_alerts: Any = None
        self.atmosphere: Any = None
        self.recommendations: Any = None
        self.emergency_services: Any = None
        self.error: Optional[str] = None

    async def _memoised(self, key: Optional[str], call: Callable[[], Awaitable[Any]]) -> Any:
        if key is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
        self.error = None
        try:
            data = await call()
        except Exception as e:
            self.error = str(e) or type(e).__name__
            logger.error(f"[CONDITIONS] Tracker fetch failed: {self.error}")
            raise
        if key is not None and data:
            self._cache.set(key, data)
        return data

    async def fetch_weather(self, location: Subject) -> Any:
        self.weather = await self._memoised(
            f"weather_{location_identity(location)}",
            lambda: self._conditions.get_weather_forecast(location),
        )
        return self.weather

    async def fetch_route_conditions(self, trek: Subject) -> Any:
        trek_id = trek.get("id") if isinstance(trek, dict) else getattr(trek, "id", None)
        self.route_conditions = await self._memoised(
            f"conditions_{trek_id}",
            lambda: self._conditions.get_route_conditions(trek),
        )
        return self.route_conditions

    async def fetch_safety_alerts(self, location: Subject) -> Any:
        self.safety_alerts = await self._memoised(
            f"alerts_{location_identity(location)}",
            lambda: self._conditions.get_safety_alerts(location),
        )
        return self.safety_alerts

    async def fetch_atmosphere(self, altitude: float, location: GeoPoint) -> Any:
        self.atmosphere = await self._memoised(
            f"atmosphere_{altitude}_{location.lat}_{location.lng}",
            lambda: self._conditions.get_atmospheric_conditions(altitude, location),
        )
        return self.atmosphere

    async def fetch_recommendations(self, user_location: Subject, category: str = "all") -> Any:
        self.recommendations = await self._memoised(
            None,
            lambda: self._conditions.get_location_based_recommendations(user_location, category),
        )
        return self.recommendations

    async def fetch_emergency_services(self, location: Subject, radius: float = 50) -> Any:
        self.emergency_services = await self._memoised(
            None,
            lambda: self._conditions.get_emergency_services(location, radius),
        )
        return self.emergency_services

    # ── Live updates ──────────────────────────────────────────────────

    def subscribe_live_updates(
        self,
        trek_id: Union[int, str],
        on_update: UpdateCallback,
        interval: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> LiveUpdateSubscription:
        """Start a feed for ``trek_id``, replacing any existing one."""
        self.unsubscribe_live_updates(trek_id)
        subscription = self._conditions.subscribe_to_live_updates(
            trek_id, on_update, interval=interval, rng=rng
        )
        self._subscriptions[trek_id] = subscription
        return subscription

    def unsubscribe_live_updates(self, trek_id: Union[int, str]) -> None:
        subscription = self._subscriptions.pop(trek_id, None)
        if subscription is not None:
            subscription.unsubscribe()

    @property
    def subscribed_treks(self) -> list[Union[int, str]]:
        return list(self._subscriptions)

    def clear_cache(self) -> None:
        self._cache.clear()

    def clear_error(self) -> None:
        self.error = None

    def close(self) -> None:
        """Cancel every live subscription."""
        for trek_id in list(self._subscriptions):
            self.unsubscribe_live_updates(trek_id)
