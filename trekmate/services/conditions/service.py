"""Real-time trail conditions: weather, trail status, alerts and more.

Every fetch is fail-open: check cache, POST to the real-time proxy, cache
with a resource-specific TTL, and on any remote failure return a synthetic
payload shaped like the live one with ``isMockData: True``. Callers always
get something renderable and can tell mock from live data.

Live updates are simulated by a polling loop that emits random-walk
telemetry; consumers subscribe through a cancellable handle so a real push
channel can replace the loop behind the same interface.
"""

import asyncio
import inspect
import logging
import random
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from trekmate.core.config import Settings
from trekmate.models import GeoPoint, LiveUpdate, Telemetry, Trek, TrekmateError
from trekmate.services.cache import ATMOSPHERE_TTL, WEATHER_TTL, PersistentCache, build_key
from trekmate.services.remote import RemoteClient

logger = logging.getLogger(__name__)

DEFAULT_CONDITIONS_URL = "/api/ai/gemini"
CACHE_KEY_PREFIX = "conditions"
LIVE_UPDATE_INTERVAL = 30.0

# Telemetry bounds for the simulated feed.
TEMPERATURE_RANGE = (-10.0, 20.0)
HUMIDITY_RANGE = (0.0, 100.0)
WIND_SPEED_RANGE = (0.0, 20.0)

UpdateCallback = Callable[[LiveUpdate], Union[None, Awaitable[None]]]
Subject = Union[GeoPoint, Trek, dict[str, Any]]


def _subject_payload(subject: Optional[Subject]) -> dict[str, Any]:
    if subject is None:
        return {}
    if isinstance(subject, (GeoPoint, Trek)):
        return subject.to_payload()
    return dict(subject)


def location_identity(location: Optional[Subject]) -> str:
    """Stable identity of a location for cache keys: id, else name, else lat_lng."""
    payload = _subject_payload(location)
    if payload.get("id") is not None:
        return str(payload["id"])
    if payload.get("name"):
        return str(payload["name"]).strip().lower()
    return f"{payload.get('lat')}_{payload.get('lng')}"


# ── Mock payloads (shaped like the live responses) ───────────────────

def mock_weather() -> dict[str, Any]:
    return {
        "forecast": [
            {"day": "Today", "condition": "Sunny", "temp": 20, "humidity": 50},
            {"day": "Tomorrow", "condition": "Cloudy", "temp": 18, "humidity": 60},
        ],
        "isMockData": True,
    }


def mock_route_conditions() -> dict[str, Any]:
    return {
        "conditions": {
            "trailStatus": "Open",
            "difficulty": "Moderate",
            "crowdLevel": "Medium",
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        },
        "isMockData": True,
    }


def mock_safety_alerts() -> dict[str, Any]:
    return {
        "alerts": [],
        "closures": [],
        "warnings": [
            {
                "type": "Weather",
                "message": "Possible afternoon thunderstorms",
                "severity": "Medium",
            },
        ],
        "isMockData": True,
    }


def mock_atmosphere() -> dict[str, Any]:
    return {
        "temperature": 15,
        "pressure": 1013,
        "windSpeed": 10,
        "windDirection": "N",
        "visibility": 50,
        "isMockData": True,
    }


def _route_distance(route_data: Any) -> float:
    """Route distance in km; anything unparseable counts as 0."""
    if not isinstance(route_data, dict):
        return 0.0
    try:
        return float(route_data.get("distance") or 0)
    except (TypeError, ValueError):
        return 0.0


def mock_route_analysis(route_data: dict[str, Any]) -> dict[str, Any]:
    distance = _route_distance(route_data)
    return {
        "suggestions": [
            "Consider starting early to avoid afternoon traffic",
            "Water sources available at camps",
        ],
        "estimatedDuration": distance / 4,
        "difficulty": "Moderate",
        "isMockData": True,
    }


def mock_recommendations() -> dict[str, Any]:
    return {"recommendations": [], "isMockData": True}


def mock_emergency_services() -> dict[str, Any]:
    return {"services": [], "nearestHospital": None, "isMockData": True}


def mock_cultural_info() -> dict[str, Any]:
    return {"history": "", "culture": "", "localTips": [], "isMockData": True}


# ── Live updates ─────────────────────────────────────────────────────

def _step(value: float, scale: float, bounds: tuple[float, float], rng: random.Random) -> float:
    low, high = bounds
    return min(high, max(low, value + rng.uniform(-scale, scale)))


async def live_updates(
    trek_id: Union[int, str],
    interval: float = LIVE_UPDATE_INTERVAL,
    rng: Optional[random.Random] = None,
) -> AsyncIterator[LiveUpdate]:
    """Endless random-walk telemetry, one sample per ``interval`` seconds.

    Each call starts a fresh walk. Stop by closing the generator or
    cancelling the task iterating it.
    """
    rng = rng or random.Random()
    temperature = rng.uniform(*TEMPERATURE_RANGE)
    humidity = rng.uniform(*HUMIDITY_RANGE)
    wind_speed = rng.uniform(*WIND_SPEED_RANGE)
    while True:
        await asyncio.sleep(interval)
        temperature = _step(temperature, 1.5, TEMPERATURE_RANGE, rng)
        humidity = _step(humidity, 5.0, HUMIDITY_RANGE, rng)
        wind_speed = _step(wind_speed, 2.0, WIND_SPEED_RANGE, rng)
        yield LiveUpdate(
            trek_id=trek_id,
            data=Telemetry(temperature=temperature, humidity=humidity, wind_speed=wind_speed),
        )


class LiveUpdateSubscription:
    """Handle for a running live-update feed. ``unsubscribe`` is idempotent."""

    def __init__(
        self,
        trek_id: Union[int, str],
        on_update: UpdateCallback,
        interval: float,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.trek_id = trek_id
        self._on_update = on_update
        self._task: asyncio.Task | None = asyncio.create_task(
            self._run(interval, rng), name=f"live-updates-{trek_id}"
        )

    async def _run(self, interval: float, rng: Optional[random.Random]) -> None:
        async for update in live_updates(self.trek_id, interval, rng):
            try:
                result = self._on_update(update)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"[CONDITIONS] Live update callback failed for {self.trek_id}: {e}")

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def unsubscribe(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def __call__(self) -> None:
        self.unsubscribe()


class RealTimeConditionsService:
    """Fail-open accessors for the real-time data proxy.

    Args:
        client: Shared remote client.
        cache: Persistent cache.
        api_url: Real-time proxy base URL.
        live_update_interval: Seconds between simulated live samples.
    """

    def __init__(
        self,
        client: RemoteClient,
        cache: PersistentCache,
        api_url: str = DEFAULT_CONDITIONS_URL,
        live_update_interval: float = LIVE_UPDATE_INTERVAL,
    ) -> None:
        self._client = client
        self._cache = cache
        self._api_url = api_url.rstrip("/")
        self._live_update_interval = live_update_interval

    @classmethod
    def from_settings(
        cls, settings: Settings, client: RemoteClient, cache: PersistentCache
    ) -> "RealTimeConditionsService":
        return cls(
            client,
            cache,
            api_url=settings.conditions_api_url,
            live_update_interval=settings.live_update_interval,
        )

    async def _fetch(
        self,
        path: str,
        payload: dict[str, Any],
        fallback: Callable[[], dict[str, Any]],
        cache_key: Optional[str] = None,
        ttl: Optional[float] = None,
    ) -> Any:
        if cache_key is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            data = await self._client.post(f"{self._api_url}{path}", payload)
        except TrekmateError as e:
            logger.warning(f"[CONDITIONS] {path} failed, using mock data: {e}")
            return fallback()

        if isinstance(data, dict):
            data.setdefault("isMockData", False)
        if cache_key is not None and data:
            await self._cache.set(cache_key, data, ttl)
        return data

    # ── Cached resources ──────────────────────────────────────────────

    async def get_weather_forecast(self, location: Subject) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "weather", location_identity(location))
        return await self._fetch(
            "/weather",
            {"location": _subject_payload(location), "timeframe": "next_14_days"},
            mock_weather,
            cache_key=key,
            ttl=WEATHER_TTL,
        )

    async def get_route_conditions(self, trek: Subject) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "route", location_identity(trek))
        return await self._fetch(
            "/route-conditions",
            {"trek": _subject_payload(trek)},
            mock_route_conditions,
            cache_key=key,
            ttl=WEATHER_TTL,
        )

    async def get_safety_alerts(self, location: Subject) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "alerts", location_identity(location))
        return await self._fetch(
            "/safety-alerts",
            {"location": _subject_payload(location)},
            mock_safety_alerts,
            cache_key=key,
            ttl=WEATHER_TTL,
        )

    async def get_atmospheric_conditions(self, altitude: float, location: Subject) -> Any:
        payload = _subject_payload(location)
        key = build_key(
            CACHE_KEY_PREFIX, "atmosphere", altitude, payload.get("lat"), payload.get("lng")
        )
        return await self._fetch(
            "/atmospheric-conditions",
            {"altitude": altitude, "location": payload},
            mock_atmosphere,
            cache_key=key,
            ttl=ATMOSPHERE_TTL,
        )

    async def get_cultural_info(self, location: Subject) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "culture", location_identity(location))
        return await self._fetch(
            "/cultural-info",
            {"location": _subject_payload(location)},
            mock_cultural_info,
            cache_key=key,
        )

    # ── One-shot resources (not cached) ───────────────────────────────

    async def analyze_route(self, route_data: dict[str, Any]) -> Any:
        return await self._fetch(
            "/route-analysis",
            {"route": route_data},
            lambda: mock_route_analysis(route_data),
        )

    async def get_location_based_recommendations(
        self, location: Subject, category: str = "all"
    ) -> Any:
        return await self._fetch(
            "/location-recommendations",
            {"userLocation": _subject_payload(location), "category": category},
            mock_recommendations,
        )

    async def get_emergency_services(self, location: Subject, radius: float = 50) -> Any:
        return await self._fetch(
            "/emergency-services",
            {"location": _subject_payload(location), "radius": radius},
            mock_emergency_services,
        )

    # ── Live updates ──────────────────────────────────────────────────

    def subscribe_to_live_updates(
        self,
        trek_id: Union[int, str],
        on_update: UpdateCallback,
        interval: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> LiveUpdateSubscription:
        """Start the live feed for a trek. Must be called inside a running loop."""
        return LiveUpdateSubscription(
            trek_id,
            on_update,
            interval if interval is not None else self._live_update_interval,
            rng,
        )
