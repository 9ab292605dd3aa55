"""Unit tests for the real-time conditions service."""

import asyncio
import json
import random

import httpx
import pytest

from conftest import Recorder, unreachable
from trekmate.data import load_catalog
from trekmate.models import GeoPoint, LiveUpdate
from trekmate.services.cache import WEATHER_TTL
from trekmate.services.conditions import (
    RealTimeConditionsService,
    live_updates,
    location_identity,
)


def make_service(make_client, cache, handler) -> RealTimeConditionsService:
    return RealTimeConditionsService(make_client(handler), cache)


class TestLocationIdentity:
    """Tests for cache-key identity of locations."""

    def test_prefers_id(self) -> None:
        assert location_identity(GeoPoint(id=7, name="Chamonix")) == "7"

    def test_falls_back_to_name(self) -> None:
        assert location_identity({"name": "  Kathmandu "}) == "kathmandu"

    def test_falls_back_to_coordinates(self) -> None:
        assert location_identity(GeoPoint(lat=27.7, lng=85.3)) == "27.7_85.3"


class TestFailOpen:
    """Every accessor returns a renderable payload, even offline."""

    @pytest.mark.asyncio
    async def test_weather_mock_when_unreachable(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        weather = await service.get_weather_forecast(GeoPoint(name="Kathmandu"))
        assert weather["isMockData"] is True
        assert weather["forecast"]
        # Mock payloads are never cached
        assert await cache.get("conditions_weather_kathmandu") is None

    @pytest.mark.asyncio
    async def test_every_accessor_fails_open(self, make_client, cache) -> None:
        service = make_service(make_client, cache, Recorder(default=httpx.Response(500)))
        location = GeoPoint(lat=27.98, lng=86.92, name="Lobuche")
        trek = load_catalog()[0]

        results = [
            await service.get_weather_forecast(location),
            await service.get_route_conditions(trek),
            await service.get_safety_alerts(location),
            await service.get_atmospheric_conditions(5364, location),
            await service.get_cultural_info(location),
            await service.analyze_route({"distance": 20}),
            await service.get_location_based_recommendations(location, "treks"),
            await service.get_emergency_services(location),
        ]

        assert all(r["isMockData"] is True for r in results)

    @pytest.mark.asyncio
    async def test_route_analysis_mock_estimates_duration(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        analysis = await service.analyze_route({"distance": 20})
        assert analysis["estimatedDuration"] == 5

    @pytest.mark.asyncio
    async def test_recommendations_mock_is_empty(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        result = await service.get_location_based_recommendations(GeoPoint(name="Kathmandu"))
        assert result == {"recommendations": [], "isMockData": True}

    @pytest.mark.asyncio
    async def test_route_analysis_tolerates_bad_distance(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        analysis = await service.analyze_route({"distance": "12 km"})
        assert analysis["isMockData"] is True
        assert analysis["estimatedDuration"] == 0

    @pytest.mark.asyncio
    async def test_route_analysis_accepts_numeric_string(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        analysis = await service.analyze_route({"distance": "12"})
        assert analysis["estimatedDuration"] == 3


class TestMockShapes:
    """Mock payloads carry the same keys as the live responses."""

    LIVE_KEYS = {
        "weather": {"forecast"},
        "route": {"conditions"},
        "alerts": {"alerts", "closures", "warnings"},
        "atmosphere": {"temperature", "pressure", "windSpeed", "windDirection", "visibility"},
        "culture": {"history", "culture", "localTips"},
        "analysis": {"suggestions", "estimatedDuration", "difficulty"},
        "recommendations": {"recommendations"},
        "emergency": {"services", "nearestHospital"},
    }

    @staticmethod
    async def fetch(service: RealTimeConditionsService, resource: str):
        location = GeoPoint(lat=27.98, lng=86.92, name="Lobuche")
        calls = {
            "weather": lambda: service.get_weather_forecast(location),
            "route": lambda: service.get_route_conditions(load_catalog()[0]),
            "alerts": lambda: service.get_safety_alerts(location),
            "atmosphere": lambda: service.get_atmospheric_conditions(5364, location),
            "culture": lambda: service.get_cultural_info(location),
            "analysis": lambda: service.analyze_route({"distance": 20}),
            "recommendations": lambda: service.get_location_based_recommendations(location),
            "emergency": lambda: service.get_emergency_services(location),
        }
        return await calls[resource]()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource", sorted(LIVE_KEYS))
    async def test_mock_matches_live_keys(self, make_client, cache, resource) -> None:
        service = make_service(make_client, cache, unreachable)
        mock = await self.fetch(service, resource)
        assert mock["isMockData"] is True
        assert set(mock) - {"isMockData"} == self.LIVE_KEYS[resource]

    @pytest.mark.asyncio
    async def test_route_conditions_shape(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        mock = await self.fetch(service, "route")
        assert set(mock["conditions"]) == {
            "trailStatus",
            "difficulty",
            "crowdLevel",
            "lastUpdated",
        }


class TestCaching:
    """Tests for cache-first reads with resource TTLs."""

    @pytest.mark.asyncio
    async def test_live_weather_is_cached(self, make_client, cache, clock) -> None:
        recorder = Recorder({"/weather": {"forecast": [{"day": "Today"}]}})
        service = make_service(make_client, cache, recorder)

        first = await service.get_weather_forecast(GeoPoint(name="EBC"))
        second = await service.get_weather_forecast(GeoPoint(name="EBC"))
        third = await service.get_weather_forecast({"name": "EBC"})

        assert first == second == third
        assert first["isMockData"] is False
        assert len(recorder.requests) == 1
        assert recorder.paths() == ["/api/ai/gemini/weather"]
        assert recorder.bodies()[0]["timeframe"] == "next_14_days"

        clock.advance(WEATHER_TTL + 1)
        await service.get_weather_forecast(GeoPoint(name="EBC"))
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_route_conditions_keyed_by_name_without_id(self, make_client, cache) -> None:
        def echo_trail(request: httpx.Request) -> httpx.Response:
            trek = json.loads(request.content)["trek"]
            return httpx.Response(200, json={"conditions": {"trail": trek["name"]}})

        recorder = Recorder({"/route-conditions": echo_trail})
        service = make_service(make_client, cache, recorder)

        everest = await service.get_route_conditions({"name": "Everest Base Camp Trek"})
        mont_blanc = await service.get_route_conditions({"name": "Tour du Mont Blanc"})

        assert len(recorder.requests) == 2
        assert everest["conditions"]["trail"] == "Everest Base Camp Trek"
        assert mont_blanc["conditions"]["trail"] == "Tour du Mont Blanc"

    @pytest.mark.asyncio
    async def test_atmosphere_key(self, make_client, cache) -> None:
        recorder = Recorder({"/atmospheric-conditions": {"pressure": 500}})
        service = make_service(make_client, cache, recorder)

        await service.get_atmospheric_conditions(5364, GeoPoint(lat=27.98, lng=86.92))

        cached = await cache.get("conditions_atmosphere_5364_27.98_86.92")
        assert cached == {"pressure": 500, "isMockData": False}

    @pytest.mark.asyncio
    async def test_uncached_resources_always_fetch(self, make_client, cache) -> None:
        recorder = Recorder({"/emergency-services": {"services": ["Pheriche HRA"]}})
        service = make_service(make_client, cache, recorder)
        location = GeoPoint(name="Pheriche")

        await service.get_emergency_services(location, radius=25)
        await service.get_emergency_services(location, radius=25)

        assert len(recorder.requests) == 2
        assert recorder.bodies()[0]["radius"] == 25


class TestLiveUpdates:
    """Tests for the simulated live feed."""

    @pytest.mark.asyncio
    async def test_generator_stays_in_bounds(self) -> None:
        feed = live_updates(1, interval=0, rng=random.Random(7))
        samples = [await feed.__anext__() for _ in range(50)]
        await feed.aclose()

        for sample in samples:
            assert sample.trek_id == 1
            assert -10 <= sample.data.temperature <= 20
            assert 0 <= sample.data.humidity <= 100
            assert 0 <= sample.data.wind_speed <= 20

    @pytest.mark.asyncio
    async def test_subscription_delivers_and_cancels(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        received: list[LiveUpdate] = []
        done = asyncio.Event()

        def on_update(update: LiveUpdate) -> None:
            received.append(update)
            if len(received) >= 3:
                done.set()

        subscription = service.subscribe_to_live_updates("ebc", on_update, interval=0.001)
        await asyncio.wait_for(done.wait(), timeout=2)
        assert subscription.active

        subscription.unsubscribe()
        subscription.unsubscribe()
        assert not subscription.active

        count = len(received)
        await asyncio.sleep(0.01)
        assert len(received) == count

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_feed(self, make_client, cache) -> None:
        service = make_service(make_client, cache, unreachable)
        calls = []
        done = asyncio.Event()

        async def on_update(update: LiveUpdate) -> None:
            calls.append(update)
            if len(calls) >= 2:
                done.set()
            raise RuntimeError("render failed")

        unsubscribe = service.subscribe_to_live_updates(1, on_update, interval=0.001)
        await asyncio.wait_for(done.wait(), timeout=2)
        unsubscribe()
        assert len(calls) >= 2
