"""Unit tests for the conditions tracker."""

import asyncio

import pytest

from conftest import FakeClock, Recorder, unreachable
from trekmate.models import GeoPoint, LiveUpdate
from trekmate.services.cache import WEATHER_TTL, PersistentCache
from trekmate.services.conditions import RealTimeConditionsService
from trekmate.services.tracker import ConditionsTracker

EBC = GeoPoint(id=1, name="Everest Base Camp", lat=28.0026, lng=86.8528)


class TestFetches:
    """Tests for state updates and the in-process cache layer."""

    @pytest.mark.asyncio
    async def test_weather_sets_state(self, make_client, cache) -> None:
        recorder = Recorder({"/weather": {"forecast": [{"day": "Today"}]}})
        tracker = ConditionsTracker(RealTimeConditionsService(make_client(recorder), cache))

        weather = await tracker.fetch_weather(EBC)

        assert tracker.weather is weather
        assert weather["isMockData"] is False

    @pytest.mark.asyncio
    async def test_memoised_within_expiry(self, make_client, storage) -> None:
        recorder = Recorder({"/safety-alerts": {"alerts": []}})
        persistent_clock = FakeClock()
        cache = PersistentCache(storage, clock=persistent_clock)
        conditions = RealTimeConditionsService(make_client(recorder), cache)
        tracker = ConditionsTracker(conditions, cache_expiry=300, clock=FakeClock())

        await tracker.fetch_safety_alerts(EBC)
        # Persistent entry gone; only the tracker layer can answer
        persistent_clock.advance(WEATHER_TTL + 1)
        await tracker.fetch_safety_alerts(EBC)
        assert len(recorder.requests) == 1

        tracker.clear_cache()
        await tracker.fetch_safety_alerts(EBC)
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_offline_fetches_are_mock(self, make_client, cache) -> None:
        tracker = ConditionsTracker(RealTimeConditionsService(make_client(unreachable), cache))

        await tracker.fetch_route_conditions({"id": 1, "name": "EBC"})
        await tracker.fetch_atmosphere(5364, EBC)
        await tracker.fetch_recommendations(EBC, "treks")
        await tracker.fetch_emergency_services(EBC, radius=30)

        assert tracker.route_conditions["isMockData"] is True
        assert tracker.atmosphere["isMockData"] is True
        assert tracker.recommendations == {"recommendations": [], "isMockData": True}
        assert tracker.emergency_services["isMockData"] is True
        assert tracker.error is None

    @pytest.mark.asyncio
    async def test_unexpected_error_recorded(self, make_client, cache) -> None:
        conditions = RealTimeConditionsService(make_client(unreachable), cache)

        async def boom(location):
            raise RuntimeError("tracker broke")

        conditions.get_weather_forecast = boom
        tracker = ConditionsTracker(conditions)

        with pytest.raises(RuntimeError):
            await tracker.fetch_weather(EBC)
        assert tracker.error == "tracker broke"
        tracker.clear_error()
        assert tracker.error is None


class TestLiveSubscriptions:
    """Tests for per-trek subscription bookkeeping."""

    @pytest.mark.asyncio
    async def test_subscribe_and_close(self, make_client, cache) -> None:
        tracker = ConditionsTracker(RealTimeConditionsService(make_client(unreachable), cache))
        received: list[LiveUpdate] = []
        done = asyncio.Event()

        def on_update(update: LiveUpdate) -> None:
            received.append(update)
            done.set()

        first = tracker.subscribe_live_updates(1, on_update, interval=0.001)
        second = tracker.subscribe_live_updates(2, lambda update: None, interval=0.001)
        await asyncio.wait_for(done.wait(), timeout=2)

        assert tracker.subscribed_treks == [1, 2]
        assert received[0].trek_id == 1

        tracker.close()
        assert tracker.subscribed_treks == []
        assert not first.active
        assert not second.active

    @pytest.mark.asyncio
    async def test_resubscribe_replaces_feed(self, make_client, cache) -> None:
        tracker = ConditionsTracker(RealTimeConditionsService(make_client(unreachable), cache))
        old = tracker.subscribe_live_updates(1, lambda update: None, interval=0.001)
        new = tracker.subscribe_live_updates(1, lambda update: None, interval=0.001)

        assert not old.active
        assert new.active
        tracker.unsubscribe_live_updates(1)
        tracker.unsubscribe_live_updates(1)
        assert not new.active
