"""Shared fixtures for TrekMate tests.

HTTP is faked with ``httpx.MockTransport``; time with a settable clock.
"""

import json
from typing import Any, Callable

import httpx
import pytest

from trekmate.services.cache import MemoryStorage, PersistentCache
from trekmate.services.remote import RemoteClient


class FakeClock:
    """Settable time source."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Recorder:
    """MockTransport handler that records requests and replies from a route table.

    ``routes`` maps a URL path suffix to either a JSON-able body, an
    ``httpx.Response`` or a callable taking the request.
    """

    def __init__(self, routes: dict[str, Any] | None = None, default: Any = None) -> None:
        self.routes = routes or {}
        self.default = default
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, reply in self.routes.items():
            if request.url.path.endswith(suffix):
                return self._respond(reply, request)
        if self.default is not None:
            return self._respond(self.default, request)
        return httpx.Response(404, json={"message": "not found"})

    @staticmethod
    def _respond(reply: Any, request: httpx.Request) -> httpx.Response:
        if callable(reply):
            return reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) if r.content else {} for r in self.requests]

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage, clock: FakeClock) -> PersistentCache:
    return PersistentCache(storage, clock=clock)


@pytest.fixture
def make_client(storage: MemoryStorage) -> Callable[..., RemoteClient]:
    """Build a RemoteClient over a handler (a Recorder or any callable)."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> RemoteClient:
        return RemoteClient(
            storage,
            base_url="https://api.test",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return _make
