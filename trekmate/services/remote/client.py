"""Shared HTTP client for every remote call.

One configured ``httpx.AsyncClient`` with event hooks:
- request:  attach the bearer token from durable storage, stamp start time
- response: log status and elapsed time

Errors are classified once, here, so services only see ``RemoteError``
subclasses:
- 401 purges stored credentials and notifies the host (which owns the
  redirect to its login surface)
- 403/404/429/5xx are logged and raised, never retried
- no response (timeout, refused connection) and request setup failures are
  reported separately from server-returned errors
"""

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from trekmate.models import (
    InvalidResponseError,
    NoResponseError,
    RequestSetupError,
    StorageError,
    UnauthenticatedError,
    classify_status,
)
from trekmate.services.cache import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.trekmate.app/v1"
DEFAULT_TIMEOUT = 10.0

AUTH_TOKEN_KEY = "authToken"
USER_DATA_KEY = "userData"

_START_TIME = "trekmate.start_time"

UnauthenticatedHandler = Callable[[], Union[None, Awaitable[None]]]


class RemoteClient:
    """JSON-over-HTTP client with uniform auth and error handling.

    Args:
        storage: Durable storage holding the auth token.
        base_url: Base URL for relative paths.
        timeout: Request timeout in seconds.
        on_unauthenticated: Host callback invoked after a 401 purge.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        storage: StorageBackend,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        on_unauthenticated: Optional[UnauthenticatedHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage
        self._timeout = timeout
        self._on_unauthenticated = on_unauthenticated
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            event_hooks={
                "request": [self._on_request],
                "response": [self._on_response],
            },
            transport=transport,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Event hooks ───────────────────────────────────────────────────

    async def _on_request(self, request: httpx.Request) -> None:
        try:
            token = await self._storage.get_item(AUTH_TOKEN_KEY)
        except StorageError as e:
            logger.warning(f"[API] Could not read auth token: {e}")
            token = None
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        request.extensions[_START_TIME] = time.perf_counter()
        logger.debug(f"[API Request] {request.method} {request.url}")

    async def _on_response(self, response: httpx.Response) -> None:
        started = response.request.extensions.get(_START_TIME)
        if started is not None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                f"[API Response] {response.status_code} {response.request.url} "
                f"({elapsed_ms:.0f}ms)"
            )

    # ── Auth token ────────────────────────────────────────────────────

    async def set_auth_token(self, token: str) -> None:
        if token:
            await self._storage.set_item(AUTH_TOKEN_KEY, token)

    async def remove_auth_token(self) -> None:
        await self._storage.remove_item(AUTH_TOKEN_KEY)

    async def _purge_credentials(self) -> None:
        for key in (AUTH_TOKEN_KEY, USER_DATA_KEY):
            try:
                await self._storage.remove_item(key)
            except StorageError as e:
                logger.warning(f"[API] Could not purge {key}: {e}")
        if self._on_unauthenticated is not None:
            result = self._on_unauthenticated()
            if inspect.isawaitable(result):
                await result

    # ── Requests ──────────────────────────────────────────────────────

    async def request(self, method: str, url: str, payload: Any = None) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RemoteError: Classified failure (see module docstring).
        """
        try:
            response = await self._client.request(method, url, json=payload)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.error(f"[API Error] Request setup failed for {url}: {e}")
            raise RequestSetupError(f"{method} {url}: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"[API Error] No response from server for {url}: {type(e).__name__}: {e}")
            raise NoResponseError(f"{method} {url}: {type(e).__name__}: {e}") from e

        if response.is_error:
            await self._raise_for_status(response, method, url)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"{method} {url}: response is not JSON", status_code=response.status_code
            ) from e

    async def _raise_for_status(self, response: httpx.Response, method: str, url: str) -> None:
        status = response.status_code
        error_cls = classify_status(status)
        logger.error(f"[API Error] {status}: {response.text[:200]}")

        if error_cls is UnauthenticatedError:
            await self._purge_credentials()
        elif status == 403:
            logger.error("[API Error] Access forbidden")
        elif status == 404:
            logger.error("[API Error] Resource not found")
        elif status == 429:
            logger.error("[API Error] Rate limited, please try again later")
        elif status >= 500:
            logger.error("[API Error] Server error, please try again later")

        raise error_cls(f"{method} {url} returned {status}", status_code=status)

    async def post(self, url: str, payload: Any = None) -> Any:
        return await self.request("POST", url, payload)

    async def get(self, url: str) -> Any:
        return await self.request("GET", url)


__all__ = ["RemoteClient", "AUTH_TOKEN_KEY", "USER_DATA_KEY"]
