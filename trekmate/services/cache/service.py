"""Persistent cache implementation.

Two layers:
- ``StorageBackend``: durable string key/value storage (the localStorage of
  this core). Every call is fallible; backends may raise ``StorageError``.
- ``PersistentCache``: per-entry TTL cache on top of a backend. It never
  raises to its caller: reads return ``None`` and writes return ``False``
  when storage misbehaves.

Entries are tombstoned lazily: an expired entry is removed the next time it
is read, there is no background sweep.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from trekmate.core.config import Settings
from trekmate.models import StorageError, StorageFullError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 5 * 60
WEATHER_TTL = 30 * 60
ATMOSPHERE_TTL = 10 * 60


def build_key(kind: str, *parts: Any) -> str:
    """Build a deterministic cache key from a resource kind and its identity.

    Example:
        >>> build_key("conditions_atmosphere", 5364, 27.98, 86.92)
        'conditions_atmosphere_5364_27.98_86.92'
    """
    return "_".join([kind, *(str(p) for p in parts)])


class StorageBackend(ABC):
    """String-keyed, string-valued durable storage."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        pass


class MemoryStorage(StorageBackend):
    """Dict-backed storage with an optional size quota.

    Args:
        max_bytes: Total size of keys + values allowed. Writes that would
            exceed it raise ``StorageFullError``, like a full localStorage.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._max_bytes = max_bytes

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
        return size + len(key) + len(value)

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self._max_bytes is not None and self._size_with(key, value) > self._max_bytes:
            raise StorageFullError(f"Storage quota of {self._max_bytes} bytes exceeded")
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class FileStorage(StorageBackend):
    """Durable storage in a single JSON document on disk.

    Disk I/O runs in a worker thread; a lock serialises read-modify-write
    updates within the process.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self._path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _dump(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(items), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            raise StorageError(f"Cannot write {self._path}: {e}") from e

    def _set(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._dump(items)

    def _remove(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._dump(items)

    async def get_item(self, key: str) -> str | None:
        async with self._lock:
            items = await asyncio.to_thread(self._load)
        return items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._set, key, value)

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._remove, key)


class RedisStorage(StorageBackend):
    """Redis-backed storage.

    Attributes:
        _client: The Redis async client instance, created on first use.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379") -> None:
        self._redis_url = redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get_item(self, key: str) -> str | None:
        client = await self._ensure_connected()
        try:
            return await client.get(key)
        except RedisError as e:
            raise StorageError(f"Redis get failed: {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        client = await self._ensure_connected()
        try:
            await client.set(key, value)
        except RedisError as e:
            raise StorageError(f"Redis set failed: {e}") from e

    async def remove_item(self, key: str) -> None:
        client = await self._ensure_connected()
        try:
            await client.delete(key)
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}") from e


def create_storage(settings: Settings) -> StorageBackend:
    """Pick the storage backend named in settings (file by default)."""
    if settings.storage_backend == "redis":
        return RedisStorage(settings.redis_url)
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return FileStorage(settings.storage_path)


class PersistentCache:
    """Key/value cache with per-entry TTL on durable storage.

    Each entry is stored as ``{"data", "timestamp", "ttl"}`` JSON under
    ``<prefix><key>``. The TTL travels with the entry, so ``get`` honours the
    TTL the writer chose.
    """

    def __init__(
        self,
        storage: StorageBackend,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
        prefix: str = "cache_",
    ) -> None:
        self._storage = storage
        self._default_ttl = default_ttl
        self._clock = clock
        self._prefix = prefix

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def _storage_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing, expired or unreadable."""
        storage_key = self._storage_key(key)
        try:
            raw = await self._storage.get_item(storage_key)
        except StorageError as e:
            logger.warning(f"[CACHE] Read failed for {key}: {e}")
            return None
        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            data = entry["data"]
            timestamp = float(entry["timestamp"])
            ttl = float(entry.get("ttl", self._default_ttl))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[CACHE] Corrupt entry for {key}: {e}")
            await self.invalidate(key)
            return None

        if self._clock() - timestamp > ttl:
            await self.invalidate(key)
            return None
        return data

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store ``value`` with a TTL. Returns False if storage refused it."""
        entry = {
            "data": value,
            "timestamp": self._clock(),
            "ttl": ttl if ttl is not None else self._default_ttl,
        }
        try:
            serialized = json.dumps(entry)
        except (TypeError, ValueError) as e:
            logger.warning(f"[CACHE] Value for {key} is not serialisable: {e}")
            return False
        try:
            await self._storage.set_item(self._storage_key(key), serialized)
        except StorageError as e:
            logger.warning(f"[CACHE] Write failed for {key}: {e}")
            return False
        return True

    async def invalidate(self, key: str) -> bool:
        """Remove an entry if present. Returns False if storage refused it."""
        try:
            await self._storage.remove_item(self._storage_key(key))
        except StorageError as e:
            logger.warning(f"[CACHE] Invalidate failed for {key}: {e}")
            return False
        return True
