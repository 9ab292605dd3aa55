"""Persistent TTL cache over durable key/value storage."""

from .service import (
    ATMOSPHERE_TTL,
    DEFAULT_TTL,
    WEATHER_TTL,
    FileStorage,
    MemoryStorage,
    PersistentCache,
    RedisStorage,
    StorageBackend,
    build_key,
    create_storage,
)

__all__ = [
    "ATMOSPHERE_TTL",
    "DEFAULT_TTL",
    "WEATHER_TTL",
    "FileStorage",
    "MemoryStorage",
    "PersistentCache",
    "RedisStorage",
    "StorageBackend",
    "build_key",
    "create_storage",
]
