"""Shared remote HTTP client."""

from .client import AUTH_TOKEN_KEY, USER_DATA_KEY, RemoteClient

__all__ = ["AUTH_TOKEN_KEY", "USER_DATA_KEY", "RemoteClient"]
