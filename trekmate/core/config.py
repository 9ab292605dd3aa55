"""Runtime configuration.

Everything is optional. Missing AI endpoints/keys switch the services into
demo or mock mode rather than failing.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """TrekMate settings, read from the environment (and ``.env``)."""

    api_base_url: str = "https://api.trekmate.app/v1"
    request_timeout: float = 10.0

    chat_api_url: Optional[str] = None
    chat_api_key: Optional[str] = None
    chat_provider: str = "openai"
    chat_model: Optional[str] = None

    conditions_api_url: str = "/api/ai/gemini"

    storage_backend: str = "file"
    storage_path: str = ".trekmate/storage.json"
    redis_url: str = "redis://localhost:6379"

    cache_ttl: int = 300
    live_update_interval: float = 30.0
    login_url: str = "/login"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_base_url=os.getenv("TREKMATE_API_BASE_URL", cls.api_base_url),
            request_timeout=float(os.getenv("TREKMATE_REQUEST_TIMEOUT", cls.request_timeout)),
            chat_api_url=_optional("TREKMATE_CHAT_API_URL"),
            chat_api_key=_optional("TREKMATE_CHAT_API_KEY"),
            chat_provider=os.getenv("TREKMATE_CHAT_PROVIDER", cls.chat_provider).lower(),
            chat_model=_optional("TREKMATE_CHAT_MODEL"),
            conditions_api_url=os.getenv("TREKMATE_CONDITIONS_API_URL", cls.conditions_api_url),
            storage_backend=os.getenv("TREKMATE_STORAGE_BACKEND", cls.storage_backend).lower(),
            storage_path=os.getenv("TREKMATE_STORAGE_PATH", cls.storage_path),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            cache_ttl=int(os.getenv("TREKMATE_CACHE_TTL", cls.cache_ttl)),
            live_update_interval=float(
                os.getenv("TREKMATE_LIVE_UPDATE_INTERVAL", cls.live_update_interval)
            ),
            login_url=os.getenv("TREKMATE_LOGIN_URL", cls.login_url),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
