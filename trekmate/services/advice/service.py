"""AI advice service: chat sessions and structured trekking advice.

Session strategy is picked once, from configuration:
- demo:   no chat endpoint and no provider key; local canned replies
- direct: provider key set; completions go straight to the provider SDK
- proxy:  chat endpoint set; a remote service owns sessions and replies

Chat sends are "advice-shaped": they always produce an assistant turn and
never raise. The structured calls (recommendations, packing list, altitude
advice, safety tips, travel tips) are "data-shaped": cached, and failures
propagate to the caller.
"""

import asyncio
import hashlib
import json
import logging
import random
import time
import weakref
from typing import Any, Optional, Union

from trekmate.core.config import Settings
from trekmate.models import (
    ChatReply,
    ChatSession,
    RequestContext,
    ServiceNotConfiguredError,
    SessionMode,
    Trek,
    TrekmateError,
)
from trekmate.services.advice.providers import ChatProvider, create_chat_provider
from trekmate.services.cache import PersistentCache, build_key
from trekmate.services.remote import RemoteClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert travel guide specializing in trekking and adventure travel. "
    "Provide helpful, accurate, and safety-conscious advice."
)

APOLOGY_TEXT = "Sorry, I'm having trouble connecting right now. Please try again later."
EMPTY_REPLY_TEXT = "Sorry, I could not process your request."

CACHE_KEY_PREFIX = "advice"
DEMO_DELAY_RANGE = (0.7, 1.0)

TrekInfo = Union[Trek, dict[str, Any]]


def select_session_mode(api_url: Optional[str], api_key: Optional[str]) -> SessionMode:
    """Choose the session strategy: demo, then direct, then proxy."""
    if not api_url and not api_key:
        return SessionMode.DEMO
    if api_key:
        return SessionMode.DIRECT
    return SessionMode.PROXY


def build_context_block(context: Optional[RequestContext]) -> str:
    """Render trek/location context as a short preamble for the model."""
    if context is None:
        return ""
    lines: list[str] = []
    if context.trek is not None:
        trek = context.trek
        lines.append(
            f"Trek: {trek.name} ({trek.region}), difficulty {trek.difficulty.value}, "
            f"{trek.duration_in_days} days, max altitude {trek.altitude_in_meters} m"
        )
    location = context.location
    if location is not None and not location.is_unset:
        parts = []
        if location.name:
            parts.append(location.name)
        if location.has_coordinates:
            parts.append(f"({location.lat:.4f}, {location.lng:.4f})")
        lines.append(f"User location: {' '.join(parts)}")
    if not lines:
        return ""
    return "[Context]\n" + "\n".join(lines) + "\n\n"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _session_id(session: Union[ChatSession, str]) -> str:
    return session.session_id if isinstance(session, ChatSession) else session


def _trek_payload(trek_info: TrekInfo) -> dict[str, Any]:
    if isinstance(trek_info, Trek):
        payload = trek_info.to_payload()
        payload["trekId"] = trek_info.id
        return payload
    return dict(trek_info)


def _trek_key(payload: dict[str, Any]) -> str:
    """Cache identity of a trek: id, else normalised name."""
    trek_id = payload.get("trekId", payload.get("id"))
    if trek_id is not None:
        return str(trek_id)
    if payload.get("name"):
        return str(payload["name"]).strip().lower()
    return "unknown"


def _preferences_hash(preferences: Any) -> str:
    canonical = json.dumps(preferences, sort_keys=True, default=str)
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:16]


class AIAdviceService:
    """Conversational and structured trekking advice.

    Args:
        client: Shared remote client.
        cache: Persistent cache for structured advice.
        api_url: Chat proxy base URL (``/init``, ``/chat``, ...).
        api_key: Direct provider key.
        provider: Pre-built direct provider (otherwise created on first use).
        provider_name: Provider to create for direct mode.
        model_name: Provider model override.
        demo_delay: (min, max) seconds of simulated latency in demo mode.
        rng: Random source for the demo delay.
    """

    def __init__(
        self,
        client: RemoteClient,
        cache: PersistentCache,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        provider: Optional[ChatProvider] = None,
        provider_name: str = "openai",
        model_name: Optional[str] = None,
        demo_delay: tuple[float, float] = DEMO_DELAY_RANGE,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._api_url = api_url.rstrip("/") if api_url else None
        self._api_key = api_key
        self._provider = provider
        self._provider_name = provider_name
        self._model_name = model_name
        self._demo_delay = demo_delay
        self._rng = rng or random.Random()
        self._mode = select_session_mode(self._api_url, api_key)
        # Entries vanish once no send holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        logger.info(f"[ADVICE] Session mode: {self._mode.value}")

    @classmethod
    def from_settings(
        cls, settings: Settings, client: RemoteClient, cache: PersistentCache
    ) -> "AIAdviceService":
        return cls(
            client,
            cache,
            api_url=settings.chat_api_url,
            api_key=settings.chat_api_key,
            provider_name=settings.chat_provider,
            model_name=settings.chat_model,
        )

    @property
    def mode(self) -> SessionMode:
        return self._mode

    def _get_provider(self) -> ChatProvider:
        if self._provider is None:
            self._provider = create_chat_provider(
                self._provider_name, self._api_key or "", self._model_name
            )
        return self._provider

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    # ── Session lifecycle ─────────────────────────────────────────────

    async def initialize(self) -> ChatSession:
        """Open a chat session. Never fails: errors yield a local fallback id."""
        if self._mode is SessionMode.DEMO:
            return ChatSession(session_id=f"mock-session-{_now_ms()}", mode=SessionMode.DEMO)
        if self._mode is SessionMode.DIRECT:
            return ChatSession(session_id=f"direct-api-{_now_ms()}", mode=SessionMode.DIRECT)

        try:
            data = await self._client.post(
                f"{self._api_url}/init",
                {"context": "trek-guide", "systemPrompt": SYSTEM_PROMPT},
            )
            if not isinstance(data, dict) or not data.get("sessionId"):
                raise TrekmateError("Chat init returned no sessionId")
            return ChatSession(
                session_id=str(data["sessionId"]),
                mode=SessionMode.PROXY,
                welcome_message=data.get("welcomeMessage"),
            )
        except TrekmateError as e:
            logger.error(f"[ADVICE] Initialize chat error: {e}")
            return ChatSession(
                session_id=f"fallback-session-{_now_ms()}", mode=SessionMode.FALLBACK
            )

    async def send_message(
        self,
        text: str,
        session: Union[ChatSession, str],
        context: Optional[RequestContext] = None,
    ) -> ChatReply:
        """Send one user message and return the assistant's reply.

        Sends on the same session are serialised. Never raises: failures
        produce a fixed apology so the conversation always gets a turn.
        """
        session_id = _session_id(session)
        async with self._lock_for(session_id):
            if self._mode is SessionMode.DEMO:
                return await self._demo_reply(text, session_id)

            outbound = build_context_block(context) + text
            if self._mode is SessionMode.DIRECT:
                return await self._direct_reply(outbound, session_id)
            return await self._proxy_reply(outbound, session_id)

    async def _demo_reply(self, text: str, session_id: str) -> ChatReply:
        low, high = self._demo_delay
        if high > 0:
            await asyncio.sleep(self._rng.uniform(low, high))
        reply = (
            f'This is a mock response to: "{text}". To get real AI responses, '
            f"configure TREKMATE_CHAT_API_KEY or TREKMATE_CHAT_API_URL in your .env file."
        )
        return ChatReply(text=reply, session_id=session_id, raw={"isMockData": True})

    async def _direct_reply(self, outbound: str, session_id: str) -> ChatReply:
        try:
            provider = self._get_provider()
            content = await provider.complete(SYSTEM_PROMPT, outbound)
        except Exception as e:
            logger.error(f"[ADVICE] Direct completion error: {type(e).__name__}: {e}")
            return ChatReply(text=APOLOGY_TEXT, session_id=session_id)
        return ChatReply(text=content or EMPTY_REPLY_TEXT, session_id=session_id)

    async def _proxy_reply(self, outbound: str, session_id: str) -> ChatReply:
        try:
            data = await self._client.post(
                f"{self._api_url}/chat", {"message": outbound, "sessionId": session_id}
            )
        except TrekmateError as e:
            logger.error(f"[ADVICE] Send message error: {e}")
            return ChatReply(text=APOLOGY_TEXT, session_id=session_id)

        raw = data if isinstance(data, dict) else {"text": data}
        text = raw.get("text") or raw.get("message") or raw.get("content") or EMPTY_REPLY_TEXT
        return ChatReply(text=str(text), session_id=session_id, raw=raw)

    async def end_chat(self, session: Union[ChatSession, str]) -> None:
        """Best-effort remote teardown. Never raises."""
        session_id = _session_id(session)
        self._locks.pop(session_id, None)
        if self._mode is not SessionMode.PROXY:
            return
        try:
            await self._client.post(f"{self._api_url}/end", {"sessionId": session_id})
        except TrekmateError as e:
            logger.warning(f"[ADVICE] End chat error (ignored): {e}")

    # ── Structured advice (cached, fail-closed) ───────────────────────

    async def _cached_post(self, cache_key: str, path: str, payload: dict[str, Any]) -> Any:
        if not self._api_url:
            raise ServiceNotConfiguredError(
                f"No chat endpoint configured for {path}",
                user_message="AI advice is not available in demo mode.",
            )
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            data = await self._client.post(f"{self._api_url}{path}", payload)
        except TrekmateError as e:
            logger.error(f"[ADVICE] {path} error: {e}")
            raise

        if data:
            await self._cache.set(cache_key, data)
        return data

    async def get_trek_recommendations(self, preferences: dict[str, Any]) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "recommendations", _preferences_hash(preferences))
        return await self._cached_post(key, "/recommendations", {"preferences": preferences})

    async def generate_packing_list(self, trek_info: TrekInfo) -> Any:
        payload = _trek_payload(trek_info)
        key = build_key(CACHE_KEY_PREFIX, "packing", _trek_key(payload))
        return await self._cached_post(key, "/packing-list", {"trekInfo": payload})

    async def get_altitude_advice(self, altitude: float, terrain: str = "mountain") -> Any:
        key = build_key(CACHE_KEY_PREFIX, "altitude", altitude)
        return await self._cached_post(
            key, "/altitude-advice", {"altitude": altitude, "terrain": terrain}
        )

    async def get_safety_tips(self, trek_info: TrekInfo) -> Any:
        payload = _trek_payload(trek_info)
        key = build_key(CACHE_KEY_PREFIX, "safety", _trek_key(payload))
        return await self._cached_post(key, "/safety-tips", {"trekInfo": payload})

    async def get_travel_tips(self, topic: str) -> Any:
        key = build_key(CACHE_KEY_PREFIX, "tips", topic.strip().lower())
        return await self._cached_post(key, "/travel-tips", {"topic": topic})
