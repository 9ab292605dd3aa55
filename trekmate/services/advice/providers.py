"""Direct chat-completion providers for OpenAI (default), Groq and Gemini.

Used when a provider API key is configured. Each provider only implements
``complete()``; the prompt, token limit and temperature are fixed by the
advice service.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
TEMPERATURE = 0.7


class ChatProvider(ABC):
    """One-shot chat completion against a third-party provider."""

    _timeout: float

    @abstractmethod
    async def complete(self, system_prompt: str, user_message: str) -> str:
        """Return the first choice's text ("" if the provider returned none)."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name for logging."""
        ...


# ═══════════════════════════════════════════════════════════════════════
# Provider: OpenAI  (default)
# ═══════════════════════════════════════════════════════════════════════

class OpenAIChatProvider(ChatProvider):
    """OpenAI chat completions."""

    def __init__(
        self,
        api_key: str,
        model_name: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        from openai import AsyncOpenAI

        if not api_key:
            raise ValueError("OpenAI API key not provided")
        self._client = AsyncOpenAI(api_key=api_key)
        self._model_name = model_name or "gpt-3.5-turbo"
        self._timeout = timeout_seconds
        logger.info(f"[ADVICE] OpenAI ready: {self._model_name}")

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    async def complete(self, system_prompt: str, user_message: str) -> str:
        resp = await asyncio.wait_for(
            self._client.chat.completions.create(
                model=self._model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            ),
            timeout=self._timeout,
        )
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()


# ═══════════════════════════════════════════════════════════════════════
# Provider: Groq
# ═══════════════════════════════════════════════════════════════════════

class GroqChatProvider(ChatProvider):
    """Groq LPU with Llama 3.1 8B Instant."""

    def __init__(
        self,
        api_key: str,
        model_name: str | None = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        from groq import AsyncGroq

        if not api_key:
            raise ValueError("Groq API key not provided")
        self._client = AsyncGroq(api_key=api_key)
        self._model_name = model_name or "llama-3.1-8b-instant"
        self._timeout = timeout_seconds
        logger.info(f"[ADVICE] Groq ready: {self._model_name}")

    @property
    def provider_name(self) -> str:
        return "Groq"

    async def complete(self, system_prompt: str, user_message: str) -> str:
        resp = await asyncio.wait_for(
            self._client.chat.completions.create(
                model=self._model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            ),
            timeout=self._timeout,
        )
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()


# ═══════════════════════════════════════════════════════════════════════
# Provider: Gemini
# ═══════════════════════════════════════════════════════════════════════

class GeminiChatProvider(ChatProvider):
    """Google Gemini via the google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        model_name: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        from google import genai

        if not api_key:
            raise ValueError("Gemini API key not provided")
        self._client = genai.Client(api_key=api_key)
        self._model_name = model_name or "gemini-2.0-flash"
        self._timeout = timeout_seconds
        logger.info(f"[ADVICE] Gemini ready: {self._model_name}")

    @property
    def provider_name(self) -> str:
        return "Gemini"

    async def complete(self, system_prompt: str, user_message: str) -> str:
        from google.genai import types

        resp = await asyncio.wait_for(
            self._client.aio.models.generate_content(
                model=self._model_name,
                contents=user_message,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    max_output_tokens=MAX_TOKENS,
                    temperature=TEMPERATURE,
                ),
            ),
            timeout=self._timeout,
        )
        return (resp.text or "").strip()


PROVIDERS: dict[str, type[ChatProvider]] = {
    "openai": OpenAIChatProvider,
    "groq": GroqChatProvider,
    "gemini": GeminiChatProvider,
}


def create_chat_provider(
    provider: str,
    api_key: str,
    model_name: str | None = None,
) -> ChatProvider:
    """Create the configured provider. Unknown names fall back to OpenAI."""
    provider_cls = PROVIDERS.get(provider.lower())
    if provider_cls is None:
        logger.warning(f"[ADVICE] Unknown chat provider '{provider}', using OpenAI")
        provider_cls = OpenAIChatProvider
    return provider_cls(api_key=api_key, model_name=model_name)
