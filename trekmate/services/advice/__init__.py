"""AI advice: chat sessions (demo, direct or proxy) and structured advice."""

from .providers import (
    ChatProvider,
    GeminiChatProvider,
    GroqChatProvider,
    OpenAIChatProvider,
    create_chat_provider,
)
from .service import (
    APOLOGY_TEXT,
    SYSTEM_PROMPT,
    AIAdviceService,
    build_context_block,
    select_session_mode,
)

__all__ = [
    "APOLOGY_TEXT",
    "SYSTEM_PROMPT",
    "AIAdviceService",
    "ChatProvider",
    "GeminiChatProvider",
    "GroqChatProvider",
    "OpenAIChatProvider",
    "build_context_block",
    "create_chat_provider",
    "select_session_mode",
]
