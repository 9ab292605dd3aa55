"""Chat conversation state on top of AIAdviceService.

Owns the message history, the active session and the last user-facing
error. Lifecycle: uninitialized -> active -> ended. ``initialize`` may be
called again after ``end`` to start a fresh session.
"""

import json
import logging
from enum import Enum
from typing import Any, Awaitable, Optional

from trekmate.models import ChatSession, Message, MessageRole, RequestContext
from trekmate.services.advice import AIAdviceService
from trekmate.services.advice.service import TrekInfo

logger = logging.getLogger(__name__)

DEFAULT_WELCOME = (
    "Hi! I'm your TrekMate guide. Ask me about routes, packing, altitude "
    "or safety for your next trek."
)
NOT_INITIALIZED_ERROR = "Chat not initialized. Please refresh and try again."


class ConversationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    ENDED = "ended"


class ChatConversation:
    """A single user's chat with the trekking assistant."""

    def __init__(self, advice: AIAdviceService) -> None:
        self._advice = advice
        self._messages: list[Message] = []
        self._next_id = 1
        self.session: Optional[ChatSession] = None
        self.error: Optional[str] = None
        self.state = ConversationState.UNINITIALIZED

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def _append(
        self,
        role: MessageRole,
        content: str,
        kind: Optional[str] = None,
        data: Any = None,
    ) -> Message:
        message = Message(id=self._next_id, role=role, content=content, kind=kind, data=data)
        self._next_id += 1
        self._messages.append(message)
        return message

    async def initialize(self) -> ChatSession:
        """Open a session and seed the welcome message."""
        self.error = None
        self.session = await self._advice.initialize()
        self.state = ConversationState.ACTIVE
        self._messages = []
        self._append(MessageRole.ASSISTANT, self.session.welcome_message or DEFAULT_WELCOME)
        logger.info(f"[ADVICE] Conversation started: {self.session.session_id}")
        return self.session

    async def send_message(
        self, content: str, context: Optional[RequestContext] = None
    ) -> Optional[Message]:
        """Append the user's message and the assistant's reply.

        Blank input is ignored. Without an active session nothing is sent and
        ``error`` is set. Returns the assistant message.
        """
        if not content or not content.strip():
            return None
        if self.state is not ConversationState.ACTIVE or self.session is None:
            self.error = NOT_INITIALIZED_ERROR
            return None

        self.error = None
        self._append(MessageRole.USER, content)
        reply = await self._advice.send_message(content, self.session, context)
        return self._append(MessageRole.ASSISTANT, reply.text, data=reply.raw or None)

    async def _typed_turn(
        self, kind: str, content_field: str, error_text: str, call: Awaitable[Any]
    ) -> Any:
        self.error = None
        try:
            response = await call
        except Exception as e:
            logger.error(f"[ADVICE] {kind} failed: {e}")
            self.error = error_text
            raise

        content = response.get(content_field) if isinstance(response, dict) else None
        if not isinstance(content, str) or not content:
            content = json.dumps(response, default=str)
        self._append(MessageRole.ASSISTANT, content, kind=kind, data=response)
        return response

    async def get_recommendations(self, preferences: dict[str, Any]) -> Any:
        return await self._typed_turn(
            "recommendations",
            "recommendations",
            "Failed to get recommendations.",
            self._advice.get_trek_recommendations(preferences),
        )

    async def generate_packing_list(self, trek_info: TrekInfo) -> Any:
        return await self._typed_turn(
            "packing-list",
            "packingList",
            "Failed to generate packing list.",
            self._advice.generate_packing_list(trek_info),
        )

    async def get_altitude_advice(self, altitude: float) -> Any:
        return await self._typed_turn(
            "altitude-advice",
            "advice",
            "Failed to get altitude advice.",
            self._advice.get_altitude_advice(altitude),
        )

    async def get_safety_tips(self, trek_info: TrekInfo) -> Any:
        return await self._typed_turn(
            "safety-tips",
            "tips",
            "Failed to get safety tips.",
            self._advice.get_safety_tips(trek_info),
        )

    def clear(self) -> None:
        self._messages = []
        self.error = None

    def clear_error(self) -> None:
        self.error = None

    async def end(self) -> None:
        """Tear down the session (best effort) and drop the history."""
        if self.session is not None:
            await self._advice.end_chat(self.session)
        self.session = None
        self.state = ConversationState.ENDED
        self.clear()
