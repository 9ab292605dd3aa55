"""Unit tests for chat conversation state."""

import httpx
import pytest

from conftest import Recorder
from trekmate.models import MessageRole, ServerError
from trekmate.services.advice import AIAdviceService
from trekmate.services.conversation import ChatConversation, ConversationState
from trekmate.services.conversation.service import DEFAULT_WELCOME, NOT_INITIALIZED_ERROR

CHAT_URL = "https://chat.test/api/chat"


@pytest.fixture
def demo_conversation(make_client, cache) -> ChatConversation:
    service = AIAdviceService(make_client(Recorder()), cache, demo_delay=(0, 0))
    return ChatConversation(service)


class TestLifecycle:
    """Tests for uninitialized -> active -> ended."""

    @pytest.mark.asyncio
    async def test_send_before_initialize(self, demo_conversation) -> None:
        assert await demo_conversation.send_message("hello") is None
        assert demo_conversation.error == NOT_INITIALIZED_ERROR
        assert demo_conversation.messages == ()

    @pytest.mark.asyncio
    async def test_initialize_seeds_welcome(self, demo_conversation) -> None:
        session = await demo_conversation.initialize()
        assert demo_conversation.state is ConversationState.ACTIVE
        assert session.session_id.startswith("mock-session-")
        [welcome] = demo_conversation.messages
        assert welcome.role is MessageRole.ASSISTANT
        assert welcome.content == DEFAULT_WELCOME

    @pytest.mark.asyncio
    async def test_send_appends_user_then_assistant(self, demo_conversation) -> None:
        await demo_conversation.initialize()
        reply = await demo_conversation.send_message("Is October good for EBC?")

        messages = demo_conversation.messages
        assert [m.role for m in messages] == [
            MessageRole.ASSISTANT,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert messages[1].content == "Is October good for EBC?"
        assert reply is messages[2]
        assert [m.id for m in messages] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_blank_input_ignored(self, demo_conversation) -> None:
        await demo_conversation.initialize()
        assert await demo_conversation.send_message("   ") is None
        assert len(demo_conversation.messages) == 1
        assert demo_conversation.error is None

    @pytest.mark.asyncio
    async def test_end_then_send(self, demo_conversation) -> None:
        await demo_conversation.initialize()
        await demo_conversation.end()

        assert demo_conversation.state is ConversationState.ENDED
        assert demo_conversation.session is None
        assert demo_conversation.messages == ()
        assert await demo_conversation.send_message("hello?") is None
        assert demo_conversation.error == NOT_INITIALIZED_ERROR

    @pytest.mark.asyncio
    async def test_ids_stay_monotonic_after_clear(self, demo_conversation) -> None:
        await demo_conversation.initialize()
        demo_conversation.clear()
        message = await demo_conversation.send_message("hi")
        assert message.id == 3

    @pytest.mark.asyncio
    async def test_proxy_welcome_message(self, make_client, cache) -> None:
        recorder = Recorder({"/init": {"sessionId": "s-1", "welcomeMessage": "Namaste!"}})
        conversation = ChatConversation(
            AIAdviceService(make_client(recorder), cache, api_url=CHAT_URL)
        )
        await conversation.initialize()
        assert conversation.messages[0].content == "Namaste!"


class TestTypedTurns:
    """Tests for structured advice turns."""

    @pytest.mark.asyncio
    async def test_packing_list_turn(self, make_client, cache) -> None:
        recorder = Recorder({"/packing-list": {"packingList": "Down jacket, boots"}})
        conversation = ChatConversation(
            AIAdviceService(make_client(recorder), cache, api_url=CHAT_URL)
        )

        response = await conversation.generate_packing_list({"id": 1, "name": "EBC"})

        assert response == {"packingList": "Down jacket, boots"}
        message = conversation.messages[-1]
        assert message.kind == "packing-list"
        assert message.content == "Down jacket, boots"
        assert message.data == response

    @pytest.mark.asyncio
    async def test_non_text_response_is_serialised(self, make_client, cache) -> None:
        recorder = Recorder({"/recommendations": {"recommendations": [{"name": "EBC"}]}})
        conversation = ChatConversation(
            AIAdviceService(make_client(recorder), cache, api_url=CHAT_URL)
        )
        await conversation.get_recommendations({"difficulty": "Hard"})
        assert '"EBC"' in conversation.messages[-1].content

    @pytest.mark.asyncio
    async def test_failure_records_error_and_raises(self, make_client, cache) -> None:
        recorder = Recorder({"/altitude-advice": httpx.Response(500)})
        conversation = ChatConversation(
            AIAdviceService(make_client(recorder), cache, api_url=CHAT_URL)
        )

        with pytest.raises(ServerError):
            await conversation.get_altitude_advice(5364)

        assert conversation.error == "Failed to get altitude advice."
        assert conversation.messages == ()
        conversation.clear_error()
        assert conversation.error is None
