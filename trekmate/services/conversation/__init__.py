from .service import ChatConversation, ConversationState

__all__ = ["ChatConversation", "ConversationState"]
