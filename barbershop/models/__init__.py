"""Data models for the booking conversation."""

from .conversation import ConversationState, UserConversation

__all__ = ["ConversationState", "UserConversation"]
