"""Conversation domain: models and the per-session conversation store."""

from parley.conversation.models import (
    Conversation,
    DeliveryState,
    FileBody,
    ImageBody,
    Message,
    MessageKind,
    TextBody,
)
from parley.conversation.store import ConversationStats, ConversationStore

__all__ = [
    "Conversation",
    "ConversationStats",
    "ConversationStore",
    "DeliveryState",
    "FileBody",
    "ImageBody",
    "Message",
    "MessageKind",
    "TextBody",
]
