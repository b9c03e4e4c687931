"""Conversation domain models.

Contains all Pydantic models for conversation state:
- Conversations for participants and history
- Messages with a tagged text / image / file body
"""

from parley.conversation.models.conversation import Conversation
from parley.conversation.models.enums import DeliveryState, MessageKind
from parley.conversation.models.message import (
    FileBody,
    ImageBody,
    Message,
    MessageBody,
    TextBody,
    new_message_id,
    utc_now,
)

__all__ = [
    # Enums
    "DeliveryState",
    "MessageKind",
    # Message models
    "FileBody",
    "ImageBody",
    "Message",
    "MessageBody",
    "TextBody",
    "new_message_id",
    "utc_now",
    # Conversation models
    "Conversation",
]
