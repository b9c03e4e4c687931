"""Factories for conversation test data."""

from datetime import UTC, datetime, timedelta
from typing import Any

from parley.conversation.models import Conversation, Message
from parley.events.models import MessageEvent, PresenceEvent
from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def make_message(
    sender_id: str,
    text: str,
    *,
    seconds: int = 0,
    message_id: str | None = None,
) -> Message:
    """Build a text message offset from a fixed base time."""
    fields: dict[str, Any] = {"timestamp": BASE_TIME + timedelta(seconds=seconds)}
    if message_id is not None:
        fields["id"] = message_id
    return Message.text(sender_id, text, **fields)


def make_conversation(
    conversation_id: str,
    *participants: Profile,
    messages: list[Message] | None = None,
    name: str | None = None,
    is_group: bool = False,
) -> Conversation:
    """Build a conversation between the given participants."""
    return Conversation(
        id=conversation_id,
        participants=list(participants),
        messages=messages or [],
        name=name,
        is_group=is_group,
    )


def message_event(conversation_id: str, message: Message) -> MessageEvent:
    """Wrap a message in a live feed event."""
    return MessageEvent(conversation_id=conversation_id, message=message)


def presence_event(participant_id: str, status: PresenceStatus) -> PresenceEvent:
    """Build a presence change event."""
    return PresenceEvent(participant_id=participant_id, status=status)
