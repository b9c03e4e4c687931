"""Live event models.

Inbound realtime events are a tagged union keyed by ``kind``. Raw payloads
from the feed are decoded with ``parse_event``.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from parley.conversation.models import Message
from parley.errors import MalformedEventError
from parley.profile.enums import PresenceStatus


class EventKind(str, Enum):
    """Kinds of live event the intake understands."""

    MESSAGE = "message"
    PRESENCE = "presence"


class MessageEvent(BaseModel):
    """A message delivered to a conversation by someone (possibly us)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["message"] = "message"
    conversation_id: str = Field(..., description="Target conversation")
    message: Message = Field(..., description="Delivered message")


class PresenceEvent(BaseModel):
    """A participant's presence changed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["presence"] = "presence"
    participant_id: str = Field(..., description="Whose presence changed")
    status: PresenceStatus = Field(..., description="New presence")


LiveEvent = Annotated[MessageEvent | PresenceEvent, Field(discriminator="kind")]

_live_event_adapter: TypeAdapter[MessageEvent | PresenceEvent] = TypeAdapter(LiveEvent)


def parse_event(payload: Any) -> MessageEvent | PresenceEvent:
    """Decode a raw feed payload into a live event.

    Raises:
        MalformedEventError: If the payload is not a known event shape
    """
    if isinstance(payload, (MessageEvent, PresenceEvent)):
        return payload
    try:
        return _live_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise MalformedEventError(
            f"Undecodable live event: {e.error_count()} validation error(s)",
            cause=e,
        ) from e
