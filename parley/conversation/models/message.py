"""Message models for conversation domain."""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parley.conversation.models.enums import DeliveryState, MessageKind


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


def new_message_id() -> str:
    """Generate a message ID unique across conversations."""
    return uuid4().hex


class TextBody(BaseModel):
    """Plain text payload."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str = Field(..., description="Message text")


class ImageBody(BaseModel):
    """Image payload referenced by URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    url: str = Field(..., description="Image location")
    caption: str = Field(default="", description="Optional caption")


class FileBody(BaseModel):
    """File attachment referenced by URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    url: str = Field(..., description="File location")
    filename: str = Field(..., description="Name shown to the recipient")
    size_bytes: int | None = Field(default=None, ge=0, description="File size")


MessageBody = Annotated[TextBody | ImageBody | FileBody, Field(discriminator="kind")]


class Message(BaseModel):
    """A single message in a conversation.

    The envelope (id, sender, timestamp) is shared by every kind; the body is
    a tagged variant. Messages are immutable; a delivery state change yields a
    new value via ``with_delivery``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id, description="De-duplication key")
    sender_id: str = Field(..., description="Participant who sent it")
    sender_name: str = Field(default="", description="Sender display name")
    timestamp: datetime = Field(default_factory=utc_now, description="Send time")
    body: MessageBody = Field(..., description="Kind-specific payload")
    delivery: DeliveryState = Field(
        default=DeliveryState.SENT, description="Persistence hand-off state"
    )

    @field_validator("timestamp")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC so ordering comparisons never mix."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @classmethod
    def text(
        cls,
        sender_id: str,
        content: str,
        *,
        sender_name: str = "",
        **fields: Any,
    ) -> "Message":
        """Build a text message."""
        return cls(
            sender_id=sender_id,
            sender_name=sender_name,
            body=TextBody(text=content),
            **fields,
        )

    @property
    def kind(self) -> MessageKind:
        """Which payload variant this message carries."""
        return MessageKind(self.body.kind)

    @property
    def content(self) -> str:
        """Human-readable content regardless of kind."""
        body = self.body
        if isinstance(body, TextBody):
            return body.text
        if isinstance(body, ImageBody):
            return body.caption
        return body.filename

    def with_delivery(self, state: DeliveryState) -> "Message":
        """Return a copy in the given delivery state."""
        if state == self.delivery:
            return self
        return self.model_copy(update={"delivery": state})
