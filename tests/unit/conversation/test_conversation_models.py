"""Tests for conversation domain models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from parley.conversation.models import (
    Conversation,
    DeliveryState,
    FileBody,
    ImageBody,
    Message,
    MessageKind,
    TextBody,
)
from parley.profile.models import Profile


class TestMessage:
    """Tests for Message model."""

    def test_text_factory(self) -> None:
        """Should build a sent text message with a fresh ID."""
        message = Message.text("bob", "hello", sender_name="Bob")

        assert message.kind == MessageKind.TEXT
        assert message.content == "hello"
        assert message.sender_name == "Bob"
        assert message.delivery == DeliveryState.SENT
        assert message.id
        assert message.timestamp.tzinfo is not None

    def test_ids_are_unique(self) -> None:
        """Should generate distinct IDs."""
        assert Message.text("bob", "a").id != Message.text("bob", "a").id

    def test_naive_timestamp_treated_as_utc(self) -> None:
        """Should attach UTC to naive timestamps."""
        message = Message.text("bob", "hi", timestamp=datetime(2024, 1, 1, 12, 0))
        assert message.timestamp == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def test_image_and_file_bodies(self) -> None:
        """Should expose kind and readable content for every variant."""
        image = Message(sender_id="bob", body=ImageBody(url="https://x/i.png", caption="cat"))
        file = Message(
            sender_id="bob",
            body=FileBody(url="https://x/f.pdf", filename="f.pdf", size_bytes=10),
        )

        assert image.kind == MessageKind.IMAGE
        assert image.content == "cat"
        assert file.kind == MessageKind.FILE
        assert file.content == "f.pdf"

    def test_body_decoded_by_kind(self) -> None:
        """Should pick the body variant from the kind tag."""
        message = Message.model_validate({
            "sender_id": "bob",
            "body": {"kind": "image", "url": "https://x/i.png"},
        })
        assert isinstance(message.body, ImageBody)

    def test_unknown_kind_rejected(self) -> None:
        """Should reject bodies with an unknown kind tag."""
        with pytest.raises(ValidationError):
            Message.model_validate({"sender_id": "bob", "body": {"kind": "audio"}})

    def test_is_immutable(self) -> None:
        """Should not allow in-place edits."""
        message = Message.text("bob", "hi")
        with pytest.raises(ValidationError):
            message.body = TextBody(text="edited")  # type: ignore[misc]

    def test_with_delivery(self) -> None:
        """Should return a copy in the new state, or itself if unchanged."""
        message = Message.text("bob", "hi", delivery=DeliveryState.PENDING)

        sent = message.with_delivery(DeliveryState.SENT)

        assert sent.delivery == DeliveryState.SENT
        assert sent.id == message.id
        assert message.delivery == DeliveryState.PENDING
        assert sent.with_delivery(DeliveryState.SENT) is sent


class TestConversation:
    """Tests for Conversation model."""

    def test_duplicate_participants_collapse(self) -> None:
        """Should keep the first participant with a given ID."""
        conversation = Conversation(
            participants=[
                Profile(id="bob", display_name="Bob"),
                Profile(id="bob", display_name="Robert"),
            ]
        )

        assert len(conversation.participants) == 1
        assert conversation.participants[0].display_name == "Bob"

    def test_participant_lookup(self) -> None:
        """Should find members by ID."""
        conversation = Conversation(participants=[Profile(id="bob", display_name="Bob")])

        assert conversation.has_participant("bob")
        assert conversation.participant("carol") is None

    def test_last_message(self) -> None:
        """Should return the newest message or None."""
        first = Message.text("bob", "one")
        second = Message.text("bob", "two")

        assert Conversation().last_message is None
        assert Conversation(messages=[first, second]).last_message == second

    def test_generates_id(self) -> None:
        """Should assign an ID when none is given."""
        assert Conversation().id != Conversation().id
