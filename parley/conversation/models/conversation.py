"""Conversation model for conversation domain."""

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parley.conversation.models.message import Message
from parley.profile.models import Profile


class Conversation(BaseModel):
    """A set of participants and their ordered message history.

    Messages are kept in insertion order, which the store keeps equal to
    timestamp order. Participants are unique by ID.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid4().hex, description="Unique identifier")
    participants: list[Profile] = Field(
        default_factory=list, description="Members, unique by ID"
    )
    messages: list[Message] = Field(
        default_factory=list, description="History in delivery order"
    )
    is_group: bool = Field(default=False, description="More than two members by design")
    name: str | None = Field(default=None, description="Group or custom name")

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[Profile]) -> list[Profile]:
        """Keep the first occurrence of each participant ID."""
        seen: set[str] = set()
        unique: list[Profile] = []
        for profile in value:
            if profile.id in seen:
                continue
            seen.add(profile.id)
            unique.append(profile)
        return unique

    @property
    def last_message(self) -> Message | None:
        """Most recent message, if any."""
        return self.messages[-1] if self.messages else None

    def participant(self, participant_id: str) -> Profile | None:
        """Look up a member by ID."""
        for profile in self.participants:
            if profile.id == participant_id:
                return profile
        return None

    def has_participant(self, participant_id: str) -> bool:
        """Whether ``participant_id`` is a member."""
        return self.participant(participant_id) is not None
