"""Account & Data Service abstract interface.

The core treats every operation as opaque and remote. Implementations raise
``AuthError`` for identity failures and ``DeliveryError`` for persistence
failures; anything else they raise is translated by the caller.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from parley.conversation.models import Conversation, Message, utc_now
from parley.identity.models import Principal
from parley.profile.models import ProfileDetails

EventCallback = Callable[[Any], None]


class Ack(BaseModel):
    """Acknowledgement that a message was persisted."""

    message_id: str = Field(..., description="Persisted message")
    persisted_at: datetime = Field(default_factory=utc_now, description="Commit time")


class SubscriptionHandle(BaseModel):
    """Opaque token identifying a live feed subscription."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Subscription identifier")


class AccountDataService(ABC):
    """Abstract interface for the upstream identity and data provider."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Principal:
        """Authenticate with email and password."""
        pass

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, attributes: dict[str, Any]
    ) -> None:
        """Create an account and send a verification code out of band."""
        pass

    @abstractmethod
    async def verify(self, email: str, code: str) -> Principal:
        """Confirm a pending registration and sign in."""
        pass

    @abstractmethod
    async def resend(self, email: str) -> None:
        """Send a fresh verification code for a pending registration."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the remote session."""
        pass

    @abstractmethod
    async def persist_message(self, conversation_id: str, message: Message) -> Ack:
        """Persist a message and fan it out to the other participants."""
        pass

    @abstractmethod
    async def subscribe(self, on_event: EventCallback) -> SubscriptionHandle:
        """Start delivering live events to ``on_event``."""
        pass

    @abstractmethod
    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Stop delivering events for ``handle``."""
        pass

    async def current_principal(self) -> Principal | None:
        """Principal of a session that survived a restart, if any."""
        return None

    async def fetch_profile(self, principal_id: str) -> ProfileDetails | None:  # noqa: ARG002
        """Stored profile details for a principal, if the provider keeps any."""
        return None

    async def list_conversations(self, principal: Principal) -> list[Conversation]:  # noqa: ARG002
        """Conversations available to a principal when a session starts."""
        return []
