"""In-memory implementation of AccountDataService."""

import asyncio
from datetime import datetime
from typing import Any
from uuid import uuid4

from parley.conversation.models import Conversation, DeliveryState, Message, utc_now
from parley.errors import AuthError, AuthErrorKind, DeliveryError
from parley.events.models import MessageEvent, PresenceEvent
from parley.identity.models import Principal
from parley.observability.logging import get_logger
from parley.profile.models import ProfileDetails
from parley.service.base import (
    AccountDataService,
    Ack,
    EventCallback,
    SubscriptionHandle,
)

logger = get_logger(__name__)


class InMemoryAccountDataService(AccountDataService):
    """In-memory account service for testing and development.

    Accounts, pending registrations and persisted messages live in dicts.
    Every verification uses the same fixed code. Persisted messages are
    echoed back to all subscribers, the way a real fan-out would return the
    sender's own message through the live feed.
    """

    def __init__(
        self,
        verification_code: str = "123456",
        latency: float = 0.0,
        echo_messages: bool = True,
    ) -> None:
        """Initialize mock service.

        Args:
            verification_code: Code every pending registration accepts
            latency: Seconds each remote call suspends for
            echo_messages: Fan persisted messages back through subscribers
        """
        self._verification_code = verification_code
        self._latency = latency
        self._echo_messages = echo_messages

        self._accounts: dict[str, tuple[str, Principal]] = {}
        self._pending: dict[str, tuple[str, dict[str, Any]]] = {}
        self._profiles: dict[str, ProfileDetails] = {}
        self._conversations: list[Conversation] = []
        self._subscribers: dict[str, EventCallback] = {}
        self._current: Principal | None = None

        self.sent_codes: dict[str, int] = {}
        self.persisted: list[tuple[str, Message]] = []
        self.call_history: list[tuple[str, Any]] = []

        # Failure injection
        self.unavailable = False
        self.fail_persist = False
        self.fail_sign_out = False

    # Test setup helpers

    def add_account(
        self,
        email: str,
        password: str,
        *,
        principal_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Principal:
        """Register a verified account directly."""
        principal = Principal(
            id=principal_id or uuid4().hex,
            email=email,
            email_verified=True,
            created_at=created_at or utc_now(),
        )
        self._accounts[email.lower()] = (password, principal)
        return principal

    def add_conversation(self, conversation: Conversation) -> None:
        """Make a conversation available to its participants."""
        self._conversations.append(conversation)

    def set_profile_details(self, principal_id: str, details: ProfileDetails) -> None:
        """Store profile details for a principal."""
        self._profiles[principal_id] = details

    def resume_session(self, principal: Principal) -> None:
        """Pretend a session for ``principal`` survived from a previous run."""
        self._current = principal

    @property
    def subscriber_count(self) -> int:
        """Number of live feed subscriptions currently open."""
        return len(self._subscribers)

    def emit(self, event: MessageEvent | PresenceEvent | dict[str, Any]) -> None:
        """Deliver a live event to every subscriber."""
        for callback in list(self._subscribers.values()):
            callback(event)

    # Remote operations

    async def _remote_call(self, operation: str, payload: Any = None) -> None:
        """Record the call, apply latency and simulate outages."""
        self.call_history.append((operation, payload))
        if self._latency:
            await asyncio.sleep(self._latency)
        if self.unavailable:
            raise ConnectionError("Account service unreachable")

    async def sign_in(self, email: str, password: str) -> Principal:
        """Authenticate with email and password."""
        await self._remote_call("sign_in", email)
        key = email.lower()

        if key in self._pending:
            raise AuthError("Email not confirmed", AuthErrorKind.INVALID_CREDENTIALS)

        account = self._accounts.get(key)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS)

        self._current = account[1]
        return account[1]

    async def sign_up(
        self, email: str, password: str, attributes: dict[str, Any]
    ) -> None:
        """Create a pending registration and 'send' a code."""
        await self._remote_call("sign_up", email)
        key = email.lower()

        if key in self._accounts:
            raise AuthError("User already registered", AuthErrorKind.SERVICE)

        self._pending[key] = (password, dict(attributes))
        self.sent_codes[key] = self.sent_codes.get(key, 0) + 1

    async def verify(self, email: str, code: str) -> Principal:
        """Confirm a pending registration and sign in."""
        await self._remote_call("verify", email)
        key = email.lower()

        pending = self._pending.get(key)
        if pending is None or code != self._verification_code:
            raise AuthError("Token has expired or is invalid", AuthErrorKind.INVALID_CODE)

        del self._pending[key]
        principal = self.add_account(email, pending[0])
        full_name = pending[1].get("full_name")
        if full_name:
            self._profiles.setdefault(principal.id, ProfileDetails(display_name=full_name))

        self._current = principal
        return principal

    async def resend(self, email: str) -> None:
        """Send a fresh code for a pending registration."""
        await self._remote_call("resend", email)
        key = email.lower()

        if key not in self._pending:
            raise AuthError("No pending verification for this address", AuthErrorKind.SERVICE)

        self.sent_codes[key] = self.sent_codes.get(key, 0) + 1

    async def sign_out(self) -> None:
        """End the remote session."""
        await self._remote_call("sign_out")
        if self.fail_sign_out:
            raise AuthError("Sign-out request failed", AuthErrorKind.NETWORK)
        self._current = None

    async def persist_message(self, conversation_id: str, message: Message) -> Ack:
        """Store the message and echo it to subscribers."""
        await self._remote_call("persist_message", message.id)
        if self.fail_persist:
            raise DeliveryError(f"Could not persist message {message.id}")

        stored = message.with_delivery(DeliveryState.SENT)
        self.persisted.append((conversation_id, stored))
        for conversation in self._conversations:
            if conversation.id == conversation_id and conversation.has_participant(
                message.sender_id
            ):
                conversation.messages.append(stored)

        if self._echo_messages:
            self.emit(MessageEvent(conversation_id=conversation_id, message=stored))

        return Ack(message_id=message.id)

    async def subscribe(self, on_event: EventCallback) -> SubscriptionHandle:
        """Register a live feed callback."""
        await self._remote_call("subscribe")
        handle = SubscriptionHandle(id=uuid4().hex)
        self._subscribers[handle.id] = on_event
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Remove a live feed callback."""
        await self._remote_call("unsubscribe", handle.id)
        if self._subscribers.pop(handle.id, None) is None:
            logger.warning("unknown_subscription_handle", handle_id=handle.id)

    async def current_principal(self) -> Principal | None:
        """Principal of a resumed session, if any."""
        await self._remote_call("current_principal")
        return self._current

    async def fetch_profile(self, principal_id: str) -> ProfileDetails | None:
        """Stored profile details for a principal."""
        await self._remote_call("fetch_profile", principal_id)
        return self._profiles.get(principal_id)

    async def list_conversations(self, principal: Principal) -> list[Conversation]:
        """Copies of the conversations ``principal`` takes part in."""
        await self._remote_call("list_conversations", principal.id)
        return [
            conversation.model_copy(deep=True)
            for conversation in self._conversations
            if conversation.has_participant(principal.id)
        ]
