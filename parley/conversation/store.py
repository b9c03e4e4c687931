"""Conversation store for the active session.

Owns the conversations of one session, their ordered message histories and
the focused conversation. Local sends are applied optimistically and handed
to the account service in the background; remote messages are merged
idempotently by message ID.
"""

import asyncio
from bisect import bisect_right
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from parley.conversation.models import Conversation, DeliveryState, Message
from parley.errors import (
    ConversationNotFoundError,
    DeliveryError,
    MalformedEventError,
    SessionStateError,
)
from parley.generation import SessionGeneration
from parley.identity.models import Principal
from parley.observability import metrics
from parley.observability.logging import get_logger
from parley.presence.tracker import PresenceTracker
from parley.profile.models import Profile

if TYPE_CHECKING:
    from parley.service.base import AccountDataService

logger = get_logger(__name__)


class ConversationStats(BaseModel):
    """Aggregate counts over the loaded conversations."""

    total_messages: int = Field(default=0, description="Messages sent and received")
    total_conversations: int = Field(default=0, description="Loaded conversations")
    online_participants: int = Field(
        default=0, description="Distinct counterparts currently online"
    )


class ConversationStore:
    """In-memory conversation state for a single session.

    Ordering: every inserted message gets a per-conversation sequence number
    that only grows. Messages are kept sorted by (timestamp, sequence), so
    equal timestamps keep intake order and re-applying a known ID is a no-op.
    """

    def __init__(
        self,
        service: "AccountDataService",
        presence: PresenceTracker,
        generation: SessionGeneration,
        *,
        single_pane: bool = False,
        persist_timeout: float = 10.0,
    ) -> None:
        """Initialize an empty store.

        Args:
            service: Receives persistence hand-offs for local sends
            presence: Tracker overlaid on participant snapshots
            generation: Session generation guarding late completions
            single_pane: Layout shows one pane at a time (no auto-selection)
            persist_timeout: Seconds before a hand-off counts as failed
        """
        self._service = service
        self._presence = presence
        self._generation = generation
        self._single_pane = single_pane
        self._persist_timeout = persist_timeout

        self._principal: Principal | None = None
        self._local_profile: Profile | None = None
        self._conversations: dict[str, Conversation] = {}
        self._order_keys: dict[str, list[tuple[datetime, int]]] = {}
        self._message_ids: dict[str, set[str]] = {}
        self._next_sequence: dict[str, int] = {}
        self._selected_id: str | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    # Lifecycle

    async def load_initial(
        self, principal: Principal, profile: Profile
    ) -> list[Conversation]:
        """Populate the store with the conversations available to ``principal``.

        A failed lookup leaves the store empty rather than failing the
        session. If the session ends while the lookup is in flight, nothing
        is loaded.
        """
        token = self._generation.current
        try:
            available = await self._service.list_conversations(principal)
        except Exception as e:
            logger.warning(
                "conversation_load_failed",
                principal_id=principal.id,
                error=str(e),
            )
            available = []

        if not self._generation.is_current(token):
            logger.info("conversation_load_stale", principal_id=principal.id)
            return []

        self.populate(principal, profile, available)
        return self.conversations

    def populate(
        self,
        principal: Principal,
        profile: Profile,
        conversations: Iterable[Conversation] = (),
    ) -> None:
        """Replace the store contents and apply the selection policy.

        A single conversation is focused automatically unless the layout is
        single-pane; otherwise nothing is focused until ``select``.
        """
        self._reset()
        self._principal = principal
        self._local_profile = profile
        self._presence.track(profile.id, profile.status)

        for conversation in conversations:
            self._add(conversation)

        if len(self._conversations) == 1 and not self._single_pane:
            self._selected_id = next(iter(self._conversations))

        logger.info(
            "conversations_loaded",
            principal_id=principal.id,
            count=len(self._conversations),
            selected_id=self._selected_id,
        )

    def close(self) -> None:
        """Discard all session state.

        In-flight hand-offs are left to finish; their completions no longer
        match the session generation and do nothing.
        """
        self._reset()
        self._principal = None
        self._local_profile = None
        logger.debug("conversation_store_closed", inflight=len(self._inflight))

    async def flush(self) -> None:
        """Wait for every in-flight persistence hand-off to settle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _reset(self) -> None:
        self._conversations.clear()
        self._order_keys.clear()
        self._message_ids.clear()
        self._next_sequence.clear()
        self._selected_id = None

    def _add(self, conversation: Conversation) -> None:
        if conversation.id in self._conversations:
            logger.warning("duplicate_conversation_skipped", conversation_id=conversation.id)
            return

        local_id = self._local_profile.id if self._local_profile else None
        stored = Conversation(
            id=conversation.id,
            participants=self._with_local_profile(conversation.participants),
            is_group=conversation.is_group,
            name=conversation.name,
        )
        self._conversations[stored.id] = stored
        self._order_keys[stored.id] = []
        self._message_ids[stored.id] = set()
        self._next_sequence[stored.id] = 0

        for participant in stored.participants:
            if participant.id != local_id:
                self._presence.track(participant.id, participant.status)

        # sorted() is stable, so equal timestamps keep their loaded order
        for message in sorted(conversation.messages, key=lambda m: m.timestamp):
            if message.id in self._message_ids[stored.id]:
                continue
            if not stored.has_participant(message.sender_id):
                logger.warning(
                    "loaded_message_from_non_participant",
                    conversation_id=stored.id,
                    message_id=message.id,
                )
                continue
            self._insert(stored.id, message)

    def _with_local_profile(self, participants: list[Profile]) -> list[Profile]:
        """Ensure the local profile is a member, replacing any stale copy."""
        local = self._local_profile
        if local is None:
            return list(participants)
        if any(p.id == local.id for p in participants):
            return [local if p.id == local.id else p for p in participants]
        return [local, *participants]

    def _insert(self, conversation_id: str, message: Message) -> None:
        sequence = self._next_sequence[conversation_id]
        self._next_sequence[conversation_id] = sequence + 1

        key = (message.timestamp, sequence)
        keys = self._order_keys[conversation_id]
        position = bisect_right(keys, key)
        keys.insert(position, key)
        self._conversations[conversation_id].messages.insert(position, message)
        self._message_ids[conversation_id].add(message.id)

    # Read-only views

    @property
    def principal(self) -> Principal | None:
        """Principal the store was loaded for."""
        return self._principal

    @property
    def local_profile(self) -> Profile | None:
        """Profile of the local user as shown in conversations."""
        return self._local_profile

    @property
    def selected_id(self) -> str | None:
        """Last ID passed to ``select`` (may not match any conversation)."""
        return self._selected_id

    @property
    def conversations(self) -> list[Conversation]:
        """Snapshots of every conversation in store order."""
        return [self._snapshot(c) for c in self._conversations.values()]

    @property
    def focused(self) -> Conversation | None:
        """Snapshot of the focused conversation, None if nothing matches."""
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, conversation_id: str) -> Conversation | None:
        """Snapshot of one conversation."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        return self._snapshot(conversation)

    def message(self, conversation_id: str, message_id: str) -> Message | None:
        """Current value of a message, including its delivery state."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        for message in reversed(conversation.messages):
            if message.id == message_id:
                return message
        return None

    def _snapshot(self, conversation: Conversation) -> Conversation:
        participants = [
            p.model_copy(update={"status": self._presence.status_of(p.id)})
            if self._presence.is_tracked(p.id)
            else p
            for p in conversation.participants
        ]
        return conversation.model_copy(
            update={"participants": participants, "messages": list(conversation.messages)}
        )

    # Queries

    def select(self, conversation_id: str | None) -> None:
        """Focus a conversation; unknown IDs simply focus nothing."""
        self._selected_id = conversation_id
        logger.debug(
            "conversation_selected",
            conversation_id=conversation_id,
            found=conversation_id in self._conversations,
        )

    def counterpart(self, conversation: Conversation) -> Profile | None:
        """The other member of a two-party conversation.

        Returns None for groups and for participant sets that do not consist
        of exactly the local user and one other member.
        """
        if conversation.is_group or len(conversation.participants) != 2:
            return None
        local_id = self._local_profile.id if self._local_profile else None
        others = [p for p in conversation.participants if p.id != local_id]
        if len(others) != 1:
            return None
        return others[0]

    def search(self, query: str) -> list[Conversation]:
        """Case-insensitive substring match on counterpart or conversation name.

        An empty query returns every conversation in store order.
        """
        snapshots = self.conversations
        if not query:
            return snapshots

        needle = query.lower()
        results = []
        for conversation in snapshots:
            partner = self.counterpart(conversation)
            if partner is not None and needle in partner.display_name.lower():
                results.append(conversation)
            elif conversation.name and needle in conversation.name.lower():
                results.append(conversation)
        return results

    def stats(self) -> ConversationStats:
        """Message, conversation and online-counterpart counts."""
        local_id = self._local_profile.id if self._local_profile else None
        return ConversationStats(
            total_messages=sum(len(c.messages) for c in self._conversations.values()),
            total_conversations=len(self._conversations),
            online_participants=self._presence.online_count(exclude=local_id),
        )

    # Mutations

    def update_local_profile(self, profile: Profile) -> None:
        """Show an edited local profile in every conversation."""
        if self._local_profile is None or profile.id != self._local_profile.id:
            return
        self._local_profile = profile
        for conversation in self._conversations.values():
            conversation.participants = self._with_local_profile(conversation.participants)

    def send(self, conversation_id: str, content: str) -> Message:
        """Append a local text message immediately and hand it off.

        The message is visible in the store before this returns, in PENDING
        state. The persistence hand-off runs in the background and moves it
        to SENT or FAILED; a failure never removes the message.

        Raises:
            SessionStateError: If the store has not been loaded
            ConversationNotFoundError: If the conversation is unknown
            ValueError: If the content is blank
        """
        if self._principal is None or self._local_profile is None:
            raise SessionStateError("Cannot send without an active session")
        if conversation_id not in self._conversations:
            raise ConversationNotFoundError(f"Unknown conversation: {conversation_id}")
        text = content.strip()
        if not text:
            raise ValueError("Cannot send an empty message")

        message = Message.text(
            self._principal.id,
            text,
            sender_name=self._local_profile.display_name,
            delivery=DeliveryState.PENDING,
        )
        self._insert(conversation_id, message)
        metrics.record_message_sent(message.kind.value)

        token = self._generation.current
        task = asyncio.get_running_loop().create_task(
            self._deliver(conversation_id, message, token)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

        logger.info(
            "message_sent",
            conversation_id=conversation_id,
            message_id=message.id,
        )
        return message

    async def _deliver(self, conversation_id: str, message: Message, token: int) -> None:
        """Persist a sent message and record the outcome."""
        error: DeliveryError | None = None
        try:
            await asyncio.wait_for(
                self._service.persist_message(conversation_id, message),
                timeout=self._persist_timeout,
            )
        except TimeoutError as e:
            error = DeliveryError(
                f"Persisting message {message.id} timed out", cause=e
            )
        except DeliveryError as e:
            error = e
        except Exception as e:
            error = DeliveryError(str(e), cause=e)

        if not self._generation.is_current(token):
            metrics.record_delivery("stale")
            logger.info(
                "delivery_completion_stale",
                conversation_id=conversation_id,
                message_id=message.id,
            )
            return

        if error is None:
            self._set_delivery(conversation_id, message.id, DeliveryState.SENT)
            metrics.record_delivery("sent")
            logger.debug("message_delivered", message_id=message.id)
        else:
            self._set_delivery(conversation_id, message.id, DeliveryState.FAILED)
            metrics.record_delivery("failed")
            logger.warning(
                "message_delivery_failed",
                conversation_id=conversation_id,
                message_id=message.id,
                error=error.message,
            )

    def _set_delivery(
        self, conversation_id: str, message_id: str, state: DeliveryState
    ) -> None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return
        messages = conversation.messages
        for index in range(len(messages) - 1, -1, -1):
            if messages[index].id == message_id:
                if messages[index].delivery == DeliveryState.PENDING:
                    messages[index] = messages[index].with_delivery(state)
                return

    def apply_remote(self, conversation_id: str, message: Message) -> bool:
        """Merge a message from the live feed.

        Returns:
            True if inserted, False if a message with the same ID is present

        Raises:
            MalformedEventError: If the conversation is unknown or the sender
                is not one of its participants
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise MalformedEventError(f"Unknown conversation: {conversation_id}")

        if message.id in self._message_ids[conversation_id]:
            logger.debug(
                "duplicate_message_discarded",
                conversation_id=conversation_id,
                message_id=message.id,
            )
            return False

        if not conversation.has_participant(message.sender_id):
            raise MalformedEventError(
                f"Sender {message.sender_id} is not in conversation {conversation_id}"
            )

        self._insert(conversation_id, message.with_delivery(DeliveryState.SENT))
        logger.debug(
            "remote_message_applied",
            conversation_id=conversation_id,
            message_id=message.id,
        )
        return True
