"""Live event intake.

Bridges the account service's callback-based realtime feed into session
state. The feed callback only enqueues; a single drain task applies events
in arrival order, so all mutations happen on the event loop between awaits.

Lifecycle:
- ``start`` subscribes exactly once and launches the drain task
- ``stop`` unsubscribes exactly once and discards queued events
- ``subscription()`` scopes both to an ``async with`` block
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from parley.conversation.store import ConversationStore
from parley.errors import MalformedEventError
from parley.events.models import MessageEvent, PresenceEvent, parse_event
from parley.generation import SessionGeneration
from parley.observability import metrics
from parley.observability.logging import get_logger
from parley.presence.tracker import PresenceTracker

if TYPE_CHECKING:
    from parley.service.base import AccountDataService, SubscriptionHandle

logger = get_logger(__name__)


class LiveEventIntake:
    """Owns the single live feed subscription of an active session."""

    def __init__(
        self,
        service: "AccountDataService",
        store: ConversationStore,
        presence: PresenceTracker,
        generation: SessionGeneration,
        *,
        queue_size: int = 1000,
    ) -> None:
        """Initialize an unsubscribed intake.

        Args:
            service: Source of the realtime feed
            store: Receives message events
            presence: Receives presence events
            generation: Session generation; events are dropped once it moves
            queue_size: Maximum buffered events before new ones are dropped
        """
        self._service = service
        self._store = store
        self._presence = presence
        self._generation = generation
        self._queue_size = queue_size

        self._handle: "SubscriptionHandle | None" = None
        self._token: int | None = None
        self._queue: asyncio.Queue[Any] | None = None
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def subscribed(self) -> bool:
        """Whether the feed subscription is currently held."""
        return self._handle is not None

    async def start(self) -> None:
        """Subscribe to the feed and start draining events."""
        if self.subscribed or self._queue is not None:
            logger.warning("live_intake_already_subscribed")
            return

        self._token = self._generation.current
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        try:
            self._handle = await self._service.subscribe(self.offer)
        except BaseException:
            self._queue = None
            self._token = None
            raise
        self._drain_task = asyncio.create_task(self._drain())

        logger.info("live_intake_subscribed", handle_id=self._handle.id)

    async def stop(self) -> None:
        """Unsubscribe from the feed and drop anything still queued.

        Safe to call more than once; only the first call unsubscribes.
        """
        handle, self._handle = self._handle, None
        drain_task, self._drain_task = self._drain_task, None
        self._queue = None
        self._token = None

        if drain_task is not None:
            drain_task.cancel()
            try:
                await drain_task
            except asyncio.CancelledError:
                pass

        if handle is None:
            return

        try:
            await self._service.unsubscribe(handle)
        except Exception as e:
            logger.warning(
                "live_intake_unsubscribe_failed",
                handle_id=handle.id,
                error=str(e),
            )
        logger.info("live_intake_unsubscribed", handle_id=handle.id)

    @asynccontextmanager
    async def subscription(self) -> AsyncIterator["LiveEventIntake"]:
        """Hold the feed subscription for the duration of the block."""
        await self.start()
        try:
            yield self
        finally:
            await self.stop()

    def offer(self, payload: Any) -> bool:
        """Feed callback: queue a raw event for application.

        Returns:
            False if the event was dropped (not subscribed, stale or full)
        """
        queue = self._queue
        if queue is None or not self._is_current():
            metrics.record_dropped_event("stale")
            logger.debug("live_event_after_teardown_dropped")
            return False
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            metrics.record_dropped_event("overflow")
            logger.warning("live_event_queue_full", queue_size=self._queue_size)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued event has been applied."""
        if self._queue is not None:
            await self._queue.join()

    async def _drain(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            payload = await queue.get()
            try:
                self.apply(payload)
            finally:
                queue.task_done()

    def _is_current(self) -> bool:
        return self._token is not None and self._generation.is_current(self._token)

    def apply(self, payload: Any) -> bool:
        """Decode and route one event.

        Malformed events are logged and dropped; they never raise.

        Returns:
            True if the event changed session state
        """
        if not self._is_current():
            metrics.record_dropped_event("stale")
            return False

        try:
            event = parse_event(payload)
            if isinstance(event, MessageEvent):
                changed = self._store.apply_remote(event.conversation_id, event.message)
            else:
                changed = self._apply_presence(event)
        except MalformedEventError as e:
            metrics.record_dropped_event("malformed")
            logger.warning("live_event_malformed", error=e.message)
            return False

        if changed:
            metrics.record_event(event.kind)
        return changed

    def _apply_presence(self, event: PresenceEvent) -> bool:
        return self._presence.set_status(event.participant_id, event.status)
