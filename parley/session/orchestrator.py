"""Session orchestrator: the top-level mode state machine.

Drives the identity session through login, register and verify, and ties
the lifetime of the per-session conversation store, presence tracker and
live event intake to the ACTIVE mode:

- entering ACTIVE resolves the profile, loads conversations and subscribes
  the intake
- leaving ACTIVE (only via logout or shutdown) unsubscribes the intake and
  discards store and presence state
"""

from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any

import structlog

from parley.config import get_settings
from parley.config.settings import Settings
from parley.conversation.models import Conversation, Message
from parley.conversation.store import ConversationStats, ConversationStore
from parley.errors import AuthError, SessionStateError
from parley.events.intake import LiveEventIntake
from parley.generation import SessionGeneration
from parley.identity.models import Principal
from parley.identity.session import IdentitySession
from parley.observability import metrics
from parley.observability.logging import get_logger
from parley.presence.tracker import PresenceTracker
from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile, ProfileUpdate
from parley.profile.resolver import ProfileResolver
from parley.service.base import AccountDataService
from parley.session.models import SessionMode, can_transition

logger = get_logger(__name__)


@dataclass
class ActiveSession:
    """Everything that lives exactly as long as ACTIVE mode."""

    principal: Principal
    generation: int
    store: ConversationStore
    presence: PresenceTracker
    intake: LiveEventIntake
    resources: AsyncExitStack


class SessionOrchestrator:
    """Owns the session mode and coordinates identity with session state.

    Presentation code reads snapshots from here and invokes user actions;
    every action checks that the current mode allows it.
    """

    def __init__(
        self,
        service: AccountDataService,
        settings: Settings | None = None,
    ) -> None:
        """Initialize in LOGIN mode with no session.

        Args:
            service: Account & Data Service collaborator
            settings: Configuration (loaded from config/ when omitted)
        """
        self._service = service
        self._settings = settings or get_settings()
        self._generation = SessionGeneration()

        self.identity = IdentitySession(
            service,
            self._generation,
            endpoint=self._settings.service.endpoint,
            redirect_url=self._settings.service.redirect_url,
        )
        self.identity.on_change(self._on_principal_changed)
        self._resolver = ProfileResolver.from_config(self._settings.session)

        self._mode = SessionMode.LOGIN
        self._active: ActiveSession | None = None

    # Mode machine

    @property
    def mode(self) -> SessionMode:
        """Current top-level mode."""
        return self._mode

    @property
    def generation(self) -> int:
        """Current session generation."""
        return self._generation.current

    def _transition(self, target: SessionMode) -> None:
        if target == self._mode:
            return
        if not can_transition(self._mode, target):
            raise SessionStateError(
                f"Cannot move from {self._mode.value} to {target.value}"
            )
        logger.info("session_mode_changed", previous=self._mode.value, mode=target.value)
        self._mode = target

    def _require(self, *modes: SessionMode) -> None:
        if self._mode not in modes:
            allowed = ", ".join(m.value for m in modes)
            raise SessionStateError(
                f"Operation requires mode {allowed}; current mode is {self._mode.value}"
            )

    def show_register(self) -> None:
        """User chose to create an account."""
        self._require(SessionMode.LOGIN)
        self._transition(SessionMode.REGISTER)

    def show_login(self) -> None:
        """User chose to sign in with an existing account."""
        self._require(SessionMode.REGISTER, SessionMode.LOGIN)
        self._transition(SessionMode.LOGIN)

    # Identity actions

    async def start(self) -> SessionMode:
        """Resume a session the account service still considers valid."""
        self._require(SessionMode.LOGIN)
        await self.identity.restore()
        return self._mode

    async def login(self, email: str, password: str) -> None:
        """Sign in; on success the mode becomes ACTIVE.

        Raises:
            AuthError: Mode stays LOGIN and nothing is mutated
            SessionStateError: If not in LOGIN mode
        """
        self._require(SessionMode.LOGIN)
        await self.identity.login(email, password)

    async def register(self, full_name: str, email: str, password: str) -> None:
        """Create an account; on success the mode becomes VERIFY.

        Raises:
            AuthError: Mode stays REGISTER
            SessionStateError: If not in REGISTER mode
        """
        self._require(SessionMode.REGISTER)
        await self.identity.register(full_name, email, password)
        if self._mode == SessionMode.REGISTER and self.identity.pending_email:
            self._transition(SessionMode.VERIFY)

    async def verify_code(self, code: str, pending_email: str | None = None) -> None:
        """Submit the emailed code; on success the mode becomes ACTIVE.

        Raises:
            AuthError: Mode stays VERIFY and the pending email is kept
            SessionStateError: If not in VERIFY mode or nothing is pending
        """
        self._require(SessionMode.VERIFY)
        email = pending_email or self.identity.pending_email
        if not email:
            raise SessionStateError("No registration is awaiting verification")
        await self.identity.verify_code(email, code)

    async def resend_code(self) -> None:
        """Ask for a new verification code.

        Raises:
            AuthError: Mode is unchanged
        """
        self._require(SessionMode.VERIFY)
        email = self.identity.pending_email
        if not email:
            raise SessionStateError("No registration is awaiting verification")
        await self.identity.resend_code(email)

    async def logout(self) -> AuthError | None:
        """Return to LOGIN, discarding the session whatever the service says.

        Returns:
            The remote sign-out failure, if any (non-fatal)
        """
        if self._mode == SessionMode.NONE:
            raise SessionStateError("Session has shut down")
        failure = await self.identity.logout()
        await self._leave_active()
        return failure

    async def shutdown(self) -> None:
        """Tear down any session and enter the terminal NONE mode."""
        if self._mode == SessionMode.NONE:
            return
        self._generation.advance()
        await self._leave_active()
        self._transition(SessionMode.NONE)

    # Session lifecycle

    async def _on_principal_changed(self, principal: Principal | None) -> None:
        if principal is None:
            await self._leave_active()
        else:
            await self._enter_active(principal)

    def _is_current(self, token: int) -> bool:
        return self._generation.is_current(token)

    async def _enter_active(self, principal: Principal) -> None:
        if self._mode == SessionMode.NONE:
            return
        if self._active is not None:
            await self._release(self._active)
            self._active = None

        token = self._generation.current
        profile = self._resolver.resolve(principal)

        try:
            details = await self._service.fetch_profile(principal.id)
        except Exception as e:
            logger.warning("profile_refresh_failed", principal_id=principal.id, error=str(e))
            details = None
        if not self._is_current(token):
            return
        if details is not None:
            profile = self._resolver.resolve(principal, details)

        presence = PresenceTracker()
        store = ConversationStore(
            self._service,
            presence,
            self._generation,
            single_pane=self._settings.session.single_pane,
            persist_timeout=self._settings.service.persist_timeout_seconds,
        )
        await store.load_initial(principal, profile)
        if not self._is_current(token):
            store.close()
            presence.clear()
            return

        intake = LiveEventIntake(
            self._service,
            store,
            presence,
            self._generation,
            queue_size=self._settings.session.event_queue_size,
        )
        resources = AsyncExitStack()
        try:
            await resources.enter_async_context(intake.subscription())
        except Exception as e:
            # The session still works without live updates
            logger.error(
                "live_intake_subscribe_failed",
                principal_id=principal.id,
                error=str(e),
            )
        if not self._is_current(token):
            await resources.aclose()
            store.close()
            presence.clear()
            return

        self._active = ActiveSession(
            principal=principal,
            generation=token,
            store=store,
            presence=presence,
            intake=intake,
            resources=resources,
        )
        structlog.contextvars.bind_contextvars(session_generation=token)
        metrics.session_started()
        self._transition(SessionMode.ACTIVE)

    async def _release(self, active: ActiveSession) -> None:
        await active.resources.aclose()
        active.store.close()
        active.presence.clear()
        metrics.session_ended()
        structlog.contextvars.unbind_contextvars("session_generation")
        logger.info("session_torn_down", principal_id=active.principal.id)

    async def _leave_active(self) -> None:
        active, self._active = self._active, None
        if active is not None:
            await self._release(active)
        self._resolver.clear()
        self.identity.clear_pending()
        if self._mode != SessionMode.NONE:
            self._transition(SessionMode.LOGIN)

    # Read-only views

    @property
    def principal(self) -> Principal | None:
        """Authenticated principal, if any."""
        return self.identity.principal

    @property
    def pending_email(self) -> str | None:
        """Email awaiting verification, if any."""
        return self.identity.pending_email

    @property
    def profile(self) -> Profile | None:
        """The local user's profile while a session is active."""
        return self._resolver.current if self._active is not None else None

    @property
    def store(self) -> ConversationStore | None:
        """The active session's conversation store."""
        return self._active.store if self._active is not None else None

    @property
    def intake(self) -> LiveEventIntake | None:
        """The active session's live event intake."""
        return self._active.intake if self._active is not None else None

    @property
    def live_updates(self) -> bool:
        """Whether the live feed is subscribed; false after a failed subscribe."""
        return self._active is not None and self._active.intake.subscribed

    @property
    def conversations(self) -> list[Conversation]:
        """Snapshots of the loaded conversations (empty without a session)."""
        return self._active.store.conversations if self._active is not None else []

    @property
    def focused(self) -> Conversation | None:
        """The focused conversation, if any."""
        return self._active.store.focused if self._active is not None else None

    @property
    def presence(self) -> dict[str, PresenceStatus]:
        """Copy of the presence map (empty without a session)."""
        return self._active.presence.snapshot() if self._active is not None else {}

    def status_of(self, participant_id: str) -> PresenceStatus:
        """Presence of a participant; offline without a session."""
        if self._active is None:
            return PresenceStatus.OFFLINE
        return self._active.presence.status_of(participant_id)

    def search(self, query: str) -> list[Conversation]:
        """Filter conversations by counterpart or conversation name."""
        if self._active is None:
            return []
        return self._active.store.search(query)

    def counterpart(self, conversation: Conversation) -> Profile | None:
        """The other member of a two-party conversation."""
        if self._active is None:
            return None
        return self._active.store.counterpart(conversation)

    def stats(self) -> ConversationStats:
        """Message statistics for the active session."""
        if self._active is None:
            return ConversationStats()
        return self._active.store.stats()

    # Session actions

    def _require_active(self) -> ActiveSession:
        self._require(SessionMode.ACTIVE)
        assert self._active is not None
        return self._active

    def send(self, conversation_id: str, content: str) -> Message:
        """Send a text message with local echo."""
        return self._require_active().store.send(conversation_id, content)

    def select(self, conversation_id: str | None) -> None:
        """Focus a conversation."""
        self._require_active().store.select(conversation_id)

    def update_profile(self, partial: ProfileUpdate | dict[str, Any]) -> Profile:
        """Apply a profile edit (last write wins)."""
        active = self._require_active()
        profile = self._resolver.update(partial)
        active.store.update_local_profile(profile)
        active.presence.set_status(profile.id, profile.status)
        return profile
