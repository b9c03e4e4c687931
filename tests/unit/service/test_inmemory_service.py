"""Tests for InMemoryAccountDataService."""

import pytest

from parley.conversation.models import DeliveryState, Message
from parley.errors import AuthError, AuthErrorKind, DeliveryError
from parley.events.models import MessageEvent
from parley.identity.models import Principal
from parley.profile.models import Profile
from parley.service import AccountDataService, InMemoryAccountDataService
from tests.factories.conversation import make_conversation


class TestAccounts:
    """Tests for the identity operations."""

    @pytest.mark.asyncio
    async def test_sign_in_case_insensitive_email(
        self, service: InMemoryAccountDataService
    ) -> None:
        """Should find accounts regardless of email case."""
        principal = service.add_account("a@x.com", "secret1")
        assert await service.sign_in("A@X.com", "secret1") == principal

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, service: InMemoryAccountDataService) -> None:
        """Should reject a wrong password."""
        service.add_account("a@x.com", "secret1")

        with pytest.raises(AuthError) as exc_info:
            await service.sign_in("a@x.com", "nope123")

        assert exc_info.value.kind == AuthErrorKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_sign_up_then_verify(self, service: InMemoryAccountDataService) -> None:
        """Should create the account and profile details on verification."""
        await service.sign_up("jane@x.com", "secret1", {"full_name": "Jane Doe"})

        principal = await service.verify("jane@x.com", "123456")

        assert principal.email == "jane@x.com"
        assert principal.email_verified is True
        details = await service.fetch_profile(principal.id)
        assert details is not None
        assert details.display_name == "Jane Doe"
        assert await service.current_principal() == principal

    @pytest.mark.asyncio
    async def test_custom_code(self) -> None:
        """Should accept only the configured code."""
        service = InMemoryAccountDataService(verification_code="654321")
        await service.sign_up("jane@x.com", "secret1", {})

        with pytest.raises(AuthError):
            await service.verify("jane@x.com", "123456")
        assert (await service.verify("jane@x.com", "654321")).email == "jane@x.com"

    @pytest.mark.asyncio
    async def test_verify_without_registration(
        self, service: InMemoryAccountDataService
    ) -> None:
        """Should reject codes for unknown registrations."""
        with pytest.raises(AuthError) as exc_info:
            await service.verify("ghost@x.com", "123456")

        assert exc_info.value.kind == AuthErrorKind.INVALID_CODE

    @pytest.mark.asyncio
    async def test_sign_out(self, service: InMemoryAccountDataService) -> None:
        """Should forget the current principal."""
        service.add_account("a@x.com", "secret1")
        await service.sign_in("a@x.com", "secret1")

        await service.sign_out()

        assert await service.current_principal() is None

    @pytest.mark.asyncio
    async def test_unavailable(self, service: InMemoryAccountDataService) -> None:
        """Should fail every remote call while unavailable."""
        service.unavailable = True

        with pytest.raises(ConnectionError):
            await service.sign_in("a@x.com", "secret1")


class TestMessaging:
    """Tests for persistence, fan-out and conversation listing."""

    @pytest.mark.asyncio
    async def test_persist_echoes_to_subscribers(
        self, service: InMemoryAccountDataService
    ) -> None:
        """Should fan the persisted message back through the feed."""
        received: list[object] = []
        await service.subscribe(received.append)
        message = Message.text("alice", "hi", delivery=DeliveryState.PENDING)

        ack = await service.persist_message("c1", message)

        assert ack.message_id == message.id
        assert len(received) == 1
        event = received[0]
        assert isinstance(event, MessageEvent)
        assert event.message.id == message.id
        assert event.message.delivery == DeliveryState.SENT

    @pytest.mark.asyncio
    async def test_echo_disabled(self) -> None:
        """Should not fan out when echo is off."""
        service = InMemoryAccountDataService(echo_messages=False)
        received: list[object] = []
        await service.subscribe(received.append)

        await service.persist_message("c1", Message.text("alice", "hi"))

        assert received == []
        assert len(service.persisted) == 1

    @pytest.mark.asyncio
    async def test_persist_failure(self, service: InMemoryAccountDataService) -> None:
        """Should raise DeliveryError when persistence is failing."""
        service.fail_persist = True

        with pytest.raises(DeliveryError):
            await service.persist_message("c1", Message.text("alice", "hi"))

    @pytest.mark.asyncio
    async def test_unsubscribe(self, service: InMemoryAccountDataService) -> None:
        """Should stop delivering to removed subscribers."""
        received: list[object] = []
        handle = await service.subscribe(received.append)

        await service.unsubscribe(handle)
        await service.unsubscribe(handle)
        service.emit({"kind": "presence", "participant_id": "bob", "status": "away"})

        assert received == []
        assert service.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_list_conversations_filtered_and_copied(
        self, service: InMemoryAccountDataService
    ) -> None:
        """Should return copies of the principal's conversations only."""
        alice = Profile(id="alice", display_name="alice")
        bob = Profile(id="bob", display_name="Bob")
        carol = Profile(id="carol", display_name="Carol")
        service.add_conversation(make_conversation("c1", alice, bob))
        service.add_conversation(make_conversation("c2", bob, carol))

        listed = await service.list_conversations(Principal(id="alice"))
        listed[0].name = "changed"

        assert [c.id for c in listed] == ["c1"]
        again = await service.list_conversations(Principal(id="alice"))
        assert again[0].name is None


class TestDefaults:
    """Tests for the optional hooks of the abstract service."""

    @pytest.mark.asyncio
    async def test_optional_hooks_have_safe_defaults(self) -> None:
        """Should provide no session, no details and no conversations."""

        class Minimal(AccountDataService):
            async def sign_in(self, email, password):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def sign_up(self, email, password, attributes):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def verify(self, email, code):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def resend(self, email):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def sign_out(self):  # type: ignore[no-untyped-def]
                return None

            async def persist_message(self, conversation_id, message):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def subscribe(self, on_event):  # type: ignore[no-untyped-def]
                raise NotImplementedError

            async def unsubscribe(self, handle):  # type: ignore[no-untyped-def]
                return None

        service = Minimal()

        assert await service.current_principal() is None
        assert await service.fetch_profile("p") is None
        assert await service.list_conversations(Principal(id="p")) == []
