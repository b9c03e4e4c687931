"""Bootstrap module for quick Parley setup.

Wires logging and metrics from configuration and builds a session
orchestrator, by default against the in-memory account service. Intended for
notebooks, demos and tests.

Example usage:

    from parley.bootstrap import bootstrap

    orchestrator, ctx = bootstrap(seed_account=("a@x.com", "secret1"))

    await orchestrator.login("a@x.com", "secret1")
    orchestrator.send(ctx.conversation_id, "hi")
"""

from dataclasses import dataclass, field

from parley.config import get_settings
from parley.config.settings import Settings
from parley.conversation.models import Conversation, Message
from parley.identity.models import Principal
from parley.observability.logging import get_logger, setup_logging
from parley.observability.metrics import setup_metrics
from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile
from parley.service.base import AccountDataService
from parley.service.inmemory import InMemoryAccountDataService
from parley.session.orchestrator import SessionOrchestrator

logger = get_logger(__name__)


@dataclass
class BootstrapContext:
    """What bootstrap created, for direct access in demos and tests."""

    settings: Settings
    service: AccountDataService
    principal: Principal | None = None
    conversation_id: str | None = None
    peers: list[Profile] = field(default_factory=list)


def bootstrap(
    service: AccountDataService | None = None,
    settings: Settings | None = None,
    seed_account: tuple[str, str] | None = None,
    peer_name: str = "Alex",
) -> tuple[SessionOrchestrator, BootstrapContext]:
    """Build a configured SessionOrchestrator.

    Args:
        service: Account service to use (default: in-memory)
        settings: Configuration (default: loaded from config/)
        seed_account: (email, password) to pre-register on the in-memory
            service, together with one conversation with a peer
        peer_name: Display name of the seeded peer

    Returns:
        Tuple of (SessionOrchestrator, BootstrapContext)
    """
    settings = settings or get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
        app_name=settings.app_name,
    )
    setup_metrics(enabled=settings.observability.metrics.enabled)

    service = service or InMemoryAccountDataService()
    ctx = BootstrapContext(settings=settings, service=service)

    if seed_account is not None:
        if not isinstance(service, InMemoryAccountDataService):
            raise ValueError("Seeding is only supported on the in-memory service")
        email, password = seed_account
        principal = service.add_account(email, password)
        peer = Profile(
            id=f"peer-{peer_name.lower()}",
            display_name=peer_name,
            status=PresenceStatus.ONLINE,
        )
        conversation = Conversation(
            participants=[Profile(id=principal.id, display_name=email), peer],
            messages=[Message.text(peer.id, "Hey there!", sender_name=peer.display_name)],
        )
        service.add_conversation(conversation)
        ctx.principal = principal
        ctx.conversation_id = conversation.id
        ctx.peers.append(peer)
        logger.info("bootstrap_seeded", conversation_id=conversation.id)

    orchestrator = SessionOrchestrator(service, settings)
    logger.info("bootstrap_complete", service=type(service).__name__)
    return orchestrator, ctx
