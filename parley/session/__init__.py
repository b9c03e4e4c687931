"""Session orchestration: the mode state machine and session lifecycle."""

from parley.session.models import ALLOWED_TRANSITIONS, SessionMode, can_transition
from parley.session.orchestrator import ActiveSession, SessionOrchestrator

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ActiveSession",
    "SessionMode",
    "SessionOrchestrator",
    "can_transition",
]
