"""Live event feed: event models and the intake that applies them."""

from parley.events.intake import LiveEventIntake
from parley.events.models import (
    EventKind,
    LiveEvent,
    MessageEvent,
    PresenceEvent,
    parse_event,
)

__all__ = [
    "EventKind",
    "LiveEvent",
    "LiveEventIntake",
    "MessageEvent",
    "PresenceEvent",
    "parse_event",
]
