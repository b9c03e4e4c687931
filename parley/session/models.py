"""Session mode model and transition table."""

from enum import Enum


class SessionMode(str, Enum):
    """Which top-level surface is live.

    NONE is terminal (application shutdown).
    """

    LOGIN = "login"
    REGISTER = "register"
    VERIFY = "verify"
    ACTIVE = "active"
    NONE = "none"


# register never leads straight to active; verify is mandatory in between
ALLOWED_TRANSITIONS: dict[SessionMode, frozenset[SessionMode]] = {
    SessionMode.LOGIN: frozenset({SessionMode.REGISTER, SessionMode.ACTIVE, SessionMode.NONE}),
    SessionMode.REGISTER: frozenset({SessionMode.LOGIN, SessionMode.VERIFY, SessionMode.NONE}),
    SessionMode.VERIFY: frozenset({SessionMode.ACTIVE, SessionMode.LOGIN, SessionMode.NONE}),
    SessionMode.ACTIVE: frozenset({SessionMode.LOGIN, SessionMode.NONE}),
    SessionMode.NONE: frozenset(),
}


def can_transition(current: SessionMode, target: SessionMode) -> bool:
    """Whether the mode machine allows ``current`` -> ``target``."""
    return target in ALLOWED_TRANSITIONS[current]
