"""Session generation counter.

Every asynchronous continuation captures the generation when it is issued
and becomes a no-op if the generation has moved on by the time it completes.
The counter advances whenever the authenticated principal changes and at the
start of every logout.
"""


class SessionGeneration:
    """Monotonic counter identifying the current session incarnation."""

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        """The generation a new operation should capture."""
        return self._value

    def advance(self) -> int:
        """Invalidate every continuation issued so far."""
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        """Whether a continuation issued at ``token`` may still mutate state."""
        return token == self._value
