"""Tests for SessionGeneration and the error hierarchy."""

from parley.errors import AuthError, AuthErrorKind, DeliveryError, ParleyError
from parley.generation import SessionGeneration


class TestSessionGeneration:
    """Tests for the stale-completion counter."""

    def test_token_current_until_advanced(self) -> None:
        """Should invalidate tokens issued before an advance."""
        generation = SessionGeneration()
        token = generation.current

        assert generation.is_current(token)
        generation.advance()
        assert not generation.is_current(token)
        assert generation.is_current(generation.current)

    def test_advance_is_monotonic(self) -> None:
        """Should never reuse a value."""
        generation = SessionGeneration()
        values = [generation.advance() for _ in range(3)]
        assert values == [1, 2, 3]


class TestErrors:
    """Tests for the error hierarchy."""

    def test_auth_error_defaults(self) -> None:
        """Should default to a service failure."""
        error = AuthError("nope")

        assert isinstance(error, ParleyError)
        assert error.kind == AuthErrorKind.SERVICE
        assert error.message == "nope"
        assert str(error) == "nope"

    def test_cause_kept(self) -> None:
        """Should keep the underlying exception."""
        cause = TimeoutError()
        assert DeliveryError("late", cause=cause).cause is cause
