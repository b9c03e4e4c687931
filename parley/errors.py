"""Error hierarchy for the messaging core.

Every error raised by the core is recoverable. Collaborator failures that
are not already one of these types are wrapped before they reach callers.
"""

from enum import Enum


class ParleyError(Exception):
    """Base exception for all core errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class AuthErrorKind(str, Enum):
    """Why an identity operation failed."""

    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_CODE = "invalid_code"
    INVALID_INPUT = "invalid_input"
    NETWORK = "network"
    SERVICE = "service"


class AuthError(ParleyError):
    """Raised when an identity operation fails.

    Examples:
        - Wrong email/password pair
        - Invalid or expired verification code
        - Account service unreachable
    """

    def __init__(
        self,
        message: str,
        kind: AuthErrorKind = AuthErrorKind.SERVICE,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.kind = kind


class DeliveryError(ParleyError):
    """Raised when a message could not be handed to the account service.

    Never rolls back the local echo; the message is marked failed instead.
    """

    pass


class MalformedEventError(ParleyError):
    """Raised for live events that cannot be applied.

    Examples:
        - Event references an unknown conversation
        - Message sender is not a participant of the conversation
        - Payload does not decode to a known event kind
    """

    pass


class ConversationNotFoundError(ParleyError):
    """Raised when a local operation targets a conversation the store lacks."""

    pass


class SessionStateError(ParleyError):
    """Raised when an operation is not allowed in the current session mode."""

    pass
