"""Identity session: the authenticated principal and how it changes.

Wraps the account service's identity operations. Requests are validated
before any remote call, collaborator failures are normalised to
``AuthError``, and every change of principal is published to listeners
rather than returned.
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from parley.errors import AuthError, AuthErrorKind
from parley.generation import SessionGeneration
from parley.identity.models import (
    LoginRequest,
    Principal,
    RegisterRequest,
    ResendRequest,
    VerifyRequest,
)
from parley.observability import metrics
from parley.observability.logging import get_logger

if TYPE_CHECKING:
    from parley.service.base import AccountDataService

logger = get_logger(__name__)

PrincipalListener = Callable[[Principal | None], Awaitable[None] | None]
RequestT = TypeVar("RequestT", bound=BaseModel)


class IdentitySession:
    """Tracks the authenticated principal.

    ``login`` and ``verify_code`` publish the new principal through
    ``on_change`` listeners once the service responds. A completion that
    arrives after a logout started is ignored.
    """

    def __init__(
        self,
        service: "AccountDataService",
        generation: SessionGeneration,
        *,
        endpoint: str = "",
        redirect_url: str = "",
    ) -> None:
        """Initialize a signed-out identity session.

        Args:
            service: Account service performing the identity operations
            generation: Shared session generation counter
            endpoint: Opaque service endpoint, kept for collaborators
            redirect_url: Where verification emails send the user back to
        """
        self._service = service
        self._generation = generation
        self.endpoint = endpoint
        self.redirect_url = redirect_url

        self._principal: Principal | None = None
        self._pending_email: str | None = None
        self._listeners: list[PrincipalListener] = []

    @property
    def principal(self) -> Principal | None:
        """The authenticated principal, if any."""
        return self._principal

    @property
    def pending_email(self) -> str | None:
        """Email of a registration awaiting verification."""
        return self._pending_email

    @property
    def is_authenticated(self) -> bool:
        """Whether a principal is signed in."""
        return self._principal is not None

    def on_change(self, listener: PrincipalListener) -> Callable[[], None]:
        """Register a listener for principal changes.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def _set_principal(self, principal: Principal | None) -> None:
        self._principal = principal
        self._generation.advance()
        for listener in list(self._listeners):
            result = listener(principal)
            if inspect.isawaitable(result):
                await result

    def _validate(self, operation: str, model: type[RequestT], **data: Any) -> RequestT:
        try:
            return model(**data)
        except ValidationError as e:
            metrics.record_auth(operation, "invalid_input")
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise AuthError(
                f"Invalid {', '.join(fields) or 'input'}",
                AuthErrorKind.INVALID_INPUT,
                cause=e,
            ) from e

    async def _call(self, operation: str, call: Awaitable[Any]) -> Any:
        """Await a service call, normalising failures to AuthError."""
        try:
            result = await call
        except AuthError as e:
            metrics.record_auth(operation, e.kind.value)
            logger.info("auth_failed", operation=operation, kind=e.kind.value)
            raise
        except Exception as e:
            metrics.record_auth(operation, AuthErrorKind.NETWORK.value)
            logger.warning("auth_service_error", operation=operation, error=str(e))
            raise AuthError(
                "Account service unavailable, please try again",
                AuthErrorKind.NETWORK,
                cause=e,
            ) from e
        metrics.record_auth(operation, "success")
        return result

    async def login(self, email: str, password: str) -> None:
        """Sign in with email and password.

        Raises:
            AuthError: On invalid input, wrong credentials or service failure
        """
        request = self._validate("login", LoginRequest, email=email, password=password)
        token = self._generation.current
        principal = await self._call(
            "login", self._service.sign_in(request.email, request.password)
        )
        if not self._generation.is_current(token):
            logger.info("login_completion_stale", principal_id=principal.id)
            return

        logger.info("login_succeeded", principal_id=principal.id)
        await self._set_principal(principal)

    async def register(self, full_name: str, email: str, password: str) -> None:
        """Create an account; a verification code is sent out of band.

        Raises:
            AuthError: On invalid input or service failure
        """
        request = self._validate(
            "register",
            RegisterRequest,
            full_name=full_name,
            email=email,
            password=password,
        )
        token = self._generation.current
        await self._call(
            "register",
            self._service.sign_up(
                request.email,
                request.password,
                {"full_name": request.full_name, "email_redirect_to": self.redirect_url},
            ),
        )
        if not self._generation.is_current(token):
            logger.info("register_completion_stale")
            return

        self._pending_email = request.email
        logger.info("registration_pending_verification")

    async def verify_code(self, pending_email: str, code: str) -> None:
        """Confirm a registration; the principal is published to listeners.

        The pending email is kept on failure so the user can retry.

        Raises:
            AuthError: On a malformed, wrong or expired code or service failure
        """
        request = self._validate("verify", VerifyRequest, email=pending_email, code=code)
        token = self._generation.current
        principal = await self._call(
            "verify", self._service.verify(request.email, request.code)
        )
        if not self._generation.is_current(token):
            logger.info("verify_completion_stale", principal_id=principal.id)
            return

        self._pending_email = None
        logger.info("verification_succeeded", principal_id=principal.id)
        await self._set_principal(principal)

    async def resend_code(self, pending_email: str) -> None:
        """Request a fresh verification code.

        Raises:
            AuthError: On invalid input or service failure
        """
        request = self._validate("resend", ResendRequest, email=pending_email)
        await self._call("resend", self._service.resend(request.email))
        logger.info("verification_code_resent")

    async def restore(self) -> Principal | None:
        """Adopt a principal whose remote session is still valid.

        Lookup failures are logged and treated as "no session".
        """
        token = self._generation.current
        try:
            principal = await self._service.current_principal()
        except Exception as e:
            logger.warning("session_restore_failed", error=str(e))
            return None

        if principal is None or not self._generation.is_current(token):
            return None

        logger.info("session_restored", principal_id=principal.id)
        await self._set_principal(principal)
        return principal

    async def logout(self) -> AuthError | None:
        """Sign out locally, whatever the remote sign-out does.

        In-flight operations are invalidated before the remote call, so their
        completions cannot resurrect the session.

        Returns:
            The remote sign-out failure, if there was one
        """
        self._generation.advance()
        self._pending_email = None

        failure: AuthError | None = None
        try:
            await self._call("logout", self._service.sign_out())
        except AuthError as e:
            failure = e
            logger.warning("remote_sign_out_failed", kind=e.kind.value)

        if self._principal is not None:
            logger.info("logged_out", principal_id=self._principal.id)
            await self._set_principal(None)
        return failure

    def clear_pending(self) -> None:
        """Abandon a registration awaiting verification."""
        self._pending_email = None
