"""Identity domain models.

Contains the provider-issued principal and the validated request shapes for
each identity operation.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
CODE_PATTERN = r"^\d{6}$"
MIN_PASSWORD_LENGTH = 6


class Principal(BaseModel):
    """The authenticated identity as issued by the account service.

    Immutable; replaced wholesale on sign-in and sign-out.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider-issued identifier")
    email: str = Field(default="", description="Sign-in email")
    email_verified: bool | None = Field(
        default=None, description="Whether the provider confirmed the email"
    )
    created_at: datetime | None = Field(
        default=None, description="Account creation time"
    )


class LoginRequest(BaseModel):
    """Credentials submitted on the login surface."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class RegisterRequest(BaseModel):
    """Account details submitted on the register surface."""

    full_name: str = Field(..., min_length=2)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class VerifyRequest(BaseModel):
    """A six-digit verification code for a pending registration."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    code: str = Field(..., pattern=CODE_PATTERN)


class ResendRequest(BaseModel):
    """Request for a fresh verification code."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
