"""Identity domain: principals and the identity session."""

from parley.identity.models import (
    LoginRequest,
    Principal,
    RegisterRequest,
    ResendRequest,
    VerifyRequest,
)
from parley.identity.session import IdentitySession, PrincipalListener

__all__ = [
    "IdentitySession",
    "LoginRequest",
    "Principal",
    "PrincipalListener",
    "RegisterRequest",
    "ResendRequest",
    "VerifyRequest",
]
