"""Derive the local user's display profile from identity data."""

from typing import Any
from urllib.parse import quote

from parley.config.models import SessionConfig
from parley.identity.models import Principal
from parley.observability.logging import get_logger
from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile, ProfileDetails, ProfileUpdate

logger = get_logger(__name__)


def local_part(email: str) -> str | None:
    """Return the part of an address before '@', or None if there is none."""
    head = email.split("@", 1)[0].strip()
    return head or None


class ProfileResolver:
    """Builds and holds the profile of the authenticated principal.

    Resolution is deterministic for a given principal and details snapshot:
    the display name falls back to the email local-part and then to a fixed
    name, and the avatar is seeded by the email. Updates are last write wins.
    """

    def __init__(
        self,
        fallback_display_name: str = "User",
        default_bio: str = "Hello! I'm using Parley",
        avatar_base_url: str = "https://api.dicebear.com/7.x/avataaars/svg",
    ) -> None:
        self._fallback_display_name = fallback_display_name
        self._default_bio = default_bio
        self._avatar_base_url = avatar_base_url.rstrip("?")
        self._current: Profile | None = None

    @classmethod
    def from_config(cls, config: SessionConfig) -> "ProfileResolver":
        """Create a resolver from session configuration."""
        return cls(
            fallback_display_name=config.fallback_display_name,
            default_bio=config.default_bio,
            avatar_base_url=config.avatar_base_url,
        )

    @property
    def current(self) -> Profile | None:
        """The most recently resolved or updated profile."""
        return self._current

    def avatar_for(self, email: str) -> str:
        """Deterministic avatar reference for an email address."""
        return f"{self._avatar_base_url}?seed={quote(email, safe='')}"

    def resolve(
        self,
        principal: Principal,
        details: ProfileDetails | None = None,
    ) -> Profile:
        """Derive the profile for ``principal``, preferring stored details."""
        details = details or ProfileDetails()
        display_name = (
            details.display_name
            or local_part(principal.email)
            or self._fallback_display_name
        )
        profile = Profile(
            id=principal.id,
            display_name=display_name,
            email=principal.email,
            avatar_ref=details.avatar_ref or self.avatar_for(principal.email),
            status=PresenceStatus.ONLINE,
            bio=details.bio if details.bio is not None else self._default_bio,
            location=details.location if details.location is not None else "",
            joined_at=details.joined_at or principal.created_at,
        )
        self._current = profile
        logger.debug(
            "profile_resolved",
            principal_id=principal.id,
            from_details=details.display_name is not None,
        )
        return profile

    def update(self, partial: ProfileUpdate | dict[str, Any]) -> Profile:
        """Merge explicitly provided fields over the current profile.

        Raises:
            ValueError: If no profile has been resolved yet
            pydantic.ValidationError: If the edit would clear a required field
        """
        if self._current is None:
            raise ValueError("No profile to update; resolve a principal first")

        if isinstance(partial, dict):
            partial = ProfileUpdate.model_validate(partial)

        changes = partial.model_dump(exclude_unset=True)
        self._current = Profile.model_validate({**self._current.model_dump(), **changes})
        logger.info(
            "profile_updated",
            principal_id=self._current.id,
            fields=sorted(changes),
        )
        return self._current

    def clear(self) -> None:
        """Forget the current profile."""
        self._current = None
