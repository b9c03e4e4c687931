"""Profile domain models.

Profiles are display attributes about a principal or a conversation
participant. They are derived rather than authoritative, so the resolver may
fill gaps with defaults.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parley.profile.enums import PresenceStatus


class Profile(BaseModel):
    """User-facing display attributes."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Principal / participant ID")
    display_name: str = Field(..., description="Name shown to other users")
    email: str = Field(default="", description="Contact email")
    avatar_ref: str | None = Field(default=None, description="Avatar reference")
    status: PresenceStatus = Field(
        default=PresenceStatus.OFFLINE, description="Presence at snapshot time"
    )
    bio: str | None = Field(default=None, description="Short biography")
    location: str | None = Field(default=None, description="Free-form location")
    joined_at: datetime | None = Field(default=None, description="Account creation")


class ProfileDetails(BaseModel):
    """Stored profile data the account service may hold for a principal."""

    display_name: str | None = None
    avatar_ref: str | None = None
    bio: str | None = None
    location: str | None = None
    joined_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile edit; only explicitly set fields are applied."""

    display_name: str | None = Field(default=None, min_length=1)
    avatar_ref: str | None = None
    status: PresenceStatus | None = None
    bio: str | None = None
    location: str | None = None

    @field_validator("display_name", "status")
    @classmethod
    def required_on_profile(cls, value: object) -> object:
        """Reject clearing a field every profile must have."""
        if value is None:
            raise ValueError("cannot be cleared")
        return value
