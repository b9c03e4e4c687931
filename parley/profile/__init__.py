"""Profile domain: display profiles and their derivation."""

from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile, ProfileDetails, ProfileUpdate
from parley.profile.resolver import ProfileResolver, local_part

__all__ = [
    "PresenceStatus",
    "Profile",
    "ProfileDetails",
    "ProfileResolver",
    "ProfileUpdate",
    "local_part",
]
