"""Enums for profile domain."""

from enum import Enum


class PresenceStatus(str, Enum):
    """A participant's current availability indicator."""

    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"
