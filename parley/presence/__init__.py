"""Presence tracking for conversation participants."""

from parley.presence.tracker import PresenceTracker

__all__ = ["PresenceTracker"]
