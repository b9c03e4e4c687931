"""Tests for PresenceTracker."""

import pytest

from parley.presence import PresenceTracker
from parley.profile.enums import PresenceStatus


@pytest.fixture
def tracker() -> PresenceTracker:
    """Tracker that knows bob (online) and carol."""
    tracker = PresenceTracker()
    tracker.track("bob", PresenceStatus.ONLINE)
    tracker.track("carol")
    return tracker


class TestTracking:
    """Tests for participant registration."""

    def test_untracked_defaults_offline(self) -> None:
        """Should report offline for participants never observed."""
        assert PresenceTracker().status_of("nobody") == PresenceStatus.OFFLINE

    def test_track_keeps_observed_value(self, tracker: PresenceTracker) -> None:
        """Should not reset a status that was already observed."""
        tracker.track("bob", PresenceStatus.OFFLINE)
        assert tracker.status_of("bob") == PresenceStatus.ONLINE


class TestSetStatus:
    """Tests for presence updates."""

    def test_change_reports_true(self, tracker: PresenceTracker) -> None:
        """Should store a new value and report the change."""
        assert tracker.set_status("carol", PresenceStatus.AWAY) is True
        assert tracker.status_of("carol") == PresenceStatus.AWAY

    def test_same_value_is_idempotent(self, tracker: PresenceTracker) -> None:
        """Should report no change when the value is already set."""
        assert tracker.set_status("bob", PresenceStatus.ONLINE) is False
        assert tracker.status_of("bob") == PresenceStatus.ONLINE

    def test_unknown_participant_ignored(self, tracker: PresenceTracker) -> None:
        """Should not create participants from presence updates."""
        assert tracker.set_status("mallory", PresenceStatus.ONLINE) is False
        assert tracker.is_tracked("mallory") is False


class TestQueries:
    """Tests for snapshots and counts."""

    def test_snapshot_is_copy(self, tracker: PresenceTracker) -> None:
        """Should not expose the internal map."""
        snapshot = tracker.snapshot()
        snapshot["bob"] = PresenceStatus.OFFLINE
        assert tracker.status_of("bob") == PresenceStatus.ONLINE

    def test_online_count(self, tracker: PresenceTracker) -> None:
        """Should count online participants, optionally excluding one."""
        tracker.track("alice", PresenceStatus.ONLINE)
        assert tracker.online_count() == 2
        assert tracker.online_count(exclude="alice") == 1

    def test_clear(self, tracker: PresenceTracker) -> None:
        """Should forget everyone."""
        tracker.clear()
        assert tracker.snapshot() == {}
