"""Tests for profile domain models."""

import pytest
from pydantic import ValidationError

from parley.profile import PresenceStatus, ProfileUpdate
from parley.profile.models import Profile


class TestProfile:
    """Tests for Profile."""

    def test_defaults(self) -> None:
        """Should default to offline with no optional attributes."""
        profile = Profile(id="p1", display_name="Sam")

        assert profile.status == PresenceStatus.OFFLINE
        assert profile.email == ""
        assert profile.bio is None
        assert profile.joined_at is None

    def test_frozen(self) -> None:
        """Should reject mutation."""
        profile = Profile(id="p1", display_name="Sam")

        with pytest.raises(ValidationError):
            profile.display_name = "Other"  # type: ignore[misc]

    def test_copy_with_status(self) -> None:
        """Should produce an updated copy without touching the original."""
        profile = Profile(id="p1", display_name="Sam")
        away = profile.model_copy(update={"status": PresenceStatus.AWAY})

        assert away.status == PresenceStatus.AWAY
        assert profile.status == PresenceStatus.OFFLINE


class TestProfileUpdate:
    """Tests for ProfileUpdate."""

    def test_tracks_set_fields(self) -> None:
        """Should report only the fields that were provided."""
        update = ProfileUpdate(bio="Hi", location=None)

        assert update.model_dump(exclude_unset=True) == {"bio": "Hi", "location": None}

    def test_status_coerced(self) -> None:
        """Should accept status values by name."""
        assert ProfileUpdate(status="away").status == PresenceStatus.AWAY
