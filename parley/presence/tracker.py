"""Per-participant presence map."""

from parley.observability.logging import get_logger
from parley.profile.enums import PresenceStatus

logger = get_logger(__name__)


class PresenceTracker:
    """Current online/away/offline value for each known participant.

    Only participants registered with ``track`` accept updates; presence for
    anyone else is ignored rather than creating a participant. No history is
    kept.
    """

    def __init__(self) -> None:
        """Initialize empty presence map."""
        self._statuses: dict[str, PresenceStatus] = {}

    def track(
        self,
        participant_id: str,
        status: PresenceStatus = PresenceStatus.OFFLINE,
    ) -> None:
        """Start tracking a participant, keeping any value already observed."""
        self._statuses.setdefault(participant_id, status)

    def is_tracked(self, participant_id: str) -> bool:
        """Whether updates for ``participant_id`` are accepted."""
        return participant_id in self._statuses

    def set_status(self, participant_id: str, status: PresenceStatus) -> bool:
        """Record a participant's presence.

        Returns:
            True if the stored value changed, False if it was already set
            or the participant is unknown
        """
        current = self._statuses.get(participant_id)
        if current is None:
            logger.debug("presence_ignored_unknown", participant_id=participant_id)
            return False
        if current == status:
            return False

        self._statuses[participant_id] = status
        logger.debug(
            "presence_changed",
            participant_id=participant_id,
            status=status.value,
        )
        return True

    def status_of(self, participant_id: str) -> PresenceStatus:
        """Current presence, offline if never observed."""
        return self._statuses.get(participant_id, PresenceStatus.OFFLINE)

    def snapshot(self) -> dict[str, PresenceStatus]:
        """Copy of the presence map."""
        return dict(self._statuses)

    def online_count(self, exclude: str | None = None) -> int:
        """Number of tracked participants currently online."""
        return sum(
            1
            for participant_id, status in self._statuses.items()
            if status == PresenceStatus.ONLINE and participant_id != exclude
        )

    def clear(self) -> None:
        """Forget every participant."""
        self._statuses.clear()
