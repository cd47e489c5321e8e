"""Data service base — the authoritative fetches synchronizers load from.

Every method returns a fresh, ordered list of row dicts. Implementations
raise on transport or HTTP failure; synchronizers decide what to do
about it (see housesync.sync.base).
"""

from abc import ABC, abstractmethod


class DataService(ABC):
    @abstractmethod
    async def get_chores(self) -> list[dict]:
        """All chores, earliest deadline first."""

    @abstractmethod
    async def get_events(self) -> list[dict]:
        """All events with their attendees, earliest start first."""

    @abstractmethod
    async def get_player_events(self, player_id) -> list[dict]:
        """Events the player attends plus events open to everyone."""

    @abstractmethod
    async def get_houses(self) -> list[dict]:
        """All houses, highest total_points first."""

    @abstractmethod
    async def get_players(self) -> list[dict]:
        """All players with their house, highest points first."""

    @abstractmethod
    async def get_wellness_logs(self, player_id, limit: int = 30) -> list[dict]:
        """A player's most recent wellness logs, newest first."""

    async def check_connection(self) -> bool:
        """Probe the backend. Always healthy unless overridden."""
        return True

    async def aclose(self) -> None:
        return None


def events_for_player(events: list[dict], attendance: list[dict], player_id) -> list[dict]:
    """Events a player is invited to, plus events with no attendee list at all."""
    invited = {a["event_id"] for a in attendance if a.get("player_id") == player_id}
    with_attendees = {a["event_id"] for a in attendance}
    return [
        event
        for event in events
        if event["id"] in invited or event["id"] not in with_attendees
    ]
