"""Wellness synchronizer — staff view of the most recent check-ins.

Learn: The initial load walks every player, fetches their logs, and keeps
only the newest `limit` across the whole house. Live inserts are prepended
(they are, by definition, the newest) and the list is cut back to `limit`.
Updates replace the row in place without re-sorting.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from housesync.config import settings
from housesync.realtime.events import ChangeEvent, EventKind
from housesync.sync.alerts import WellnessAlert, classify
from housesync.sync.base import DomainSynchronizer, find_index, remove_record

CHANNEL_NAME = "staff-wellness-monitor"

MOOD_EMOJI = {
    "excellent": "😄",
    "good": "🙂",
    "neutral": "😐",
    "poor": "😕",
    "terrible": "😢",
}
DEFAULT_EMOJI = "📊"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def log_timestamp(log: dict) -> datetime:
    """created_at, falling back to date; unparseable values sort last."""
    raw = log.get("created_at") or log.get("date")
    if not raw:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class WellnessSynchronizer(DomainSynchronizer):
    name = "wellness"

    def __init__(
        self,
        manager,
        data,
        *,
        limit: Optional[int] = None,
        highlight_ms: Optional[int] = None,
        logs_per_player: Optional[int] = None,
        channel_name: str = CHANNEL_NAME,
        **kwargs,
    ):
        super().__init__(manager, data, **kwargs)
        self.limit = settings.wellness_limit if limit is None else limit
        self.logs_per_player = (
            settings.wellness_logs_per_player if logs_per_player is None else logs_per_player
        )
        self.players: list[dict] = []
        self.new_log = self._flag(
            settings.wellness_highlight_ms if highlight_ms is None else highlight_ms
        )
        self._bind(
            channel_name,
            "wellness_logs",
            events=(EventKind.INSERT, EventKind.UPDATE),
            on_insert=self._on_insert,
            on_update=self._on_update,
        )

    @property
    def logs(self) -> list[dict]:
        return self.items

    @property
    def new_log_id(self):
        return self.new_log.value

    async def fetch(self) -> list[dict]:
        players = await self._data.get_players() or []
        per_player = await asyncio.gather(
            *(self._data.get_wellness_logs(p["id"], self.logs_per_player) for p in players)
        )
        self.players = players

        logs = [
            {**log, "player": player}
            for player, player_logs in zip(players, per_player)
            for log in player_logs or []
        ]
        logs.sort(key=log_timestamp, reverse=True)
        return logs[: self.limit]

    def player(self, player_id) -> Optional[dict]:
        return next((p for p in self.players if p.get("id") == player_id), None)

    def player_name(self, player_id) -> str:
        player = self.player(player_id)
        if player is None:
            return "Unknown Player"
        return f"{player.get('first_name')} {player.get('last_name')}"

    def alert_level(self, log: dict) -> WellnessAlert:
        return classify(log)

    def snapshot(self) -> dict:
        return {**super().snapshot(), "new_log_id": self.new_log_id}

    # ─── Merges ─────────────────────────────────────────────

    def _on_insert(self, log: dict, event: ChangeEvent) -> None:
        player_id = log.get("player_id")
        entry = {**log, "player": self.player(player_id)}
        # redelivered inserts replace the earlier copy
        self.items = [entry, *remove_record(self.items, log.get("id"))][: self.limit]

        emoji = MOOD_EMOJI.get(log.get("mood"), DEFAULT_EMOJI)
        self._publish(f"{self.player_name(player_id)} logged wellness {emoji}", "wellness")

        self.new_log.set(log.get("id"))
        self._touch()

    def _on_update(self, log: dict, previous: Optional[dict], event: ChangeEvent) -> None:
        i = find_index(self.items, log.get("id"))
        if i is None:
            return
        items = list(self.items)
        items[i] = {**log, "player": self.player(log.get("player_id"))}
        self.items = items
        self._touch()
