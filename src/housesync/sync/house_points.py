"""House points synchronizer — the live leaderboard.

Learn: The list is always sorted by total_points, highest first. That is
a standing invariant: every merge re-sorts (stable, so ties keep their
previous order), not just the initial load.

A house's total is an aggregate over its players. When a player's points
change we cannot patch the house locally, so the players channel triggers
a full re-fetch of the houses instead.
"""

from typing import Optional

import structlog

from housesync.config import settings
from housesync.realtime.events import ChangeEvent, EventKind
from housesync.sync.base import DomainSynchronizer, find_index, upsert_record

CHANNEL_NAME = "houses-leaderboard"
PLAYERS_CHANNEL_NAME = "players-points"

logger = structlog.get_logger()


def sort_by_points(houses: list[dict]) -> list[dict]:
    return sorted(houses, key=lambda h: h.get("total_points") or 0, reverse=True)


class HousePointsSynchronizer(DomainSynchronizer):
    name = "house_points"

    def __init__(
        self,
        manager,
        data,
        *,
        animation_ms: Optional[int] = None,
        channel_name: str = CHANNEL_NAME,
        players_channel_name: str = PLAYERS_CHANNEL_NAME,
        **kwargs,
    ):
        super().__init__(manager, data, **kwargs)
        self.animating = self._flag(
            settings.house_animation_ms if animation_ms is None else animation_ms
        )
        self._bind(
            channel_name,
            "houses",
            events=(EventKind.UPDATE,),
            on_update=self._on_house_update,
        )
        self._bind(
            players_channel_name,
            "players",
            events=(EventKind.UPDATE,),
            on_update=self._on_player_update,
        )

    @property
    def houses(self) -> list[dict]:
        return self.items

    @property
    def animating_id(self):
        return self.animating.value

    async def fetch(self) -> list[dict]:
        return sort_by_points(await self._data.get_houses())

    def snapshot(self) -> dict:
        return {**super().snapshot(), "animating_id": self.animating_id}

    # ─── Merges ─────────────────────────────────────────────

    def _on_house_update(self, house: dict, previous: Optional[dict], event: ChangeEvent) -> None:
        old_total = self._previous_total(house, previous)
        self.items = sort_by_points(upsert_record(self.items, house))

        new_total = house.get("total_points")
        if old_total is not None and new_total is not None and new_total != old_total:
            diff = new_total - old_total
            sign = "+" if diff > 0 else ""
            self._publish(f"{house.get('name')}: {sign}{diff} points!", "points")
            self.animating.set(house.get("id"))

        self._touch()

    def _previous_total(self, house: dict, previous: Optional[dict]):
        if previous and previous.get("total_points") is not None:
            return previous["total_points"]
        i = find_index(self.items, house.get("id"))
        return self.items[i].get("total_points") if i is not None else None

    def _on_player_update(self, player: dict, previous: Optional[dict], event: ChangeEvent) -> None:
        # without the old row we cannot tell whether points moved; re-fetch
        if previous and "points" in previous and previous["points"] == player.get("points"):
            return
        logger.debug("sync.houses_refetch", player_id=player.get("id"))
        self._spawn_reload()
