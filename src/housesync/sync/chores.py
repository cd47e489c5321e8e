"""Chores synchronizer — house tasks, optionally scoped to one player.

Learn: With a player scope only chores whose `assigned_to` equals the
player are cached. An update can move a chore into or out of scope, so
updates are decided by the new row plus what is already cached:

    in scope,  not cached  → splice in ("Task assigned to you")
    in scope,  cached      → patch in place
    out of scope, cached   → remove

The highlighted id is pure UI emphasis and clears itself after 2s.
"""

from typing import Optional

from housesync.config import settings
from housesync.realtime.events import ALL_EVENTS, ChangeEvent
from housesync.sync.base import (
    DomainSynchronizer,
    find_index,
    remove_record,
    upsert_record,
)

CHANNEL_NAME = "housing-chores"


class ChoresSynchronizer(DomainSynchronizer):
    name = "chores"

    def __init__(
        self,
        manager,
        data,
        *,
        player_id=None,
        highlight_ms: Optional[int] = None,
        channel_name: str = CHANNEL_NAME,
        **kwargs,
    ):
        super().__init__(manager, data, **kwargs)
        self.player_id = player_id
        self.highlight = self._flag(
            settings.chore_highlight_ms if highlight_ms is None else highlight_ms
        )
        self._bind(
            channel_name,
            "chores",
            events=ALL_EVENTS,
            on_insert=self._on_insert,
            on_update=self._on_update,
            on_delete=self._on_delete,
        )

    @property
    def chores(self) -> list[dict]:
        return self.items

    @property
    def highlighted_id(self):
        return self.highlight.value

    def in_scope(self, chore: Optional[dict]) -> bool:
        if not chore:
            return False
        return self.player_id is None or chore.get("assigned_to") == self.player_id

    async def fetch(self) -> list[dict]:
        chores = await self._data.get_chores()
        return [c for c in chores if self.in_scope(c)]

    async def set_player(self, player_id) -> None:
        """Change the scope and reload, dropping chores outside it."""
        self.player_id = player_id
        await self.load()

    def snapshot(self) -> dict:
        return {**super().snapshot(), "highlighted_id": self.highlighted_id}

    # ─── Merges ─────────────────────────────────────────────

    def _on_insert(self, chore: dict, event: ChangeEvent) -> None:
        if not self.in_scope(chore):
            return

        self.items = upsert_record(self.items, chore)

        title = chore.get("title")
        if self.player_id is not None and chore.get("assigned_to") == self.player_id:
            self._publish(f"New task assigned: {title}", "chore")
        else:
            self._publish(f"New task created: {title}", "chore")

        self.highlight.set(chore.get("id"))
        self._touch()

    def _on_update(self, chore: dict, previous: Optional[dict], event: ChangeEvent) -> None:
        cached = find_index(self.items, chore.get("id")) is not None
        title = chore.get("title")

        if self.in_scope(chore):
            if self.player_id is not None and not cached:
                self._publish(f"Task assigned to you: {title}", "chore")
            self.items = upsert_record(self.items, chore)
            self.highlight.set(chore.get("id"))
        elif cached:
            self.items = remove_record(self.items, chore.get("id"))

        if (
            previous
            and "status" in previous
            and chore.get("status") != previous.get("status")
            and chore.get("status") == "completed"
        ):
            self._publish(f"Task completed: {title}", "chore")

        self._touch()

    def _on_delete(self, previous: Optional[dict], event: ChangeEvent) -> None:
        self.items = remove_record(self.items, event.row_id)
        self._touch()
