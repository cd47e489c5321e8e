"""Events synchronizer — the house calendar.

Learn: Which events a player sees depends on the event_attendees relation,
which a single events row cannot tell us. So under a player scope an
insert, or any attendee change, triggers a full background load() instead
of a local merge. Without a scope every change merges directly by id.
"""

from typing import Optional

from housesync.realtime.events import ALL_EVENTS, ChangeEvent, EventKind
from housesync.sync.base import (
    DomainSynchronizer,
    patch_record,
    remove_record,
    upsert_record,
)

CHANNEL_NAME = "calendar-events"
ATTENDEES_CHANNEL_NAME = "event-attendees"


class EventsSynchronizer(DomainSynchronizer):
    name = "events"

    def __init__(
        self,
        manager,
        data,
        *,
        player_id=None,
        channel_name: str = CHANNEL_NAME,
        attendees_channel_name: str = ATTENDEES_CHANNEL_NAME,
        **kwargs,
    ):
        super().__init__(manager, data, **kwargs)
        self.player_id = player_id
        self._bind(
            channel_name,
            "events",
            events=ALL_EVENTS,
            on_insert=self._on_insert,
            on_update=self._on_update,
            on_delete=self._on_delete,
        )
        self._attendees = self._bind(
            attendees_channel_name,
            "event_attendees",
            events=(EventKind.INSERT, EventKind.DELETE),
            on_change=self._on_attendee_change,
            enabled=player_id is not None,
        )

    @property
    def events(self) -> list[dict]:
        return self.items

    async def fetch(self) -> list[dict]:
        if self.player_id is not None:
            return await self._data.get_player_events(self.player_id)
        return await self._data.get_events()

    async def set_player(self, player_id) -> None:
        """Change the scope: reload and switch the attendee channel on or off."""
        self.player_id = player_id
        await self.load()
        await self._attendees.configure(enabled=player_id is not None)

    # ─── Merges ─────────────────────────────────────────────

    def _on_insert(self, event_row: dict, event: ChangeEvent) -> None:
        if self.player_id is not None:
            self._spawn_reload()
        else:
            self.items = upsert_record(self.items, event_row)

        self._publish(f"New event: {event_row.get('title')}", "event")
        self._touch()

    def _on_update(self, event_row: dict, previous: Optional[dict], event: ChangeEvent) -> None:
        if self.player_id is not None:
            self.items = patch_record(self.items, event_row)
        else:
            self.items = upsert_record(self.items, event_row)

        if previous:
            self._publish(f"Event updated: {event_row.get('title')}", "event")
        self._touch()

    def _on_delete(self, previous: Optional[dict], event: ChangeEvent) -> None:
        # deletes often carry only the primary key; fall back to the cached row
        cached = next((e for e in self.items if e.get("id") == event.row_id), {})
        title = (previous or {}).get("title") or cached.get("title")
        self.items = remove_record(self.items, event.row_id)
        if title:
            self._publish(f"Event cancelled: {title}", "event")
        self._touch()

    def _on_attendee_change(self, event: ChangeEvent) -> None:
        if self.player_id is not None:
            self._spawn_reload()
