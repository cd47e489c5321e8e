"""Events synchronizer tests — direct merges unscoped, reloads under a player scope."""

import pytest

from housesync.sync.events import EventsSynchronizer
from tests.fakes import FakeDataService, settle

CHANNEL = "calendar-events"
ATTENDEES = "event-attendees"


@pytest.fixture()
def data():
    return FakeDataService(
        events=[
            {"id": "e1", "title": "Team training", "start_time": "2025-01-10T09:00:00+00:00"},
            {"id": "e2", "title": "House meeting", "start_time": "2025-01-11T18:00:00+00:00"},
            {"id": "e3", "title": "Physio check", "start_time": "2025-01-12T10:00:00+00:00"},
        ],
        attendance=[{"event_id": "e3", "player_id": "p2"}],
    )


def _ids(sync):
    return [e["id"] for e in sync.events]


# ─── Unscoped ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_unscoped_binds_only_events_channel(manager, backend, data):
    sync = EventsSynchronizer(manager, data)
    await sync.start()

    assert _ids(sync) == ["e1", "e2", "e3"]
    assert backend.opened_names == [CHANNEL]
    await sync.stop()


@pytest.mark.asyncio
async def test_unscoped_merges_directly(manager, backend, data, notifier):
    sync = EventsSynchronizer(manager, data, notifier=notifier)
    await sync.start()

    await backend.emit(CHANNEL, "INSERT", new={"id": "e4", "title": "BBQ"})
    await backend.emit(
        CHANNEL,
        "UPDATE",
        new={"id": "e1", "title": "Team training (moved)"},
        old={"id": "e1", "title": "Team training"},
    )
    await backend.emit(CHANNEL, "DELETE", old={"id": "e2"})

    assert _ids(sync) == ["e1", "e3", "e4"]
    assert sync.events[0]["title"] == "Team training (moved)"
    assert sync.events[0]["start_time"] == "2025-01-10T09:00:00+00:00"
    assert notifier.texts == [
        "New event: BBQ",
        "Event updated: Team training (moved)",
        "Event cancelled: House meeting",
    ]
    assert data.calls["get_events"] == 1
    await sync.stop()


@pytest.mark.asyncio
async def test_update_without_old_row_is_silent(manager, backend, data, notifier):
    sync = EventsSynchronizer(manager, data, notifier=notifier)
    await sync.start()

    await backend.emit(CHANNEL, "UPDATE", new={"id": "e3", "title": "Physio (room 2)"})

    assert sync.events[2]["title"] == "Physio (room 2)"
    assert notifier.texts == []
    await sync.stop()


# ─── Player scope ───────────────────────────────────────


@pytest.mark.asyncio
async def test_scoped_load_uses_attendance(manager, backend, data):
    sync = EventsSynchronizer(manager, data, player_id="p1")
    await sync.start()

    assert _ids(sync) == ["e1", "e2"]
    assert backend.opened_names == [CHANNEL, ATTENDEES]
    await sync.stop()


@pytest.mark.asyncio
async def test_scoped_insert_triggers_reload(manager, backend, data, notifier):
    sync = EventsSynchronizer(manager, data, player_id="p1", notifier=notifier)
    await sync.start()

    data.events.append({"id": "e4", "title": "BBQ", "start_time": "2025-01-13T18:00:00+00:00"})
    await backend.emit(CHANNEL, "INSERT", new={"id": "e4", "title": "BBQ"})
    await settle()

    assert _ids(sync) == ["e1", "e2", "e4"]
    assert data.calls["get_player_events"] == 2
    assert notifier.texts == ["New event: BBQ"]
    await sync.stop()


@pytest.mark.asyncio
async def test_attendee_change_triggers_reload(manager, backend, data):
    sync = EventsSynchronizer(manager, data, player_id="p1")
    await sync.start()

    data.attendance.append({"event_id": "e3", "player_id": "p1"})
    await backend.emit(ATTENDEES, "INSERT", new={"id": "a2", "event_id": "e3", "player_id": "p1"})
    await settle()

    assert _ids(sync) == ["e1", "e2", "e3"]
    await sync.stop()


@pytest.mark.asyncio
async def test_scoped_update_only_patches_cached_events(manager, backend, data):
    sync = EventsSynchronizer(manager, data, player_id="p1")
    await sync.start()

    await backend.emit(CHANNEL, "UPDATE", new={"id": "e3", "title": "Physio (moved)"})
    await backend.emit(CHANNEL, "UPDATE", new={"id": "e1", "title": "Training (moved)"})

    assert _ids(sync) == ["e1", "e2"]
    assert sync.events[0]["title"] == "Training (moved)"
    await sync.stop()


@pytest.mark.asyncio
async def test_set_player_switches_attendee_channel(manager, data):
    sync = EventsSynchronizer(manager, data, player_id="p1")
    await sync.start()
    assert manager.get_active_subscriptions() == 2

    await sync.set_player(None)
    assert _ids(sync) == ["e1", "e2", "e3"]
    assert manager.get_active_subscriptions() == 1

    await sync.set_player("p2")
    assert _ids(sync) == ["e1", "e2", "e3"]
    assert manager.get_active_subscriptions() == 2
    await sync.stop()
