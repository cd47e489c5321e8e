"""Wellness synchronizer tests — newest-first list with a fixed limit."""

from unittest.mock import AsyncMock

import pytest

from housesync.sync.wellness import WellnessSynchronizer, log_timestamp
from tests.fakes import FakeDataService

CHANNEL = "staff-wellness-monitor"

PLAYERS = [
    {"id": "p1", "first_name": "Max", "last_name": "Finkgräfe"},
    {"id": "p2", "first_name": "Tim", "last_name": "Lemperle"},
]


@pytest.fixture()
def data():
    return FakeDataService(
        players=PLAYERS,
        wellness={
            "p1": [{"id": "w1", "player_id": "p1", "created_at": "2025-01-09T07:30:00+00:00", "mood": "good"}],
            "p2": [
                {"id": "w2", "player_id": "p2", "created_at": "2025-01-09T08:10:00Z", "mood": "poor"},
                {"id": "w0", "player_id": "p2", "date": "2025-01-08", "mood": "neutral"},
            ],
        },
    )


def _ids(sync):
    return [log["id"] for log in sync.logs]


def test_log_timestamp_fallbacks():
    assert log_timestamp({"created_at": "2025-01-09T08:10:00Z"}) > log_timestamp({"date": "2025-01-09"})
    assert log_timestamp({}) < log_timestamp({"date": "2000-01-01"})
    assert log_timestamp({"date": "not a date"}) == log_timestamp({})


@pytest.mark.asyncio
async def test_load_merges_players_newest_first(manager, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    assert _ids(sync) == ["w2", "w1", "w0"]
    assert sync.logs[0]["player"]["first_name"] == "Tim"
    assert data.calls["get_wellness_logs"] == 2
    await sync.stop()


@pytest.mark.asyncio
async def test_load_respects_limit(manager, data):
    sync = WellnessSynchronizer(manager, data, limit=2)
    await sync.start()
    assert _ids(sync) == ["w2", "w1"]
    await sync.stop()


@pytest.mark.asyncio
async def test_insert_prepends_and_truncates(manager, backend, data, notifier):
    sync = WellnessSynchronizer(manager, data, limit=3, notifier=notifier)
    await sync.start()

    await backend.emit(CHANNEL, "INSERT", new={"id": "w3", "player_id": "p1", "mood": "excellent"})

    assert _ids(sync) == ["w3", "w2", "w1"]
    assert sync.logs[0]["player"]["id"] == "p1"
    assert sync.new_log_id == "w3"
    assert notifier.messages == [("Max Finkgräfe logged wellness 😄", "wellness")]
    await sync.stop()


@pytest.mark.asyncio
async def test_redelivered_insert_is_not_duplicated(manager, backend, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    await backend.emit(CHANNEL, "INSERT", new={"id": "w3", "player_id": "p1"})
    await backend.emit(CHANNEL, "INSERT", new={"id": "w3", "player_id": "p1"})

    assert _ids(sync) == ["w3", "w2", "w1", "w0"]
    await sync.stop()


@pytest.mark.asyncio
async def test_unknown_player_and_mood(manager, backend, data, notifier):
    sync = WellnessSynchronizer(manager, data, notifier=notifier)
    await sync.start()

    await backend.emit(CHANNEL, "INSERT", new={"id": "w9", "player_id": "p99"})

    assert sync.logs[0]["player"] is None
    assert notifier.texts == ["Unknown Player logged wellness 📊"]
    await sync.stop()


@pytest.mark.asyncio
async def test_update_replaces_only_cached_logs(manager, backend, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    await backend.emit(CHANNEL, "UPDATE", new={"id": "w1", "player_id": "p1", "mood": "terrible"})
    await backend.emit(CHANNEL, "UPDATE", new={"id": "w77", "player_id": "p1", "mood": "good"})

    assert _ids(sync) == ["w2", "w1", "w0"]
    assert sync.logs[1]["mood"] == "terrible"
    assert sync.logs[1]["player"]["id"] == "p1"
    await sync.stop()


@pytest.mark.asyncio
async def test_deletes_are_not_subscribed(manager, backend, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    await backend.emit(CHANNEL, "DELETE", old={"id": "w1"})

    assert "w1" in _ids(sync)
    await sync.stop()


@pytest.mark.asyncio
async def test_alert_level_for_cached_log(manager, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    assert sync.alert_level(sync.logs[0]).level == "medium"
    assert sync.player_name("p2") == "Tim Lemperle"
    await sync.stop()


@pytest.mark.asyncio
async def test_failed_log_fetch_keeps_previous_players(manager, data):
    sync = WellnessSynchronizer(manager, data)
    await sync.start()

    data.players = PLAYERS + [{"id": "p3", "first_name": "Ana", "last_name": "Lopes"}]
    data.get_wellness_logs = AsyncMock(side_effect=RuntimeError("backend down"))
    await sync.load()

    assert sync.stale
    assert [p["id"] for p in sync.players] == ["p1", "p2"]
    assert _ids(sync) == ["w2", "w1", "w0"]
    await sync.stop()
