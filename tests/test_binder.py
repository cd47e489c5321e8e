"""Subscription binder tests — re-subscribe only when the binding key changes."""

import pytest

from housesync.realtime.binder import SubscriptionBinder
from housesync.realtime.events import EventKind


@pytest.mark.asyncio
async def test_start_subscribes_and_stop_releases(manager, backend):
    binder = SubscriptionBinder(manager, "housing-chores", "chores")
    await binder.start()

    assert binder.is_bound
    assert binder.key == (
        "housing-chores",
        "chores",
        None,
        (EventKind.INSERT, EventKind.UPDATE, EventKind.DELETE),
        True,
    )
    assert backend.opened_names == ["housing-chores"]

    await binder.stop()
    assert not binder.is_bound
    assert manager.get_active_subscriptions() == 0


@pytest.mark.asyncio
async def test_context_manager(manager):
    async with SubscriptionBinder(manager, "calendar-events", "events") as binder:
        assert binder.is_bound
        assert manager.get_active_subscriptions() == 1
    assert manager.get_active_subscriptions() == 0


@pytest.mark.asyncio
async def test_handlers_receive_typed_arguments(manager, backend):
    calls = []
    binder = SubscriptionBinder(
        manager,
        "housing-chores",
        "chores",
        on_insert=lambda rec, ev: calls.append(("insert", rec["id"])),
        on_update=lambda rec, prev, ev: calls.append(("update", rec["id"], prev)),
        on_delete=lambda prev, ev: calls.append(("delete", ev.row_id)),
        on_change=lambda ev: calls.append(("change", ev.kind.value)),
    )
    await binder.start()

    await backend.emit("housing-chores", "INSERT", new={"id": "c1"})
    await backend.emit("housing-chores", "UPDATE", new={"id": "c1"}, old={"id": "c1", "status": "pending"})
    await backend.emit("housing-chores", "DELETE", old={"id": "c1"})

    assert calls == [
        ("insert", "c1"),
        ("change", "INSERT"),
        ("update", "c1", {"id": "c1", "status": "pending"}),
        ("change", "UPDATE"),
        ("delete", "c1"),
        ("change", "DELETE"),
    ]
    await binder.stop()


@pytest.mark.asyncio
async def test_swapping_handlers_keeps_the_channel(manager, backend):
    seen = []
    binder = SubscriptionBinder(
        manager, "housing-chores", "chores", on_insert=lambda rec, ev: seen.append("old")
    )
    await binder.start()

    binder.set_handlers(on_insert=lambda rec, ev: seen.append("new"))
    await backend.emit("housing-chores", "INSERT", new={"id": "c1"})

    assert seen == ["new"]
    assert len(backend.opened) == 1
    await binder.stop()


@pytest.mark.asyncio
async def test_key_change_resubscribes(manager, backend):
    binder = SubscriptionBinder(manager, "my-chores", "chores", filter="assigned_to=eq.p1")
    await binder.start()

    await binder.configure(filter="assigned_to=eq.p1")
    assert len(backend.opened) == 1

    await binder.configure(filter="assigned_to=eq.p2")
    assert len(backend.opened) == 2
    assert backend.opened[0].closed
    config, _ = backend.channel("my-chores").bindings[0]
    assert config["filter"] == "assigned_to=eq.p2"
    await binder.stop()


@pytest.mark.asyncio
async def test_filter_limits_delivery(manager, backend):
    inserted = []
    binder = SubscriptionBinder(
        manager,
        "my-chores",
        "chores",
        filter="assigned_to=eq.p1",
        on_insert=lambda rec, ev: inserted.append(rec["id"]),
    )
    await binder.start()

    await backend.emit("my-chores", "INSERT", new={"id": "c1", "assigned_to": "p1"})
    await backend.emit("my-chores", "INSERT", new={"id": "c2", "assigned_to": "p2"})

    assert inserted == ["c1"]
    await binder.stop()


@pytest.mark.asyncio
async def test_enabled_toggle(manager, backend):
    binder = SubscriptionBinder(manager, "event-attendees", "event_attendees", enabled=False)
    await binder.start()
    assert not binder.is_bound
    assert backend.opened == []

    await binder.configure(enabled=True)
    assert binder.is_bound
    assert manager.get_active_subscriptions() == 1

    await binder.configure(enabled=False)
    assert not binder.is_bound
    assert manager.get_active_subscriptions() == 0


@pytest.mark.asyncio
async def test_configure_before_start_does_not_subscribe(manager, backend):
    binder = SubscriptionBinder(manager, "housing-chores", "chores")
    await binder.configure(table="chores", enabled=True)
    assert backend.opened == []


@pytest.mark.asyncio
async def test_demo_mode_never_binds(demo_manager, backend):
    binder = SubscriptionBinder(demo_manager, "housing-chores", "chores")
    await binder.start()

    assert binder.is_demo
    assert not binder.is_bound
    assert backend.opened == []
    await binder.stop()


@pytest.mark.asyncio
async def test_unsubscribe_drops_channel(manager, backend):
    binder = SubscriptionBinder(manager, "housing-chores", "chores")
    await binder.start()
    await binder.unsubscribe()

    assert not binder.is_bound
    assert manager.get_active_subscriptions() == 0
