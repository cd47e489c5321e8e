"""Subscription binder — one channel, typed per-event callbacks.

Learn: A binder ties a channel to the lifetime of its owner (a
synchronizer, a request scope, a CLI command). It subscribes on start(),
tears down on stop(), and re-subscribes only when the binding key changes:

    (channel_name, table, filter, events, enabled)

Callbacks live in a mutable holder that the channel reads on every event,
so swapping handlers with set_handlers() never touches the channel.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from housesync.realtime.events import (
    ALL_EVENTS,
    ChangeEvent,
    ConnectionState,
    EventKind,
    normalize_events,
)
from housesync.realtime.manager import ConnectionManager, Teardown

InsertHandler = Callable[[dict, ChangeEvent], None]
UpdateHandler = Callable[[dict, Optional[dict], ChangeEvent], None]
DeleteHandler = Callable[[Optional[dict], ChangeEvent], None]
ChangeHandler = Callable[[ChangeEvent], None]

_UNSET: Any = object()


@dataclass
class _Handlers:
    on_insert: Optional[InsertHandler] = None
    on_update: Optional[UpdateHandler] = None
    on_delete: Optional[DeleteHandler] = None
    on_change: Optional[ChangeHandler] = None


class SubscriptionBinder:
    """Binds one named channel to insert/update/delete/change callbacks."""

    def __init__(
        self,
        manager: ConnectionManager,
        channel_name: str,
        table: str,
        *,
        filter: Optional[str] = None,
        events=ALL_EVENTS,
        on_insert: Optional[InsertHandler] = None,
        on_update: Optional[UpdateHandler] = None,
        on_delete: Optional[DeleteHandler] = None,
        on_change: Optional[ChangeHandler] = None,
        enabled: bool = True,
    ):
        self._manager = manager
        self.channel_name = channel_name
        self.table = table
        self.filter = filter
        self.events = normalize_events(events)
        self.enabled = enabled
        self._handlers = _Handlers(on_insert, on_update, on_delete, on_change)
        self._active = False
        self._teardown: Optional[Teardown] = None
        self._bound_key: Optional[tuple] = None

    @property
    def key(self) -> tuple:
        return (self.channel_name, self.table, self.filter, self.events, self.enabled)

    @property
    def is_bound(self) -> bool:
        return self._bound_key is not None

    @property
    def is_demo(self) -> bool:
        return self._manager.is_demo

    @property
    def connection_state(self) -> ConnectionState:
        return self._manager.connection_state.value

    # ─── Lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        self._active = True
        await self._sync()

    async def stop(self) -> None:
        self._active = False
        await self._release()

    async def unsubscribe(self) -> None:
        """Drop the channel at the manager without leaving the owner's scope."""
        await self._manager.unsubscribe(self.channel_name)
        self._teardown = None
        self._bound_key = None

    async def __aenter__(self) -> "SubscriptionBinder":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def configure(
        self,
        *,
        channel_name: str = _UNSET,
        table: str = _UNSET,
        filter: Optional[str] = _UNSET,
        events=_UNSET,
        enabled: bool = _UNSET,
    ) -> None:
        """Change the binding; re-subscribes only if the key actually changed."""
        if channel_name is not _UNSET:
            self.channel_name = channel_name
        if table is not _UNSET:
            self.table = table
        if filter is not _UNSET:
            self.filter = filter
        if events is not _UNSET:
            self.events = normalize_events(events)
        if enabled is not _UNSET:
            self.enabled = enabled
        if self._active:
            await self._sync()

    def set_handlers(
        self,
        *,
        on_insert: Optional[InsertHandler] = _UNSET,
        on_update: Optional[UpdateHandler] = _UNSET,
        on_delete: Optional[DeleteHandler] = _UNSET,
        on_change: Optional[ChangeHandler] = _UNSET,
    ) -> None:
        """Swap callbacks in place. Omitted handlers are left as they are."""
        if on_insert is not _UNSET:
            self._handlers.on_insert = on_insert
        if on_update is not _UNSET:
            self._handlers.on_update = on_update
        if on_delete is not _UNSET:
            self._handlers.on_delete = on_delete
        if on_change is not _UNSET:
            self._handlers.on_change = on_change

    # ─── Internals ──────────────────────────────────────────

    async def _sync(self) -> None:
        wanted = None
        if self._active and self.enabled and not self._manager.is_demo:
            wanted = self.key
        if wanted == self._bound_key:
            return

        await self._release()
        if wanted is None:
            return

        self._teardown = await self._manager.subscribe(
            self.channel_name,
            self.table,
            self.filter,
            self._dispatch,
            self.events,
        )
        self._bound_key = wanted

    async def _release(self) -> None:
        teardown, self._teardown, self._bound_key = self._teardown, None, None
        if teardown is not None:
            await teardown()

    def _dispatch(self, event: ChangeEvent) -> None:
        handlers = self._handlers
        if event.kind in self.events:
            if event.kind is EventKind.INSERT and handlers.on_insert:
                handlers.on_insert(event.record, event)
            elif event.kind is EventKind.UPDATE and handlers.on_update:
                handlers.on_update(event.record, event.previous_record, event)
            elif event.kind is EventKind.DELETE and handlers.on_delete:
                handlers.on_delete(event.previous_record, event)

        if handlers.on_change:
            handlers.on_change(event)
