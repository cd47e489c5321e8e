"""Connection manager — channel registry, connection state, reconnection.

Learn: One ConnectionManager exists per process. Every synchronizer goes
through it to open channels; nobody touches the registry directly.

Per-channel lifecycle, mirrored into the global connection_state:

    subscribing ──SUBSCRIBED──▶ connected
    subscribing|connected ──CHANNEL_ERROR──▶ reconnecting
    * ──CLOSED──▶ disconnected

On CHANNEL_ERROR the stale channel is torn down and a fresh subscribe with
the same parameters is scheduled after 1s, 2s, 4s ... capped at 30s. The
chain resets as soon as a channel with that name reaches SUBSCRIBED.
There is no attempt ceiling: a channel that never recovers keeps retrying
every 30s. Pending reconnects are only cancelled by close(), not by
unsubscribe() of a single channel.
"""

import asyncio
import functools
import inspect
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, Union

import structlog

from housesync.realtime.backend import ChannelHandle, RealtimeBackend
from housesync.realtime.events import (
    ALL_EVENTS,
    ChangeEvent,
    ChannelState,
    ChannelStatus,
    ConnectionState,
    EventKind,
    normalize_events,
)
from housesync.realtime.reactive import ReactiveValue

logger = structlog.get_logger()

Teardown = Callable[[], Awaitable[None]]
EventCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


async def _noop_teardown() -> None:
    return None


@dataclass
class ReconnectPolicy:
    """Exponential backoff between reconnect attempts (milliseconds)."""

    initial_delay_ms: int = 1000
    max_delay_ms: int = 30000
    multiplier: float = 2.0

    def delay_for(self, attempt: int) -> int:
        """Delay before the given attempt (0-indexed)."""
        # exponent is clamped so long-running chains never overflow
        delay = self.initial_delay_ms * (self.multiplier ** min(attempt, 64))
        return int(min(delay, self.max_delay_ms))

    def delays(self) -> Iterator[int]:
        attempt = 0
        while True:
            yield self.delay_for(attempt)
            attempt += 1


@dataclass
class _Channel:
    name: str
    table: str
    filter: Optional[str]
    on_event: EventCallback
    events: tuple[EventKind, ...]
    handle: ChannelHandle
    state: ChannelState = ChannelState.SUBSCRIBING
    # set once the channel is being replaced; its late callbacks are ignored
    detached: bool = False


class ConnectionManager:
    """Owns every realtime channel in the process.

    Usage:
        manager = ConnectionManager(backend, is_demo_mode_active=lambda: False)
        teardown = await manager.subscribe("housing-chores", "chores", None, on_event)
        ...
        await teardown()
        await manager.close()
    """

    def __init__(
        self,
        backend: RealtimeBackend,
        *,
        is_demo_mode_active: Callable[[], bool] = lambda: False,
        schema: str = "public",
        policy: Optional[ReconnectPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._backend = backend
        # resolved once for the whole session
        self._demo = bool(is_demo_mode_active())
        self._schema = schema
        self._policy = policy or ReconnectPolicy()
        self._sleep = sleep
        self._channels: dict[str, _Channel] = {}
        self._attempts: dict[str, int] = {}
        self._reconnect_tasks: dict[str, asyncio.Task] = {}
        self._closed = False
        self.connection_state: ReactiveValue[ConnectionState] = ReactiveValue(
            ConnectionState.DISCONNECTED
        )

    # ─── Properties ─────────────────────────────────────────

    @property
    def is_demo(self) -> bool:
        return self._demo

    @property
    def is_connected(self) -> bool:
        return self.connection_state.value == ConnectionState.CONNECTED

    def get_active_subscriptions(self) -> int:
        return len(self._channels)

    def channel_state(self, channel_name: str) -> Optional[ChannelState]:
        """State of a registered channel, or None when not registered."""
        channel = self._channels.get(channel_name)
        return channel.state if channel else None

    # ─── Public contract ────────────────────────────────────

    async def subscribe(
        self,
        channel_name: str,
        table: str,
        filter: Optional[str],
        on_event: EventCallback,
        events=ALL_EVENTS,
    ) -> Teardown:
        """Open a channel for `table` and route its changes to `on_event`.

        Returns an async teardown. In demo mode, or after close(), nothing
        is opened and the teardown does nothing. Subscribing to a name that
        is already registered returns a teardown for the existing channel.
        """
        if self._demo:
            logger.info("realtime.demo_skip", channel=channel_name, table=table)
            return _noop_teardown

        if self._closed:
            logger.warning("realtime.subscribe_after_close", channel=channel_name, table=table)
            return _noop_teardown

        if channel_name in self._channels:
            logger.debug("realtime.channel_exists", channel=channel_name)
            return self._teardown_for(channel_name)

        config = {"event": "*", "schema": self._schema, "table": table}
        if filter:
            config["filter"] = filter

        handle = self._backend.open_channel(channel_name)
        channel = _Channel(
            name=channel_name,
            table=table,
            filter=filter,
            on_event=on_event,
            events=normalize_events(events),
            handle=handle,
        )
        handle.on_table_change(config, functools.partial(self._deliver, channel))

        # registered before the first suspension point so a concurrent
        # subscribe with the same name sees it
        self._channels[channel_name] = channel
        logger.info("realtime.subscribing", channel=channel_name, table=table, filter=filter)

        try:
            await handle.subscribe(functools.partial(self._on_status, channel))
        except Exception:
            logger.exception("realtime.subscribe_failed", channel=channel_name)
            self._on_status(channel, ChannelStatus.CHANNEL_ERROR.value)

        return self._teardown_for(channel_name)

    async def unsubscribe(self, channel_name: str) -> None:
        """Release a channel. Unknown names are ignored."""
        channel = self._channels.get(channel_name)
        if channel is None:
            return
        await self._release(channel)
        logger.info("realtime.unsubscribed", channel=channel_name)

    async def close(self) -> None:
        """Cancel pending reconnects and release every channel."""
        self._closed = True

        tasks = list(self._reconnect_tasks.values())
        self._reconnect_tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        for name in list(self._channels):
            await self.unsubscribe(name)
        logger.info("realtime.closed")

    async def __aenter__(self) -> "ConnectionManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ─── Internals ──────────────────────────────────────────

    def _teardown_for(self, channel_name: str) -> Teardown:
        async def teardown() -> None:
            await self.unsubscribe(channel_name)

        return teardown

    async def _release(self, channel: _Channel) -> None:
        if self._channels.get(channel.name) is channel:
            del self._channels[channel.name]
        try:
            await self._backend.close_channel(channel.handle)
        except Exception:
            logger.exception("realtime.close_failed", channel=channel.name)

    async def _deliver(self, channel: _Channel, payload: dict) -> None:
        if channel.detached:
            return
        try:
            event = ChangeEvent.from_payload(payload)
        except ValueError:
            logger.warning("realtime.bad_payload", channel=channel.name, payload=payload)
            return

        if event.kind not in channel.events:
            return

        try:
            result = channel.on_event(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "realtime.callback_failed",
                channel=channel.name,
                event_type=event.kind.value,
            )

    def _on_status(self, channel: _Channel, status: str) -> None:
        if channel.detached:
            return
        logger.info("realtime.status", channel=channel.name, status=status)

        if status == ChannelStatus.SUBSCRIBED:
            channel.state = ChannelState.CONNECTED
            self._attempts.pop(channel.name, None)
            self.connection_state.set(ConnectionState.CONNECTED)

        elif status == ChannelStatus.CHANNEL_ERROR:
            if channel.state not in (ChannelState.SUBSCRIBING, ChannelState.CONNECTED):
                return
            channel.state = ChannelState.RECONNECTING
            self.connection_state.set(ConnectionState.RECONNECTING)
            self._schedule_reconnect(channel)

        elif status == ChannelStatus.CLOSED:
            channel.state = ChannelState.DISCONNECTED
            self.connection_state.set(ConnectionState.DISCONNECTED)

    def _schedule_reconnect(self, channel: _Channel) -> None:
        if self._closed:
            return

        attempt = self._attempts.get(channel.name, 0)
        self._attempts[channel.name] = attempt + 1
        delay_ms = self._policy.delay_for(attempt)

        pending = self._reconnect_tasks.pop(channel.name, None)
        if pending is not None and pending is not asyncio.current_task():
            pending.cancel()

        task = asyncio.get_running_loop().create_task(self._reconnect(channel, delay_ms))
        self._reconnect_tasks[channel.name] = task

    async def _reconnect(self, channel: _Channel, delay_ms: int) -> None:
        try:
            if not channel.detached:
                channel.detached = True
                await self._release(channel)

            logger.info("realtime.reconnect_scheduled", channel=channel.name, delay_ms=delay_ms)
            await self._sleep(delay_ms / 1000)

            await self.subscribe(
                channel.name,
                channel.table,
                channel.filter,
                channel.on_event,
                channel.events,
            )
        finally:
            if self._reconnect_tasks.get(channel.name) is asyncio.current_task():
                del self._reconnect_tasks[channel.name]
