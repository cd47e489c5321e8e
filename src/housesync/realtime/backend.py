"""Realtime backend base — the publish/subscribe contract the sync layer needs.

Learn: The connection manager never talks to a transport directly. It
opens named channels through a RealtimeBackend, binds a table-change
callback, and subscribes with a status callback:

    handle = backend.open_channel("housing-chores")
    handle.on_table_change({"event": "*", "schema": "public", "table": "chores"}, cb)
    await handle.subscribe(on_status)      # on_status("SUBSCRIBED"), ...
    ...
    await backend.close_channel(handle)

Implement this to plug in a new transport (see redis_backend.py).
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Union

PayloadCallback = Callable[[dict], Union[None, Awaitable[None]]]
StatusCallback = Callable[[str], None]


class ChannelHandle(ABC):
    """A single named backend channel."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def on_table_change(self, config: dict[str, Any], callback: PayloadCallback) -> "ChannelHandle":
        """Bind a row-change callback. `config` holds event, schema, table and optional filter."""

    @abstractmethod
    async def subscribe(self, status_callback: StatusCallback) -> "ChannelHandle":
        """Start delivery. Status changes are reported through `status_callback`."""


class RealtimeBackend(ABC):
    """Factory and owner of channel handles."""

    @abstractmethod
    def open_channel(self, name: str) -> ChannelHandle:
        """Create (but do not subscribe) a channel."""

    @abstractmethod
    async def close_channel(self, handle: ChannelHandle) -> None:
        """Release the channel's backend resources."""
