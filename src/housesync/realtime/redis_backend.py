"""Redis pub/sub transport for table change events.

Learn: Redis pub/sub is fire-and-forget. If no channel is listening, the
change is lost. That's fine here: synchronizers treat push events as a
low-latency hint and can always re-fetch with load().

Channel naming: housesync:changes:{schema}:{table}
Every change payload has the backend's shape:
    {"eventType": "UPDATE", "new": {...}, "old": {...}}

Filters (`assigned_to=eq.42`) are applied on the listener side, against
the new row (or the old row for deletes).
"""

import asyncio
import inspect
import json
from dataclasses import dataclass
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from housesync.realtime.backend import (
    ChannelHandle,
    PayloadCallback,
    RealtimeBackend,
    StatusCallback,
)
from housesync.realtime.events import ChannelStatus, EventKind
from housesync.realtime.filters import RowFilter, parse_filter

logger = structlog.get_logger()

CHANGES_PREFIX = "housesync:changes"


def connect_redis(url: str) -> aioredis.Redis:
    """Create a Redis client. Connections are opened lazily on first command."""
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)


def change_channel(schema: str, table: str) -> str:
    return f"{CHANGES_PREFIX}:{schema}:{table}"


async def publish_change(
    redis: aioredis.Redis,
    table: str,
    event_type: str,
    new: Optional[dict] = None,
    old: Optional[dict] = None,
    schema: str = "public",
) -> int:
    """Publish a row change. Returns the number of listeners that received it."""
    payload = json.dumps(
        {
            "schema": schema,
            "table": table,
            "eventType": EventKind(event_type).value,
            "new": new or {},
            "old": old or {},
        },
        default=str,
    )
    return await redis.publish(change_channel(schema, table), payload)


def _text(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else value


@dataclass
class _Binding:
    redis_channel: str
    callback: PayloadCallback
    row_filter: Optional[RowFilter]

    def accepts(self, payload: dict) -> bool:
        if self.row_filter is None:
            return True
        if payload.get("eventType") == EventKind.DELETE.value:
            return self.row_filter.matches(payload.get("old"))
        return self.row_filter.matches(payload.get("new"))


class RedisChannel(ChannelHandle):
    """One named channel backed by a dedicated Redis PubSub connection."""

    def __init__(self, name: str, redis: aioredis.Redis):
        super().__init__(name)
        self._redis = redis
        self._bindings: list[_Binding] = []
        self._pubsub = None
        self._listener: Optional[asyncio.Task] = None
        self._status_callback: Optional[StatusCallback] = None

    @property
    def redis_channels(self) -> list[str]:
        return sorted({b.redis_channel for b in self._bindings})

    def on_table_change(self, config: dict[str, Any], callback: PayloadCallback) -> "RedisChannel":
        expression = config.get("filter")
        self._bindings.append(
            _Binding(
                redis_channel=change_channel(config.get("schema", "public"), config["table"]),
                callback=callback,
                row_filter=parse_filter(expression) if expression else None,
            )
        )
        return self

    async def subscribe(self, status_callback: StatusCallback) -> "RedisChannel":
        self._status_callback = status_callback
        self._pubsub = self._redis.pubsub()
        try:
            await self._pubsub.subscribe(*self.redis_channels)
        except (RedisError, OSError) as e:
            logger.warning("realtime.redis_subscribe_failed", channel=self.name, error=str(e))
            self._report(ChannelStatus.CHANNEL_ERROR)
            return self

        self._report(ChannelStatus.SUBSCRIBED)
        self._listener = asyncio.create_task(self._listen())
        return self

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None

        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe()
                await self._pubsub.aclose()
            except (RedisError, OSError) as e:
                logger.warning("realtime.redis_close_failed", channel=self.name, error=str(e))
            self._pubsub = None

        self._report(ChannelStatus.CLOSED)

    def _report(self, status: ChannelStatus) -> None:
        if self._status_callback is not None:
            self._status_callback(status.value)

    async def _listen(self) -> None:
        """Forward Redis messages to the bound callbacks, in arrival order."""
        try:
            async for message in self._pubsub.listen():
                if message["type"] != "message":
                    continue
                await self._dispatch(_text(message["channel"]), _text(message["data"]))
        except asyncio.CancelledError:
            pass
        except (RedisError, OSError) as e:
            logger.warning("realtime.redis_listener_failed", channel=self.name, error=str(e))
            self._report(ChannelStatus.CHANNEL_ERROR)
        except Exception:
            logger.exception("realtime.redis_listener_crashed", channel=self.name)
            self._report(ChannelStatus.CHANNEL_ERROR)

    async def _dispatch(self, redis_channel: str, data: str) -> None:
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("realtime.redis_bad_message", channel=self.name)
            return
        if not isinstance(payload, dict):
            logger.warning("realtime.redis_bad_message", channel=self.name, payload=payload)
            return

        for binding in self._bindings:
            if binding.redis_channel != redis_channel or not binding.accepts(payload):
                continue
            result = binding.callback(payload)
            if inspect.isawaitable(result):
                await result


class RedisRealtimeBackend(RealtimeBackend):
    """RealtimeBackend whose channels are Redis pub/sub subscriptions."""

    def __init__(self, redis: aioredis.Redis):
        self._redis = redis

    def open_channel(self, name: str) -> RedisChannel:
        return RedisChannel(name, self._redis)

    async def close_channel(self, handle: RedisChannel) -> None:
        await handle.close()
