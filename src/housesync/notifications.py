"""Notification publishers — where synchronizers send human-readable updates.

Learn: publish() is fire-and-forget. Synchronizers call it from inside a
merge and never look at the result, so implementations must not block
and must not raise into the caller.

Categories used by the synchronizers: chore, event, points, wellness.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

NOTIFICATIONS_CHANNEL = "housesync:notifications"


class NotificationPublisher(ABC):
    @abstractmethod
    def publish(self, message: str, category: str) -> None:
        """Deliver `message` under `category`. Must not block or raise."""


class NullNotificationPublisher(NotificationPublisher):
    def publish(self, message: str, category: str) -> None:
        return None


class LogNotificationPublisher(NotificationPublisher):
    """Writes every notification to the structured log."""

    def publish(self, message: str, category: str) -> None:
        logger.info("notification", category=category, message=message)


class RedisNotificationPublisher(NotificationPublisher):
    """Fans notifications out on a Redis channel for UI clients to render.

    Each publish schedules a background task; failures are logged.
    """

    def __init__(self, redis: aioredis.Redis, channel: str = NOTIFICATIONS_CHANNEL):
        self._redis = redis
        self._channel = channel
        self._pending: set[asyncio.Task] = set()

    def publish(self, message: str, category: str) -> None:
        payload = json.dumps({"type": "notification", "message": message, "category": category})
        task = asyncio.get_running_loop().create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, payload: str) -> None:
        try:
            await self._redis.publish(self._channel, payload)
        except (RedisError, OSError) as e:
            logger.warning("notification.publish_failed", channel=self._channel, error=str(e))

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight publishes (used at shutdown and in tests)."""
        if self._pending:
            await asyncio.wait(list(self._pending), timeout=timeout)
