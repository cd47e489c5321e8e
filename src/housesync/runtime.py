"""Process wiring — one Redis client, one data service, one ConnectionManager.

Learn: Both the API server and the CLI need the same objects built the
same way, so construction lives here instead of in either entry point.
Demo mode is resolved exactly once, after the backend health probe, and
then frozen into the ConnectionManager for the rest of the process.

If Redis is unreachable the process still runs: data is fetched once and
live updates are disabled (the manager behaves as in demo mode).
"""

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from housesync.config import Settings, settings as default_settings
from housesync.data.demo import DemoDataService
from housesync.data.rest import RestDataService
from housesync.data.service import DataService
from housesync.demo_mode import is_demo_mode_active
from housesync.notifications import (
    LogNotificationPublisher,
    NotificationPublisher,
    RedisNotificationPublisher,
)
from housesync.realtime.manager import ConnectionManager, ReconnectPolicy
from housesync.realtime.redis_backend import RedisRealtimeBackend, connect_redis

logger = structlog.get_logger()


@dataclass
class Runtime:
    settings: Settings
    redis: aioredis.Redis
    data: DataService
    manager: ConnectionManager
    notifier: NotificationPublisher
    demo: bool
    redis_available: bool
    connection_healthy: Optional[bool] = None

    async def aclose(self) -> None:
        """Close channels first, then flush notifications, then the clients."""
        await self.manager.close()
        if isinstance(self.notifier, RedisNotificationPublisher):
            await self.notifier.drain(timeout=1.0)
        await self.data.aclose()
        try:
            await self.redis.aclose()
        except (RedisError, OSError) as e:
            logger.warning("runtime.redis_close_failed", error=str(e))


async def _ping(redis: aioredis.Redis) -> bool:
    try:
        await redis.ping()
    except (RedisError, OSError) as e:
        logger.warning("runtime.redis_unavailable", error=str(e))
        return False
    return True


async def build_runtime(settings: Optional[Settings] = None) -> Runtime:
    """Probe the backend and Redis, resolve demo mode, build the manager."""
    settings = settings or default_settings

    healthy: Optional[bool] = None
    rest: Optional[RestDataService] = None
    if settings.backend_configured:
        rest = RestDataService.from_settings(settings)
        healthy = await rest.check_connection()

    demo = is_demo_mode_active(settings, healthy)
    data: DataService
    if demo:
        if rest is not None:
            await rest.aclose()
        data = DemoDataService()
    else:
        data = rest

    redis = connect_redis(settings.redis_url)
    redis_available = await _ping(redis)

    manager = ConnectionManager(
        RedisRealtimeBackend(redis),
        is_demo_mode_active=lambda: demo or not redis_available,
        schema=settings.schema_name,
        policy=ReconnectPolicy(
            initial_delay_ms=settings.reconnect_initial_delay_ms,
            max_delay_ms=settings.reconnect_max_delay_ms,
        ),
    )
    notifier: NotificationPublisher
    if redis_available:
        notifier = RedisNotificationPublisher(redis)
    else:
        notifier = LogNotificationPublisher()

    logger.info(
        "runtime.ready",
        demo=demo,
        backend_healthy=healthy,
        redis_available=redis_available,
    )
    return Runtime(
        settings=settings,
        redis=redis,
        data=data,
        manager=manager,
        notifier=notifier,
        demo=demo,
        redis_available=redis_available,
        connection_healthy=healthy,
    )
