"""REST data service — PostgREST queries over httpx.

Learn: The backend exposes every table at /rest/v1/{table}. Embedded
relations and ordering are plain query params:

    GET /rest/v1/chores?select=*,house:houses(id,name)&order=deadline.asc.nullslast

Auth is the project's anon key, sent both as `apikey` and as a bearer token.
"""

import time
from typing import Callable, Optional

import httpx
import structlog

from housesync.config import Settings
from housesync.data.service import DataService, events_for_player

logger = structlog.get_logger()


class RestDataService(DataService):
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        health_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={"apikey": anon_key, "Authorization": f"Bearer {anon_key}"},
            timeout=timeout,
            transport=transport,
        )
        self._health_timeout = health_timeout
        self._health_interval = health_interval
        self._clock = clock
        self._healthy: Optional[bool] = None
        self._last_check: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestDataService":
        return cls(
            settings.backend_url,
            settings.backend_anon_key,
            health_timeout=settings.health_check_timeout_seconds,
            health_interval=settings.health_check_interval_seconds,
        )

    @property
    def connection_healthy(self) -> Optional[bool]:
        """Result of the last probe; None when never probed."""
        return self._healthy

    async def _select(self, table: str, **params: str) -> list[dict]:
        r = await self._client.get(f"/{table}", params=params)
        r.raise_for_status()
        return r.json()

    # ─── Fetch contract ─────────────────────────────────────

    async def get_players(self) -> list[dict]:
        return await self._select(
            "players",
            select="*,house:houses(id,name,total_points)",
            order="points.desc",
        )

    async def get_houses(self) -> list[dict]:
        return await self._select("houses", select="*", order="total_points.desc")

    async def get_chores(self) -> list[dict]:
        return await self._select(
            "chores",
            select=(
                "*,house:houses(id,name),"
                "assigned_player:players(id,first_name,last_name)"
            ),
            order="deadline.asc.nullslast",
        )

    async def get_events(self) -> list[dict]:
        return await self._select(
            "events",
            select="*,attendees:event_attendees(*,player:players(id,first_name,last_name))",
            order="start_time.asc",
        )

    async def get_player_events(self, player_id) -> list[dict]:
        events = await self.get_events()
        attendance = await self._select("event_attendees", select="event_id,player_id")
        return events_for_player(events, attendance, player_id)

    async def get_wellness_logs(self, player_id, limit: int = 30) -> list[dict]:
        return await self._select(
            "wellness_logs",
            select="*",
            player_id=f"eq.{player_id}",
            order="date.desc",
            limit=str(limit),
        )

    # ─── Health ─────────────────────────────────────────────

    async def check_connection(self) -> bool:
        """Cheap probe of the houses table, cached for health_interval seconds."""
        now = self._clock()
        if self._healthy is not None and now - self._last_check < self._health_interval:
            return self._healthy

        try:
            r = await self._client.get(
                "/houses",
                params={"select": "id", "limit": "1"},
                timeout=self._health_timeout,
            )
            self._healthy = r.status_code < 400
        except httpx.HTTPError as e:
            logger.warning("data.health_check_failed", error=str(e))
            self._healthy = False
        self._last_check = now

        if not self._healthy:
            logger.warning("data.backend_unhealthy")
        return self._healthy

    async def aclose(self) -> None:
        await self._client.aclose()
