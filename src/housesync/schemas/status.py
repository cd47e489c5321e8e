"""Pydantic schemas for the status API.

Learn: Rows come straight from the backend and carry whatever columns the
table has, so house rows are validated loosely (`extra="allow"`) and only
the fields the leaderboard relies on are declared.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


# ─── Realtime ───────────────────────────────────────────


class RealtimeStatus(BaseModel):
    connection_state: str
    label: str
    active_subscriptions: int
    is_demo: bool
    is_connected: bool


# ─── Leaderboard ────────────────────────────────────────


class HouseRead(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    name: Optional[str] = None
    total_points: int = 0


class LeaderboardRead(BaseModel):
    houses: list[HouseRead]
    animating_id: Optional[Union[int, str]] = None
    loading: bool
    stale: bool
    last_error: Optional[str] = None
    last_update: Optional[datetime] = None
