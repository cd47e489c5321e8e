"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: The API is a read-only window onto the process's realtime state.
Nothing here writes to the backend, so there is no auth layer; changes
flow in through the Redis change stream, not through HTTP.
"""

from fastapi import APIRouter

from housesync.api.health import router as health_router
from housesync.api.leaderboard import router as leaderboard_router
from housesync.api.realtime import router as realtime_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(realtime_router, tags=["realtime"])
api_router.include_router(leaderboard_router, tags=["leaderboard"])
