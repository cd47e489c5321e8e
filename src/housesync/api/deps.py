"""Request dependencies — access to objects built in the app lifespan."""

from fastapi import HTTPException, Request

from housesync.runtime import Runtime
from housesync.sync.house_points import HousePointsSynchronizer


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Runtime not started")
    return runtime


def get_leaderboard(request: Request) -> HousePointsSynchronizer:
    leaderboard = getattr(request.app.state, "leaderboard", None)
    if leaderboard is None:
        raise HTTPException(status_code=503, detail="Leaderboard not started")
    return leaderboard
