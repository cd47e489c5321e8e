"""House leaderboard — served from the live synchronizer's cache.

Learn: No request ever hits the backend. The HousePointsSynchronizer
started in the lifespan keeps the list sorted and current; this route
only reads its snapshot.
"""

from fastapi import APIRouter, Depends

from housesync.api.deps import get_leaderboard
from housesync.schemas.status import LeaderboardRead
from housesync.sync.house_points import HousePointsSynchronizer

router = APIRouter()


@router.get("/leaderboard", response_model=LeaderboardRead)
async def leaderboard(sync: HousePointsSynchronizer = Depends(get_leaderboard)):
    snapshot = sync.snapshot()
    return LeaderboardRead(
        houses=snapshot["items"],
        animating_id=snapshot["animating_id"],
        loading=snapshot["loading"],
        stale=snapshot["stale"],
        last_error=snapshot["last_error"],
        last_update=snapshot["last_update"],
    )
