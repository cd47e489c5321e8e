"""Realtime status — what a UI connection indicator would show."""

from fastapi import APIRouter, Depends

from housesync.api.deps import get_runtime
from housesync.runtime import Runtime
from housesync.schemas.status import RealtimeStatus

router = APIRouter()


@router.get("/realtime/status", response_model=RealtimeStatus)
async def realtime_status(runtime: Runtime = Depends(get_runtime)):
    manager = runtime.manager
    state = manager.connection_state.value
    return RealtimeStatus(
        connection_state=state.value,
        label=state.label,
        active_subscriptions=manager.get_active_subscriptions(),
        is_demo=manager.is_demo,
        is_connected=manager.is_connected,
    )
