"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and dependencies (Redis, the data backend) are reachable. In demo mode
the backend is not probed at all and reports "demo".
"""

from fastapi import APIRouter, Depends

from housesync import __version__
from housesync.api.deps import get_runtime
from housesync.runtime import Runtime

router = APIRouter()


@router.get("/health")
async def health_check(runtime: Runtime = Depends(get_runtime)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Redis
    try:
        await runtime.redis.ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    # Check backend
    if runtime.demo:
        checks["backend"] = "demo"
    elif await runtime.data.check_connection():
        checks["backend"] = "ok"
    else:
        checks["backend"] = "unreachable"

    status = "healthy" if all(
        v in ("ok", "demo") for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {"status": status, **checks}
