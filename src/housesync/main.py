"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, data service, the
ConnectionManager and the live leaderboard). CORS and routers are
registered here; each concern lives in its own module.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from housesync import __version__
from housesync.api import api_router
from housesync.config import settings
from housesync.log_config import configure_logging
from housesync.runtime import build_runtime
from housesync.sync.house_points import HousePointsSynchronizer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Shutdown mirrors startup in reverse: synchronizer first,
    then channels and clients.
    """
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "housesync.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    runtime = await build_runtime(settings)
    leaderboard = HousePointsSynchronizer(
        runtime.manager,
        runtime.data,
        notifier=runtime.notifier,
    )
    await leaderboard.start()

    app.state.runtime = runtime
    app.state.leaderboard = leaderboard

    yield

    # Shutdown
    logger.info("housesync.shutdown")
    await leaderboard.stop()
    await runtime.aclose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="HouseSync",
        description="Real-time sync layer for house chores, events, points and wellness",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """Bind a request id to every log line of the request and echo it back."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        logger.debug(
            "api.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    # Mount API routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: housesync.main:app)
app = create_app()
