"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mta_realtime.config import get_settings
from mta_realtime.dependencies import (
    get_poller_manager,
    get_stop_store,
    reset_dependencies,
)
from mta_realtime.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from mta_realtime.routers.feeds import router as feeds_router
from mta_realtime.routers.sessions import router as sessions_router
from mta_realtime.routers.stops import router as stops_router
from mta_realtime.services.feeds.errors import (
    FeedDecodeError,
    FeedFetchError,
    InvalidFeedKeyError,
)
from mta_realtime.services.feeds.poller import PollerManager
from mta_realtime.services.stops.store import StopIndexStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging()
    logger.info("Starting MTA Realtime Feed API")

    # Stop data loads in the background; feeds are served without it meanwhile
    settings = get_settings()
    stops_task: asyncio.Task[Any] | None = None
    if settings.stops_autoload:
        stops_task = asyncio.create_task(get_stop_store().try_reload())

    yield

    if stops_task is not None and not stops_task.done():
        stops_task.cancel()
        with suppress(asyncio.CancelledError):
            await stops_task
    await get_stop_store().close()

    await get_poller_manager().stop_all()
    reset_dependencies()

    logger.info("Shutting down MTA Realtime Feed API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Decoded MTA GTFS-Realtime feeds for NYC subway, LIRR and Metro-North, "
            "optionally joined with static stop reference data"
        ),
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Any:
        import uuid

        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        bind_request_context(request_id=request_id, path=request.url.path)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        clear_request_context()
        return response

    app.include_router(feeds_router)
    app.include_router(stops_router)
    app.include_router(sessions_router)

    @app.get("/health", tags=["meta"])
    async def health_check(
        store: StopIndexStore = Depends(get_stop_store),
        manager: PollerManager = Depends(get_poller_manager),
    ) -> dict[str, Any]:
        """Health check endpoint returning application status."""
        settings = get_settings()
        stops = store.get_status()
        sessions = manager.sessions()

        issues: list[str] = []
        if not stops["loaded"]:
            issues.append("Stop reference data not loaded; feeds served without enrichment")

        return {
            "service": settings.app_name,
            "status": "healthy" if not issues else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "stopIndex": {
                    "loaded": stops["loaded"],
                    "stopCount": stops["stop_count"],
                    "lastError": stops["last_error"],
                },
                "sessions": {
                    "active": len(sessions),
                    "running": sum(1 for s in sessions if s["running"]),
                },
            },
            "issues": issues,
        }

    @app.exception_handler(InvalidFeedKeyError)
    async def invalid_feed_handler(request: Request, exc: InvalidFeedKeyError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": exc.kind.value, "message": "Invalid feed specified"},
        )

    @app.exception_handler(FeedFetchError)
    async def fetch_error_handler(request: Request, exc: FeedFetchError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={
                "error": "upstream_unavailable",
                "message": f"Failed to fetch {exc.source.label} feed",
            },
        )

    @app.exception_handler(FeedDecodeError)
    async def decode_error_handler(request: Request, exc: FeedDecodeError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"error": "upstream_format_changed", "message": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    return app


app = create_app()
