"""HR Console — FastAPI Application Factory."""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from hrconsole import __version__
from hrconsole.common.events import LocalEventBus
from hrconsole.common.exceptions import register_exception_handlers
from hrconsole.common.http import build_http_client
from hrconsole.common.log_config import configure_logging
from hrconsole.common.rate_limit import limiter
from hrconsole.common.tasks import BackgroundTaskRunner
from hrconsole.config import settings
from hrconsole.leave.router import router as leave_router
from hrconsole.notifications.router import router as notifications_router

SHUTDOWN_DRAIN_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    yield
    # Shutdown: let in-flight notifications finish, then release the pool.
    await app.state.task_runner.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    await app.state.http_client.aclose()


def create_app(
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces the network transport of the backend client.
    """
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="HR Console",
        description="Leave request lifecycle and notification fan-out",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Shared state: one backend client, one event bus, one task runner
    app.state.http_client = build_http_client(settings, transport=transport)
    app.state.events = LocalEventBus()
    app.state.task_runner = BackgroundTaskRunner()

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(
        notifications_router, prefix="/api/v1/notifications", tags=["notifications"],
    )

    return app


app = create_app()
