"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from dumptracker.auth.router import router as auth_router
from dumptracker.backend.connection import close_backend, init_backend
from dumptracker.config import get_settings
from dumptracker.dumps.router import router as dumps_router
from dumptracker.health.router import router as health_router
from dumptracker.leaderboard.router import router as leaderboard_router
from dumptracker.location_calendar.router import router as calendar_router
from dumptracker.locations.router import router as locations_router
from dumptracker.middleware import setup_middleware
from dumptracker.news.router import router as news_router
from dumptracker.notifications.router import router as notifications_router
from dumptracker.redis_client import close_redis, init_redis
from dumptracker.session.router import router as session_router
from dumptracker.users.router import router as settings_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_backend(settings)
    await init_redis(settings.redis_url)
    logger.info("app_started", environment=settings.environment, backend=settings.supabase_url)

    yield

    await close_backend()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dump Tracker API",
        description="Backend API for Dump Tracker, a per-location habit tracker with an opt-in leaderboard",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(session_router)
    app.include_router(auth_router)
    app.include_router(dumps_router)
    app.include_router(locations_router)
    app.include_router(calendar_router)
    app.include_router(settings_router)
    app.include_router(leaderboard_router)
    app.include_router(notifications_router)
    app.include_router(news_router)

    return app


app = create_app()
