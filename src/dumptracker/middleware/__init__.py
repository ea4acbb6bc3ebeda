"""Middleware registration."""

import structlog
from fastapi import FastAPI

from dumptracker.config import Settings
from dumptracker.middleware.cors import setup_cors
from dumptracker.middleware.error_handler import setup_error_handlers
from dumptracker.middleware.logging import setup_logging
from dumptracker.middleware.rate_limit import RateLimitMiddleware
from dumptracker.middleware.request_id import RequestIdMiddleware

logger = structlog.get_logger()


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register middleware. Starlette runs the last added one outermost.

    A ``rate_limit_requests`` of 0 leaves the limiter out entirely, for
    deployments where the managed backend already throttles clients.
    CORS is added last so 429 and error responses still carry CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    rate_limited = settings.rate_limit_requests > 0
    if rate_limited:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
    logger.info(
        "middleware_configured",
        rate_limited=rate_limited,
        rate_limit_store="redis" if settings.redis_url else "none",
        cors_origins=settings.cors_origins,
    )
