"""CORS for the browser front end."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dumptracker.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured front-end origins, including the refresh-token header."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id", "X-Refresh-Token"],
        expose_headers=[
            "X-Request-Id",
            "X-RateLimit-Remaining",
            "X-RateLimit-Limit",
            "X-Access-Token",
            "X-Refresh-Token",
        ],
    )
