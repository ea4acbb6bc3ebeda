"""Leaderboard router: /api/v1/leaderboard."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends

from dumptracker.config import Settings
from dumptracker.dependencies import get_app_settings, get_session_provider
from dumptracker.leaderboard.schemas import LeaderboardResponse
from dumptracker.leaderboard.view import LeaderboardView
from dumptracker.session.provider import SessionProvider
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> LeaderboardResponse:
    """All rankings and records, or ``opted_in: false`` with empty lists for users who have not opted in."""
    view = LeaderboardView(provider, ZoneInfo(settings.civil_timezone))
    await view.mount()
    raise_for_view_error(view)
    return view.snapshot()
