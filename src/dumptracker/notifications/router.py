"""Notifications router: /api/v1/notifications."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends

from dumptracker.config import Settings
from dumptracker.dependencies import get_app_settings, get_session_provider
from dumptracker.notifications.schemas import NotificationsResponse
from dumptracker.notifications.view import NotificationsView
from dumptracker.session.provider import SessionProvider
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> NotificationsResponse:
    view = NotificationsView(provider, settings.notifications_limit, ZoneInfo(settings.civil_timezone))
    await view.mount()
    raise_for_view_error(view)
    return view.snapshot()
