"""Settings router: /api/v1/settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dumptracker.dependencies import get_session_provider
from dumptracker.session.provider import SessionProvider
from dumptracker.users.schemas import SettingsResponse, SettingsUpdateRequest
from dumptracker.users.settings import SettingsView
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


def _settings_response(view: SettingsView) -> SettingsResponse:
    return SettingsResponse(
        first_name=view.first_name,
        last_name=view.last_name,
        leaderboard_opt_in=view.leaderboard_opt_in,
        location_tracking_opt_in=view.location_tracking_opt_in,
        success=view.success,
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
) -> SettingsResponse:
    view = SettingsView(provider)
    await view.mount()
    raise_for_view_error(view)
    return _settings_response(view)


@router.patch("", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdateRequest,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
) -> SettingsResponse:
    """Save names and opt-ins. Opting in to the leaderboard needs both names.

    Only the fields present in the body change; a name sent as null clears it.
    """
    view = SettingsView(provider)
    await view.mount()
    raise_for_view_error(view)

    sent = body.model_fields_set
    if "first_name" in sent:
        view.first_name = body.first_name or ""
    if "last_name" in sent:
        view.last_name = body.last_name or ""
    if body.location_tracking_opt_in is not None:
        view.toggle_location_tracking(body.location_tracking_opt_in)
    if body.leaderboard_opt_in is not None and body.leaderboard_opt_in != view.leaderboard_opt_in:
        view.toggle_leaderboard(body.leaderboard_opt_in)
        raise_for_view_error(view)

    await view.save()
    raise_for_view_error(view)
    return _settings_response(view)
