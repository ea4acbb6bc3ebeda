"""FastAPI dependencies for dashboard-backed routes."""

from __future__ import annotations

from fastapi import Depends

from dumptracker.dependencies import get_session_provider
from dumptracker.dumps.dashboard import DashboardView
from dumptracker.session.provider import SessionProvider
from dumptracker.views import raise_for_view_error


async def get_dashboard(
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
) -> DashboardView:
    """A mounted dashboard for the caller (profile row ensured, list loaded)."""
    view = DashboardView(provider)
    await view.mount()
    raise_for_view_error(view)
    return view
