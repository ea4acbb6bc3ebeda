"""Dashboard router: /api/v1/dumps endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from dumptracker.dumps.dashboard import LOCATION_DATA, DashboardView
from dumptracker.dumps.dependencies import get_dashboard
from dumptracker.dumps.schemas import AddLocationRequest, CommitEntryRequest, DashboardResponse, Dump
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/dumps", tags=["Dumps"])


@router.get("", response_model=DashboardResponse)
async def list_locations(view: DashboardView = Depends(get_dashboard)) -> DashboardResponse:  # noqa: B008
    """The caller's locations, highest count first."""
    return view.snapshot()


@router.post("", response_model=DashboardResponse, status_code=status.HTTP_201_CREATED)
async def add_location(
    body: AddLocationRequest,
    view: DashboardView = Depends(get_dashboard),  # noqa: B008
) -> DashboardResponse:
    """Find (case-insensitively) or create a location; the response opens the type selector."""
    await view.add_location(body.location_name)
    raise_for_view_error(view)
    return view.snapshot()


@router.get("/{dump_id}", response_model=Dump)
async def get_location(dump_id: str, view: DashboardView = Depends(get_dashboard)) -> Dump:  # noqa: B008
    await view.open_detail(dump_id)
    raise_for_view_error(view)
    if view.detail_dump is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return view.detail_dump


@router.post("/{dump_id}/increment", response_model=DashboardResponse)
async def increment(dump_id: str, view: DashboardView = Depends(get_dashboard)) -> DashboardResponse:  # noqa: B008
    """Start the entry flow: ``flow_step`` is ``location-data`` or ``dump-type``."""
    view.increment(dump_id)
    raise_for_view_error(view)
    return view.snapshot()


@router.post("/{dump_id}/entries", response_model=DashboardResponse, status_code=status.HTTP_201_CREATED)
async def commit_entry(
    dump_id: str,
    body: CommitEntryRequest,
    view: DashboardView = Depends(get_dashboard),  # noqa: B008
) -> DashboardResponse:
    """Record one entry of the chosen type."""
    view.increment(dump_id)
    raise_for_view_error(view)
    if view.flow_step == LOCATION_DATA:
        view.dismiss_location_data()
    await view.commit(body.dump_type)
    raise_for_view_error(view)
    return view.snapshot()


@router.post("/{dump_id}/decrement", response_model=DashboardResponse)
async def decrement(dump_id: str, view: DashboardView = Depends(get_dashboard)) -> DashboardResponse:  # noqa: B008
    """Remove the most recent entry; a no-op at count zero."""
    await view.decrement(dump_id)
    raise_for_view_error(view)
    return view.snapshot()
