"""Location data router: /api/v1/dumps/{id}/location-data endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from dumptracker.backend.connection import get_http
from dumptracker.config import Settings
from dumptracker.dependencies import get_app_settings
from dumptracker.dumps.dashboard import DashboardView
from dumptracker.dumps.dependencies import get_dashboard
from dumptracker.dumps.schemas import DashboardResponse
from dumptracker.locations.capture import LocationCaptureView
from dumptracker.locations.geolocation import reported_position
from dumptracker.locations.schemas import LocationDataRequest, PositionReport, ResolvedAddressResponse
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/dumps", tags=["Location data"])


def _capture(view: DashboardView, dump_id: str, settings: Settings) -> LocationCaptureView:
    dump = view.find(dump_id)
    if dump is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return LocationCaptureView(view.provider, dump, get_http(), settings)


@router.post("/{dump_id}/location-data/position", response_model=ResolvedAddressResponse)
async def resolve_position(
    dump_id: str,
    body: PositionReport,
    view: DashboardView = Depends(get_dashboard),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> ResolvedAddressResponse:
    """Turn a device position into an address. Nothing is saved yet."""
    capture = _capture(view, dump_id, settings)
    await capture.use_current_location(
        reported_position(body.latitude, body.longitude, body.accuracy, body.error_code)
    )
    raise_for_view_error(capture)
    if capture.latitude is None or capture.longitude is None:
        raise HTTPException(status_code=422, detail="No position available")
    return ResolvedAddressResponse(
        address=capture.address,
        latitude=capture.latitude,
        longitude=capture.longitude,
        warning=capture.warning,
    )


@router.post("/{dump_id}/location-data", response_model=DashboardResponse)
async def save_location_data(
    dump_id: str,
    body: LocationDataRequest,
    view: DashboardView = Depends(get_dashboard),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DashboardResponse:
    """Store the address (and coordinates, when given); the entry flow moves on to the type selector."""
    capture = _capture(view, dump_id, settings)
    view.increment(dump_id)
    await capture.save(body.address, latitude=body.latitude, longitude=body.longitude)
    raise_for_view_error(capture)
    view.location_data_done(capture.dump)
    return view.snapshot()


@router.post("/{dump_id}/location-data/decline", response_model=DashboardResponse)
async def decline_location_data(
    dump_id: str,
    view: DashboardView = Depends(get_dashboard),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DashboardResponse:
    """Never ask for this location's data again; the entry flow moves on."""
    capture = _capture(view, dump_id, settings)
    view.increment(dump_id)
    await capture.skip()
    raise_for_view_error(capture)
    view.location_data_done(capture.dump)
    return view.snapshot()
