"""Location calendar router: month grid, day details, backdated add, entry edit/delete."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dumptracker.backend.errors import BackendError, NotFoundError
from dumptracker.config import Settings
from dumptracker.dependencies import get_app_settings, get_session_provider
from dumptracker.dumps import service
from dumptracker.dumps.schemas import EntryResponse
from dumptracker.location_calendar.grouping import format_long_date, format_time
from dumptracker.location_calendar.schemas import (
    BackdatedEntryRequest,
    CalendarDayResponse,
    CalendarResponse,
    DayEntryResponse,
    DayResponse,
    EntryChangeResponse,
    EntryTypeRequest,
)
from dumptracker.location_calendar.view import LocationCalendarView
from dumptracker.session.provider import SessionProvider
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1", tags=["Calendar"])


async def _open_calendar(provider: SessionProvider, settings: Settings, dump_id: str) -> LocationCalendarView:
    user = provider.user
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        dump = await service.get_dump(provider.backend(), dump_id, user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Location not found") from e
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    view = LocationCalendarView(provider, dump, settings)
    await view.mount()
    raise_for_view_error(view)
    return view


def _day_response(view: LocationCalendarView, day: date) -> DayResponse:
    view.select_date(day)
    return DayResponse(
        dump=view.dump,
        day=day,
        label=format_long_date(day),
        entries=[
            DayEntryResponse(
                **EntryResponse.from_entry(e).model_dump(),
                time_label=f"{format_time(e.created_at, view.tz)} EST",
            )
            for e in view.selected_entries
        ],
        add_entry=view.add_date is not None,
    )


def _change_response(view: LocationCalendarView) -> EntryChangeResponse:
    return EntryChangeResponse(dump=view.dump, entries=[EntryResponse.from_entry(e) for e in view.entries])


@router.get("/dumps/{dump_id}/calendar", response_model=CalendarResponse)
async def month_view(
    dump_id: str,
    year: int | None = Query(None, ge=1970, le=9999),  # noqa: B008
    month: int | None = Query(None, ge=1, le=12),  # noqa: B008
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> CalendarResponse:
    """Sunday-first month grid with per-day entry counts.

    ``year`` and ``month`` each default to the current civil month's value.
    """
    view = await _open_calendar(provider, settings, dump_id)
    if year is not None:
        view.year = year
    if month is not None:
        view.month = month
    return CalendarResponse(
        dump=view.dump,
        year=view.year,
        month=view.month,
        month_label=view.month_label,
        weeks=[
            [CalendarDayResponse(day=cell.day, count=cell.count) if cell else None for cell in week]
            for week in view.grid
        ],
        total_entries=len(view.entries),
    )


@router.get("/dumps/{dump_id}/calendar/{day}", response_model=DayResponse)
async def day_view(
    dump_id: str,
    day: date,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DayResponse:
    view = await _open_calendar(provider, settings, dump_id)
    return _day_response(view, day)


@router.post("/dumps/{dump_id}/calendar/{day}/entries", response_model=DayResponse, status_code=status.HTTP_201_CREATED)
async def add_backdated_entry(
    dump_id: str,
    day: date,
    body: BackdatedEntryRequest,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> DayResponse:
    """Add an entry on ``day`` at an explicit time of day."""
    view = await _open_calendar(provider, settings, dump_id)
    await view.add_entry(body.time_of_day, body.dump_type, day=day)
    raise_for_view_error(view)
    return _day_response(view, day)


async def _calendar_for_entry(provider: SessionProvider, settings: Settings, entry_id: str) -> LocationCalendarView:
    user = provider.user
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        entry = await service.get_entry(provider.backend(), entry_id, user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Entry not found") from e
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    return await _open_calendar(provider, settings, entry.dump_id)


@router.patch("/entries/{entry_id}", response_model=EntryChangeResponse)
async def edit_entry(
    entry_id: str,
    body: EntryTypeRequest,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> EntryChangeResponse:
    """Change an entry's type (single-select)."""
    view = await _calendar_for_entry(provider, settings, entry_id)
    await view.edit_entry(entry_id, body.dump_type)
    raise_for_view_error(view)
    return _change_response(view)


@router.delete("/entries/{entry_id}", response_model=EntryChangeResponse)
async def delete_entry(
    entry_id: str,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> EntryChangeResponse:
    """Delete any entry, not only the most recent one."""
    view = await _calendar_for_entry(provider, settings, entry_id)
    await view.delete_entry(entry_id)
    raise_for_view_error(view)
    return _change_response(view)
