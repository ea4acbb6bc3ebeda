"""Request/response schemas for the location calendar."""

from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel

from dumptracker.dumps.schemas import Dump, DumpType, EntryResponse


class CalendarDayResponse(BaseModel):
    day: date
    count: int


class CalendarResponse(BaseModel):
    dump: Dump
    year: int
    month: int
    month_label: str
    weeks: list[list[CalendarDayResponse | None]]
    total_entries: int


class DayEntryResponse(EntryResponse):
    time_label: str


class DayResponse(BaseModel):
    """Entries of one civil day, oldest first; empty days open the add flow."""

    dump: Dump
    day: date
    label: str
    entries: list[DayEntryResponse]
    add_entry: bool


class BackdatedEntryRequest(BaseModel):
    """``time_of_day`` has no default; a missing time is rejected."""

    time_of_day: time | None = None
    dump_type: DumpType = DumpType.STANDARD


class EntryTypeRequest(BaseModel):
    dump_type: DumpType


class EntryChangeResponse(BaseModel):
    dump: Dump
    entries: list[EntryResponse]
