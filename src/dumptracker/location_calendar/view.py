"""Location calendar view: month grid, day details, backdated add, edit and delete."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from dumptracker.config import Settings
from dumptracker.dumps import service
from dumptracker.dumps.dashboard import DashboardView
from dumptracker.dumps.schemas import Dump, DumpEntry, DumpType
from dumptracker.location_calendar.grouping import (
    CalendarDay,
    civil_date,
    compose_entry_timestamp,
    group_by_date,
    month_grid,
    oldest_first,
    shift_month,
)
from dumptracker.session.provider import SessionProvider
from dumptracker.views import BACKEND, NOT_FOUND, VALIDATION, BaseView


class LocationCalendarView(BaseView):
    """Calendar for one dump.

    Entries are re-fetched on mount and whenever the dump's id or count
    changes; every mutation here also re-fetches the dump row.
    """

    def __init__(
        self,
        provider: SessionProvider,
        dump: Dump,
        settings: Settings,
        dashboard: DashboardView | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(provider)
        self.dump = dump
        self.settings = settings
        self.dashboard = dashboard
        self.tz = ZoneInfo(settings.civil_timezone)
        today = today or civil_date(datetime.now(timezone.utc), self.tz)
        self.year, self.month = today.year, today.month
        self.entries: list[DumpEntry] = []
        self.entries_by_date: dict[date, list[DumpEntry]] = {}
        self.selected_date: date | None = None
        self.add_date: date | None = None
        self.pending_delete: DumpEntry | None = None
        self._loaded_key: tuple[str, int] | None = None

    # --- loading ---

    async def mount(self) -> bool:
        self.clear_error()
        async with self.guard("calendar_fetch_failed"):
            await self._fetch_entries()
        return self.error is None

    async def refresh_if_changed(self, dump: Dump) -> bool:
        """Re-fetch when the dump identity or its count moved; returns whether it did."""
        self.dump = dump
        if self._loaded_key == (dump.id, dump.count):
            return False
        await self.mount()
        return True

    async def _fetch_entries(self) -> None:
        user_id = self.user_id
        if user_id is None:
            self.fail(BACKEND, "Not signed in")
            return
        self.entries = await service.list_entries(self.provider.backend(), self.dump.id, user_id)
        self.entries_by_date = group_by_date(self.entries, self.tz)
        self._loaded_key = (self.dump.id, self.dump.count)

    async def _refetch_all(self) -> None:
        user_id = self.user_id
        if user_id is None:
            return
        self.dump = await service.get_dump(self.provider.backend(), self.dump.id, user_id)
        if self.dashboard is not None:
            self.dashboard.apply_dump(self.dump)
        await self._fetch_entries()

    # --- month grid ---

    @property
    def grid(self) -> list[list[CalendarDay | None]]:
        counts = {day: len(items) for day, items in self.entries_by_date.items()}
        return month_grid(self.year, self.month, counts)

    @property
    def month_label(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")

    def previous_month(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, -1)

    def next_month(self) -> None:
        self.year, self.month = shift_month(self.year, self.month, 1)

    # --- day selection ---

    def select_date(self, day: date) -> None:
        """Show a day's entries, or open the add flow when it has none."""
        self.clear_error()
        if self.entries_by_date.get(day):
            self.selected_date = day
            self.add_date = None
        else:
            self.selected_date = None
            self.add_date = day

    @property
    def selected_entries(self) -> list[DumpEntry]:
        if self.selected_date is None:
            return []
        return oldest_first(self.entries_by_date.get(self.selected_date, []))

    def cancel_add(self) -> None:
        self.add_date = None

    async def add_entry(self, time_of_day: time | None, dump_type: DumpType, day: date | None = None) -> bool:
        """Backdate one entry onto the chosen day at an explicit time."""
        self.clear_error()
        day = day or self.add_date
        if day is None:
            return self.fail(VALIDATION, "Choose a date first")
        try:
            created_at = compose_entry_timestamp(day, time_of_day, self.settings.backdate_utc_offset_hours)
        except ValueError as e:
            return self.fail(VALIDATION, str(e))
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")

        async with self.guard("calendar_add_failed"):
            await service.insert_entry(self.provider.backend(), self.dump.id, user_id, dump_type, created_at=created_at)
            await self._refetch_all()
            self.add_date = None
            self.selected_date = day
        return self.error is None

    # --- edit / delete ---

    def _entry(self, entry_id: str) -> DumpEntry | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    async def edit_entry(self, entry_id: str, dump_type: DumpType) -> bool:
        """Change an entry's type in place; exactly one flag ends up set (none for standard)."""
        self.clear_error()
        user_id = self.user_id
        if self._entry(entry_id) is None or user_id is None:
            return self.fail(NOT_FOUND, "Entry not found")
        async with self.guard("calendar_edit_failed"):
            await service.update_entry_type(self.provider.backend(), entry_id, user_id, dump_type)
            await self._refetch_all()
        return self.error is None

    async def delete_entry(self, entry_id: str) -> bool:
        """Delete any entry directly; the count follows through the backend trigger."""
        self.clear_error()
        user_id = self.user_id
        if self._entry(entry_id) is None or user_id is None:
            return self.fail(NOT_FOUND, "Entry not found")
        async with self.guard("calendar_delete_failed"):
            await service.delete_entry(self.provider.backend(), entry_id, user_id)
            await self._refetch_all()
            if self.selected_date and not self.entries_by_date.get(self.selected_date):
                self.selected_date = None
        return self.error is None

    # --- decrement with confirmation ---

    async def request_decrement(self) -> bool:
        """Stage the most recent entry for confirmation. Nothing to do at count zero."""
        self.clear_error()
        if self.dump.count <= 0:
            return False
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")
        if self.entries:
            self.pending_delete = self.entries[0]
            return True
        async with self.guard("calendar_latest_entry_failed"):
            self.pending_delete = await service.latest_entry(self.provider.backend(), self.dump.id, user_id)
        return self.pending_delete is not None

    def cancel_decrement(self) -> None:
        self.pending_delete = None

    async def confirm_decrement(self) -> bool:
        """Hand the decrement to the dashboard, then reload the calendar."""
        if self.pending_delete is None or self.dashboard is None:
            return False
        ok = await self.dashboard.decrement(self.dump.id)
        if not ok:
            if self.dashboard.error:
                self.error = self.dashboard.error
            return False
        refreshed = self.dashboard.find(self.dump.id)
        if refreshed is not None:
            self.dump = refreshed
        async with self.guard("calendar_fetch_failed"):
            await self._fetch_entries()
        self.pending_delete = None
        self.selected_date = None
        return self.error is None
