"""Dashboard view: the location list and the add / increment / commit / decrement flow."""

from __future__ import annotations

import structlog

from dumptracker.backend.errors import BackendError, NotFoundError
from dumptracker.dumps import service
from dumptracker.dumps.schemas import DashboardResponse, Dump, DumpType
from dumptracker.session.provider import SessionProvider
from dumptracker.users.service import ensure_user_exists, get_profile, user_row_exists
from dumptracker.views import BACKEND, NOT_FOUND, VALIDATION, BaseView

logger = structlog.get_logger()

IDLE = "idle"
LOCATION_DATA = "location-data"
DUMP_TYPE = "dump-type"
COMMITTED = "committed"

VALID_TRANSITIONS: dict[str, list[str]] = {
    IDLE: [LOCATION_DATA, DUMP_TYPE],
    LOCATION_DATA: [DUMP_TYPE],
    DUMP_TYPE: [COMMITTED, IDLE],
    COMMITTED: [IDLE, LOCATION_DATA, DUMP_TYPE],
}

USER_NOT_FOUND_MESSAGE = "User record not found. Please contact support or try logging out and back in."


def validate_transition(current_step: str, target_step: str) -> None:
    """Validate a flow step change. Raises ValueError if invalid."""
    valid = VALID_TRANSITIONS.get(current_step, [])
    if target_step not in valid:
        raise ValueError(
            f"Invalid transition: {current_step} -> {target_step}. "
            f"Valid transitions: {valid}"
        )


class DashboardView(BaseView):
    """Holds the user's locations and the entry flow for one active location.

    Counts shown here always come from a re-fetch of the dump row after a
    mutation; the list is never patched from local arithmetic.
    """

    def __init__(self, provider: SessionProvider) -> None:
        super().__init__(provider)
        self.locations: list[Dump] = []
        self.flow_step = IDLE
        self.active_dump_id: str | None = None
        self.detail_dump: Dump | None = None
        self.location_tracking_opt_in = False
        self.ready = False

    # --- helpers ---

    def find(self, dump_id: str) -> Dump | None:
        return next((d for d in self.locations if d.id == dump_id), None)

    @property
    def active_dump(self) -> Dump | None:
        return self.find(self.active_dump_id) if self.active_dump_id else None

    def _step(self, target: str) -> None:
        if target == self.flow_step:
            return
        validate_transition(self.flow_step, target)
        self.flow_step = target

    def snapshot(self) -> DashboardResponse:
        return DashboardResponse(
            locations=self.locations,
            flow_step=self.flow_step,
            active_dump_id=self.active_dump_id,
            detail_dump=self.detail_dump,
            location_tracking_opt_in=self.location_tracking_opt_in,
        )

    def apply_dump(self, dump: Dump) -> None:
        self.locations = service.merge_dump(self.locations, dump)
        if self.detail_dump and self.detail_dump.id == dump.id:
            self.detail_dump = dump

    # --- mount / list ---

    async def mount(self) -> bool:
        """Make sure the profile row exists, then load opt-ins and the location list."""
        self.clear_error()
        client = self.provider.backend()
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")

        async with self.guard("dashboard_mount_failed"):
            try:
                await ensure_user_exists(client)
            except BackendError as e:
                logger.warning("ensure_user_exists_failed", error=e.message)
                if not await user_row_exists(client, user_id):
                    self.fail(BACKEND, USER_NOT_FOUND_MESSAGE)
                    return False

            await self._load_opt_in(user_id)
            await self.refresh()
            self.ready = True
        return self.error is None

    async def _load_opt_in(self, user_id: str) -> None:
        try:
            profile = await get_profile(self.provider.backend(), user_id)
        except BackendError as e:
            logger.info("profile_unavailable", error=e.message)
            self.location_tracking_opt_in = False
            return
        self.location_tracking_opt_in = profile.location_tracking_opt_in

    async def refresh(self) -> None:
        """Replace the list with the backend's, ordered by count descending."""
        if self.user_id is None:
            return
        self.locations = await service.list_dumps(self.provider.backend(), self.user_id)

    # --- add / increment ---

    async def add_location(self, location_name: str) -> bool:
        """Reuse a case-insensitive match or create the location at count 0, then ask for a type."""
        self.clear_error()
        name = location_name.strip()
        if not name:
            return self.fail(VALIDATION, "Please enter a location name")
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")

        async with self.guard("add_location_failed"):
            client = self.provider.backend()
            dump = await service.find_dump_by_name(client, user_id, name)
            if dump is None:
                dump = await service.create_dump(client, user_id, name)
                self.apply_dump(dump)
            elif self.find(dump.id) is None:
                self.apply_dump(dump)
            self.active_dump_id = dump.id
            self._step(DUMP_TYPE)
        return self.error is None

    def increment(self, dump_id: str) -> bool:
        """Open the entry flow, interposing location capture when it is still wanted."""
        self.clear_error()
        dump = self.find(dump_id)
        if dump is None:
            return self.fail(NOT_FOUND, "Location not found")
        if self.flow_step in (LOCATION_DATA, DUMP_TYPE):
            self.flow_step = IDLE
        self.active_dump_id = dump_id
        if self.location_tracking_opt_in and dump.needs_location_data:
            self._step(LOCATION_DATA)
        else:
            self._step(DUMP_TYPE)
        return True

    def location_data_done(self, dump: Dump | None = None) -> None:
        """Leave the capture step (saved, skipped or dismissed) for the type selector."""
        if dump is not None:
            self.apply_dump(dump)
        if self.flow_step == LOCATION_DATA:
            self._step(DUMP_TYPE)

    def dismiss_location_data(self) -> None:
        self.location_data_done()

    def dismiss_type_selector(self) -> None:
        """Cancel without writing anything."""
        if self.flow_step == DUMP_TYPE:
            self._step(IDLE)
        self.active_dump_id = None

    # --- commit / decrement ---

    async def commit(self, dump_type: DumpType) -> bool:
        """Insert one entry of ``dump_type`` for the active location, then re-fetch its row."""
        self.clear_error()
        dump_id = self.active_dump_id
        user_id = self.user_id
        if self.flow_step != DUMP_TYPE or dump_id is None or user_id is None:
            return self.fail(VALIDATION, "Choose a location first")

        async with self.guard("commit_entry_failed"):
            client = self.provider.backend()
            try:
                await service.insert_entry(client, dump_id, user_id, dump_type)
            except BackendError as e:
                logger.warning("dump_entry_insert_failed", dump_id=dump_id, error=e.message, fallback="count_write")
                await service.adjust_count(client, dump_id, user_id, +1)
            self.apply_dump(await service.get_dump(client, dump_id, user_id))
            self._step(COMMITTED)
        return self.error is None

    async def decrement(self, dump_id: str) -> bool:
        """Remove the most recent entry. Does nothing at all when the count is already zero."""
        self.clear_error()
        dump = self.find(dump_id)
        user_id = self.user_id
        if dump is None or user_id is None:
            return self.fail(NOT_FOUND, "Location not found")
        if dump.count <= 0:
            return False

        async with self.guard("decrement_failed"):
            client = self.provider.backend()
            deleted = 0
            try:
                entry = await service.latest_entry(client, dump_id, user_id)
                if entry is not None:
                    deleted = await service.delete_entry(client, entry.id, user_id)
            except BackendError as e:
                logger.warning("dump_entry_delete_failed", dump_id=dump_id, error=e.message, fallback="count_write")
            if not deleted:
                await service.adjust_count(client, dump_id, user_id, -1)
            self.apply_dump(await service.get_dump(client, dump_id, user_id))
        return self.error is None

    # --- detail / session ---

    async def open_detail(self, dump_id: str) -> bool:
        self.clear_error()
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")
        async with self.guard("open_detail_failed"):
            try:
                self.detail_dump = await service.get_dump(self.provider.backend(), dump_id, user_id)
            except NotFoundError:
                self.fail(NOT_FOUND, "Location not found")
        return self.error is None

    def close_detail(self) -> None:
        self.detail_dump = None

    async def logout(self) -> None:
        await self.provider.sign_out()
