"""Optional address/GPS capture for a location, shown before its first typed entry."""

from __future__ import annotations

import httpx
import structlog

from dumptracker.config import Settings
from dumptracker.dumps import service
from dumptracker.dumps.schemas import Dump
from dumptracker.locations.geocoding import reverse_geocode
from dumptracker.locations.geolocation import GeolocationError, PositionSource, request_position
from dumptracker.session.provider import SessionProvider
from dumptracker.views import BACKEND, GEOLOCATION, VALIDATION, BaseView

logger = structlog.get_logger()

MISSING_ADDRESS_MESSAGE = "Please enter an address or use your current location"


class LocationCaptureView(BaseView):
    """Collects an address (typed or reverse-geocoded) and saves or declines it.

    Either outcome marks the dump so the capture step is not offered again.
    """

    def __init__(self, provider: SessionProvider, dump: Dump, http: httpx.AsyncClient, settings: Settings) -> None:
        super().__init__(provider)
        self.dump = dump
        self.http = http
        self.settings = settings
        self.address = dump.address or ""
        self.latitude: float | None = None
        self.longitude: float | None = None
        self.use_gps = False
        self.warning: str | None = None
        self.locating = False

    async def use_current_location(self, source: PositionSource) -> bool:
        """Ask the device for one position and fill the address from it."""
        self.clear_error()
        self.warning = None
        self.locating = True
        try:
            position = await request_position(source, timeout=self.settings.geolocation_timeout_seconds)
        except GeolocationError as e:
            logger.info("geolocation_failed", code=e.code)
            return self.fail(GEOLOCATION, e.message)
        finally:
            self.locating = False

        result = await reverse_geocode(
            self.http,
            position,
            url=self.settings.geocoding_url,
            user_agent=self.settings.geocoding_user_agent,
        )
        self.address = result.address
        self.warning = result.warning
        self.latitude = position.latitude
        self.longitude = position.longitude
        self.use_gps = True
        return True

    async def save(
        self,
        address: str | None = None,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        self.clear_error()
        if address is not None:
            self.address = address
        if latitude is not None and longitude is not None:
            self.latitude, self.longitude, self.use_gps = latitude, longitude, True

        if not self.address.strip() and not self.use_gps:
            return self.fail(VALIDATION, MISSING_ADDRESS_MESSAGE)
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")

        async with self.guard("location_data_save_failed"):
            self.dump = await service.update_dump(
                self.provider.backend(),
                self.dump.id,
                user_id,
                {
                    "address": self.address.strip() or None,
                    "latitude": self.latitude if self.use_gps else None,
                    "longitude": self.longitude if self.use_gps else None,
                    "location_data_provided": True,
                    "location_data_declined": False,
                },
            )
            logger.info("location_data_saved", dump_id=self.dump.id, has_coordinates=self.use_gps)
        return self.error is None

    async def skip(self) -> bool:
        """Decline for this location."""
        self.clear_error()
        user_id = self.user_id
        if user_id is None:
            return self.fail(BACKEND, "Not signed in")
        async with self.guard("location_data_decline_failed"):
            self.dump = await service.update_dump(
                self.provider.backend(),
                self.dump.id,
                user_id,
                {"location_data_declined": True, "location_data_provided": False},
            )
        return self.error is None
