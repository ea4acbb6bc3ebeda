"""Device position requests.

The position itself is reported by the client device; this module bounds
the wait with a timeout and maps the device's failure codes to messages.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

_PREFIX = "Failed to get your location. "
_MESSAGES = {
    PERMISSION_DENIED: (
        "Location permission was denied. Please enable location access in your "
        "browser settings or enter an address manually."
    ),
    POSITION_UNAVAILABLE: (
        "Location information is unavailable. Your device may not be able to "
        "determine your location. Please enter an address manually."
    ),
    TIMEOUT: "Location request timed out. Please try again or enter an address manually.",
}


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: float | None = None

    @property
    def coordinates(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"


class GeolocationError(Exception):
    """The device could not produce a position."""

    def __init__(self, code: int) -> None:
        self.code = code
        detail = _MESSAGES.get(code, f"Unknown error (code: {code}). Please enter an address manually.")
        self.message = _PREFIX + detail
        super().__init__(self.message)


PositionSource = Callable[[], Awaitable[Position]]


def reported_position(
    latitude: float | None,
    longitude: float | None,
    accuracy: float | None = None,
    error_code: int | None = None,
) -> PositionSource:
    """A source that yields what the device reported: a fix or a failure code."""

    async def source() -> Position:
        if error_code is not None:
            raise GeolocationError(error_code)
        if latitude is None or longitude is None:
            raise GeolocationError(POSITION_UNAVAILABLE)
        return Position(latitude=latitude, longitude=longitude, accuracy=accuracy)

    return source


async def request_position(source: PositionSource, timeout: float = 15.0) -> Position:
    """One high-accuracy position request; no retry. Raises GeolocationError."""
    try:
        return await asyncio.wait_for(source(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise GeolocationError(TIMEOUT) from e
