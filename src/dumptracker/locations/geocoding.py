"""Reverse geocoding through a Nominatim-compatible endpoint."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from dumptracker.locations.geolocation import Position

logger = structlog.get_logger()


@dataclass(frozen=True)
class GeocodeResult:
    address: str
    warning: str | None = None


async def reverse_geocode(http: httpx.AsyncClient, position: Position, *, url: str, user_agent: str) -> GeocodeResult:
    """Resolve a position to a display address.

    Never raises: on any failure the address degrades to the coordinates
    string and ``warning`` says why.
    """
    coords = position.coordinates
    try:
        response = await http.get(
            url,
            params={"format": "json", "lat": position.latitude, "lon": position.longitude},
            headers={"User-Agent": user_agent},
        )
    except httpx.HTTPError as e:
        logger.warning("reverse_geocode_unreachable", error=str(e))
        return GeocodeResult(coords, f"Got your location ({coords}), but address lookup failed: {e}")

    if response.is_error:
        logger.warning("reverse_geocode_failed", status=response.status_code)
        return GeocodeResult(coords, f"Got your location ({coords}), but could not find address. Coordinates saved.")

    try:
        data = response.json()
    except ValueError as e:
        logger.warning("reverse_geocode_bad_body", error=str(e))
        return GeocodeResult(coords, f"Got your location ({coords}), but address lookup failed: {e}")

    display_name = data.get("display_name") if isinstance(data, dict) else None
    return GeocodeResult(display_name or coords)
