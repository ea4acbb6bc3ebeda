"""Request/response schemas for location data capture."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PositionReport(BaseModel):
    """What the device's geolocation call produced: coordinates or an error code (1-3)."""

    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    accuracy: float | None = None
    error_code: int | None = None


class ResolvedAddressResponse(BaseModel):
    address: str
    latitude: float
    longitude: float
    warning: str | None = None


class LocationDataRequest(BaseModel):
    address: str = Field("", max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
