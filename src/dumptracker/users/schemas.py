"""Profile records and settings request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """Row of the ``users`` table."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    first_name: str | None = None
    last_name: str | None = None
    leaderboard_opt_in: bool = False
    location_tracking_opt_in: bool = False

    @field_validator("leaderboard_opt_in", "location_tracking_opt_in", mode="before")
    @classmethod
    def null_flag_is_false(cls, v: Any) -> Any:  # noqa: ANN401
        return False if v is None else v


class SettingsUpdateRequest(BaseModel):
    """Partial update: fields left out keep their stored values."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    leaderboard_opt_in: bool | None = None
    location_tracking_opt_in: bool | None = None


class SettingsResponse(BaseModel):
    first_name: str
    last_name: str
    leaderboard_opt_in: bool
    location_tracking_opt_in: bool
    success: str | None = None
