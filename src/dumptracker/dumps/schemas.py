"""Records and request/response schemas for dumps and their entries."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENTRY_FLAGS = ("ghost_wipe", "messy_dump", "liquid_dump", "classic_dump")


class DumpType(Enum):
    GHOST_WIPE = "ghost_wipe"
    MESSY_DUMP = "messy_dump"
    LIQUID_DUMP = "liquid_dump"
    CLASSIC_DUMP = "classic_dump"
    STANDARD = "standard"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"

    def flags(self) -> dict[str, bool]:
        """Entry flags for this type; standard and prefer-not-to-say set none."""
        return {flag: flag == self.value for flag in ENTRY_FLAGS}


# Display priority when several flags are set
_BADGES: tuple[tuple[str, str], ...] = (
    ("ghost_wipe", "👻 Ghost Wipe"),
    ("messy_dump", "💩 Messy Dump"),
    ("liquid_dump", "💧 Liquid Dump"),
    ("classic_dump", "🚽 Classic Dump"),
)
STANDARD_BADGE = "Standard"


class Dump(BaseModel):
    """A named location and its trigger-maintained entry count."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    user_id: str
    location_name: str
    count: int = 0
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_data_provided: bool | None = None
    location_data_declined: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def needs_location_data(self) -> bool:
        return not self.location_data_provided and not self.location_data_declined


class DumpEntry(BaseModel):
    """One logged event at a dump."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    dump_id: str
    user_id: str
    created_at: datetime
    ghost_wipe: bool = False
    messy_dump: bool = False
    liquid_dump: bool = False
    classic_dump: bool = False

    @field_validator(*ENTRY_FLAGS, mode="before")
    @classmethod
    def null_flag_is_false(cls, v: Any) -> Any:  # noqa: ANN401
        return False if v is None else v

    @property
    def dump_type(self) -> DumpType:
        for flag, _badge in _BADGES:
            if getattr(self, flag):
                return DumpType(flag)
        return DumpType.STANDARD

    @property
    def badge(self) -> str:
        for flag, badge in _BADGES:
            if getattr(self, flag):
                return badge
        return STANDARD_BADGE


# ---------------------------------------------------------------------------
# Requests / responses
# ---------------------------------------------------------------------------


class AddLocationRequest(BaseModel):
    location_name: str = Field(..., max_length=200)


class CommitEntryRequest(BaseModel):
    dump_type: DumpType


class EntryResponse(BaseModel):
    id: str
    dump_id: str
    created_at: datetime
    ghost_wipe: bool
    messy_dump: bool
    liquid_dump: bool
    classic_dump: bool
    dump_type: DumpType
    badge: str

    @classmethod
    def from_entry(cls, entry: DumpEntry) -> EntryResponse:
        return cls(
            id=entry.id,
            dump_id=entry.dump_id,
            created_at=entry.created_at,
            ghost_wipe=entry.ghost_wipe,
            messy_dump=entry.messy_dump,
            liquid_dump=entry.liquid_dump,
            classic_dump=entry.classic_dump,
            dump_type=entry.dump_type,
            badge=entry.badge,
        )


class DashboardResponse(BaseModel):
    """Dashboard snapshot: locations ordered by count, plus the entry-flow step."""

    locations: list[Dump]
    flow_step: str
    active_dump_id: str | None = None
    detail_dump: Dump | None = None
    location_tracking_opt_in: bool = False
