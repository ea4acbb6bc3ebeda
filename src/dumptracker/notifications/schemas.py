"""Notification feed records."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Notification(BaseModel):
    """One row of ``get_notifications``; ``payload`` shape depends on ``type``."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    id: str
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None

    @field_validator("payload", mode="before")
    @classmethod
    def null_payload_is_empty(cls, v: Any) -> Any:  # noqa: ANN401
        return {} if v is None else v


class NotificationItem(BaseModel):
    id: str
    type: str
    message: str
    time_label: str
    created_at: datetime | None = None


class NotificationsResponse(BaseModel):
    """``opted_in`` False is the access-restricted page."""

    opted_in: bool
    notifications: list[NotificationItem] = []
