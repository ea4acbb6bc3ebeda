"""User profile data access."""

from __future__ import annotations

import structlog

from dumptracker.backend.client import BackendClient
from dumptracker.users.schemas import UserProfile

logger = structlog.get_logger()

PROFILE_COLUMNS = "id, first_name, last_name, leaderboard_opt_in, location_tracking_opt_in"


async def ensure_user_exists(client: BackendClient) -> None:
    """Idempotently create the caller's ``users`` row (server-side, bypasses row policies)."""
    await client.rpc("ensure_user_exists")


async def user_row_exists(client: BackendClient, user_id: str) -> bool:
    row = await client.table("users").select("id").eq("id", user_id).maybe_single()
    return row is not None


async def get_profile(client: BackendClient, user_id: str) -> UserProfile:
    """Raises NotFoundError when the row is missing."""
    row = await client.table("users").select(PROFILE_COLUMNS).eq("id", user_id).single()
    return UserProfile.model_validate(row)


async def update_profile(
    client: BackendClient,
    user_id: str,
    *,
    first_name: str | None,
    last_name: str | None,
    leaderboard_opt_in: bool,
    location_tracking_opt_in: bool,
) -> UserProfile | None:
    """Write names and flags; returns the stored row, or None if nothing was updated."""
    rows = await (
        client.table("users")
        .select(PROFILE_COLUMNS)
        .eq("id", user_id)
        .update(
            {
                "first_name": first_name,
                "last_name": last_name,
                "leaderboard_opt_in": leaderboard_opt_in,
                "location_tracking_opt_in": location_tracking_opt_in,
            }
        )
    )
    logger.info("profile_updated", user_id=user_id, leaderboard_opt_in=leaderboard_opt_in)
    return UserProfile.model_validate(rows[0]) if rows else None


async def is_leaderboard_opted_in(client: BackendClient, user_id: str) -> bool:
    """Gate for the leaderboard and notifications pages."""
    row = await client.table("users").select("leaderboard_opt_in").eq("id", user_id).single()
    return row.get("leaderboard_opt_in") is True
