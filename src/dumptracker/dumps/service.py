"""Dump and entry data access.

Counts on ``dumps`` are maintained by backend triggers on ``dump_entries``;
the only direct count write here is ``adjust_count``, used when the entry
ledger write fails.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from dumptracker.backend.client import BackendClient, case_insensitive_equals
from dumptracker.dumps.schemas import Dump, DumpEntry, DumpType

logger = structlog.get_logger()


def sort_by_count(dumps: list[Dump]) -> list[Dump]:
    """Order by count descending; ties keep their current order."""
    return sorted(dumps, key=lambda d: d.count, reverse=True)


def merge_dump(dumps: list[Dump], dump: Dump) -> list[Dump]:
    """Replace (or append) ``dump`` by id, then re-sort."""
    merged = [dump if d.id == dump.id else d for d in dumps]
    if not any(d.id == dump.id for d in dumps):
        merged.append(dump)
    return sort_by_count(merged)


# ---------------------------------------------------------------------------
# Dumps
# ---------------------------------------------------------------------------


async def list_dumps(client: BackendClient, user_id: str) -> list[Dump]:
    rows = await client.table("dumps").select("*").eq("user_id", user_id).order("count", desc=True).execute()
    return sort_by_count([Dump.model_validate(row) for row in rows])


async def get_dump(client: BackendClient, dump_id: str, user_id: str) -> Dump:
    """Fetch one dump. Raises NotFoundError when it does not exist for this user."""
    row = await client.table("dumps").select("*").eq("id", dump_id).eq("user_id", user_id).single()
    return Dump.model_validate(row)


async def find_dump_by_name(client: BackendClient, user_id: str, location_name: str) -> Dump | None:
    """Case-insensitive exact lookup of a location name."""
    row = await (
        client.table("dumps")
        .select("*")
        .eq("user_id", user_id)
        .ilike("location_name", case_insensitive_equals(location_name))
        .maybe_single()
    )
    return Dump.model_validate(row) if row else None


async def create_dump(client: BackendClient, user_id: str, location_name: str) -> Dump:
    row = await client.table("dumps").insert({"user_id": user_id, "location_name": location_name, "count": 0})
    logger.info("dump_created", dump_id=row.get("id"))
    return Dump.model_validate(row)


async def adjust_count(client: BackendClient, dump_id: str, user_id: str, delta: int) -> Dump:
    """Write ``count + delta`` straight onto the dump row, from a freshly read count.

    Never writes below zero.
    """
    current = await get_dump(client, dump_id, user_id)
    new_count = max(0, current.count + delta)
    rows = await (
        client.table("dumps")
        .eq("id", dump_id)
        .eq("user_id", user_id)
        .update({"count": new_count, "updated_at": datetime.now(timezone.utc).isoformat()})
    )
    logger.info("dump_count_adjusted", dump_id=dump_id, delta=delta, count=new_count)
    return Dump.model_validate(rows[0]) if rows else current.model_copy(update={"count": new_count})


async def update_dump(client: BackendClient, dump_id: str, user_id: str, values: dict[str, Any]) -> Dump:
    rows = await client.table("dumps").eq("id", dump_id).eq("user_id", user_id).update(values)
    if not rows:
        return await get_dump(client, dump_id, user_id)
    return Dump.model_validate(rows[0])


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


async def list_entries(client: BackendClient, dump_id: str, user_id: str) -> list[DumpEntry]:
    """All entries for one dump, newest first."""
    rows = await (
        client.table("dump_entries")
        .select("*")
        .eq("dump_id", dump_id)
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [DumpEntry.model_validate(row) for row in rows]


async def latest_entry(client: BackendClient, dump_id: str, user_id: str) -> DumpEntry | None:
    row = await (
        client.table("dump_entries")
        .select("*")
        .eq("dump_id", dump_id)
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(1)
        .maybe_single()
    )
    return DumpEntry.model_validate(row) if row else None


async def insert_entry(
    client: BackendClient,
    dump_id: str,
    user_id: str,
    dump_type: DumpType,
    created_at: datetime | None = None,
) -> DumpEntry:
    row: dict[str, Any] = {"dump_id": dump_id, "user_id": user_id, **dump_type.flags()}
    if created_at is not None:
        row["created_at"] = created_at.isoformat()
    stored = await client.table("dump_entries").insert(row)
    logger.info("dump_entry_created", dump_id=dump_id, dump_type=dump_type.value, backdated=created_at is not None)
    return DumpEntry.model_validate(stored)


async def update_entry_type(client: BackendClient, entry_id: str, user_id: str, dump_type: DumpType) -> None:
    await client.table("dump_entries").eq("id", entry_id).eq("user_id", user_id).update(dump_type.flags())


async def delete_entry(client: BackendClient, entry_id: str, user_id: str) -> int:
    """Delete one entry; returns how many rows went away (0 when it was already gone)."""
    rows = await client.table("dump_entries").eq("id", entry_id).eq("user_id", user_id).delete()
    logger.info("dump_entry_deleted", entry_id=entry_id, deleted=len(rows))
    return len(rows)


async def get_entry(client: BackendClient, entry_id: str, user_id: str) -> DumpEntry:
    """Raises NotFoundError when the entry does not exist for this user."""
    row = await client.table("dump_entries").select("*").eq("id", entry_id).eq("user_id", user_id).single()
    return DumpEntry.model_validate(row)
