"""Supabase keep-alive heartbeat.

Free-tier Supabase projects pause after 7 days without activity. A scheduled
job calls `ping()` to insert a temporary row and delete it again, which
counts as activity without leaving data behind.

The `keep_alive_pings` table must already exist (id, message, created_at).
"""

import asyncio
from datetime import datetime, timezone

import structlog

from fantasy_ops.clients.supabase import SupabaseClient
from fantasy_ops.exceptions import ExternalServiceError

log = structlog.get_logger(__name__)

PING_TABLE = "keep_alive_pings"


async def ping(client: SupabaseClient, table: str = PING_TABLE, hold_seconds: float = 2) -> int:
    """Insert a heartbeat row, wait, then delete it.

    Deletion is attempted whenever the insert succeeded, even if the wait is
    interrupted.

    Args:
        client: Supabase table client
        table: Heartbeat table
        hold_seconds: Seconds to keep the row before deleting it

    Returns:
        Id of the inserted (and deleted) row

    Raises:
        ExternalServiceError: If the insert returns no row id
        httpx.HTTPStatusError: If Supabase returns HTTP error
    """
    message = f"Keep-alive ping at {datetime.now(timezone.utc).isoformat()}"
    rows = await client.insert(table, {"message": message})
    if not rows or rows[0].get("id") is None:
        raise ExternalServiceError("supabase", f"Insert into {table} returned no id")

    ping_id = rows[0]["id"]
    log.info("keep_alive_inserted", ping_id=ping_id)
    try:
        await asyncio.sleep(hold_seconds)
    finally:
        await client.delete(table, {"id": ping_id})
        log.info("keep_alive_deleted", ping_id=ping_id)

    return ping_id
