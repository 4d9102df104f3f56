"""Supabase table client (PostgREST over HTTPS).

This module provides a thin client for table-level CRUD against the hosted
Supabase database. Maintenance scripts use it to find records by processing
status and reset them; the keep-alive script uses it to insert and delete a
heartbeat row.

Architecture Pattern:
    Simple HTTP client wrapper - no retry logic (a failed call aborts the script)
    Async-only interface using httpx.AsyncClient

Filters:
    Only equality filters are supported: {"processing_status": "failed"}
    becomes `processing_status=eq.failed`; a None value becomes `is.null`.

Usage:
    client = SupabaseClient(url, service_role_key)
    rows = await client.select("competitive_videos", "id, title",
                               filters={"processing_status": "failed"})
    await client.close()
"""

from typing import Any

import httpx

from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)


def _filter_params(filters: dict[str, Any] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


class SupabaseClient:
    """Client for Supabase PostgREST table operations.

    Attributes:
        base_url: REST endpoint (<project_url>/rest/v1)
        client: Async HTTP client carrying the service role credentials

    Example:
        >>> client = SupabaseClient("https://abc.supabase.co", "service-key")
        >>> await client.update("competitive_videos",
        ...                     {"processing_status": "onboarding_analyzed"},
        ...                     filters={"processing_status": "analyzing"})
    """

    def __init__(
        self,
        project_url: str,
        service_role_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = f"{project_url.rstrip('/')}/rest/v1"
        self.client = httpx.AsyncClient(
            timeout=30.0,
            transport=transport,
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Content-Type": "application/json",
            },
        )

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows from a table.

        Args:
            table: Table name
            columns: PostgREST column list (e.g., "id, video_id, title")
            filters: Equality filters by column
            order: Column to order by
            ascending: Sort direction when order is set
            limit: Maximum rows to return

        Returns:
            List of row dictionaries (empty list when nothing matches)

        Raises:
            httpx.HTTPStatusError: If Supabase returns HTTP error
        """
        params = {"select": columns.replace(" ", ""), **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)

        response = await self.client.get(f"{self.base_url}/{table}", params=params)
        response.raise_for_status()
        rows = response.json()
        log.info("supabase_select", table=table, filters=filters, rows=len(rows))
        return rows

    async def insert(self, table: str, values: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert one or more rows and return them as stored."""
        response = await self.client.post(
            f"{self.base_url}/{table}",
            json=values,
            headers={"Prefer": "return=representation"},
        )
        response.raise_for_status()
        rows = response.json()
        log.info("supabase_insert", table=table, rows=len(rows))
        return rows

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        filters: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows matching filters and return the updated rows.

        Raises:
            ValueError: If filters is empty (refuses whole-table updates)
            httpx.HTTPStatusError: If Supabase returns HTTP error
        """
        if not filters:
            raise ValueError("update requires at least one filter")

        response = await self.client.patch(
            f"{self.base_url}/{table}",
            params=_filter_params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        response.raise_for_status()
        rows = response.json()
        log.info("supabase_update", table=table, filters=filters, rows=len(rows))
        return rows

    async def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows matching filters and return the deleted rows.

        Raises:
            ValueError: If filters is empty (refuses whole-table deletes)
        """
        if not filters:
            raise ValueError("delete requires at least one filter")

        response = await self.client.delete(
            f"{self.base_url}/{table}",
            params=_filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        response.raise_for_status()
        rows = response.json()
        log.info("supabase_delete", table=table, filters=filters, rows=len(rows))
        return rows

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
