"""n8n public API client (workflow read, listing, activation).

The n8n REST API rejects PUT bodies that carry read-only fields (id,
createdAt, updatedAt, versionId, tags, ...), so activation always sends a cleaned
definition built by `writable_definition()`.

Usage:
    client = N8nClient(base_url, api_token)
    result = await client.activate_workflow("7bBvTc5xL0UcZ1mk")
    if result.already_active:
        print("nothing to do")
"""

from dataclasses import dataclass
from typing import Any

import httpx

from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

WRITABLE_FIELDS = ("name", "nodes", "connections", "settings", "staticData")


@dataclass
class ActivationResult:
    """Outcome of an activation or deactivation request."""

    workflow_id: str
    name: str
    active: bool
    already_active: bool
    node_count: int


def writable_definition(workflow: dict[str, Any], active: bool | None = None) -> dict[str, Any]:
    """Strip a workflow down to the fields accepted by PUT /workflows/{id}.

    Args:
        workflow: Workflow as returned by GET /workflows/{id}
        active: Target active flag (omitted from the body when None)

    Returns:
        New dict with name, nodes, connections, settings, staticData (+ active)
    """
    body = {field: workflow.get(field) for field in WRITABLE_FIELDS}
    if body["settings"] is None:
        body["settings"] = {}
    if active is not None:
        body["active"] = active
    return body


class N8nClient:
    """Client for the n8n public REST API (/api/v1).

    Attributes:
        base_url: API root (<instance>/api/v1)
        client: Async HTTP client with the X-N8N-API-KEY header
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = f"{base_url.rstrip('/')}/api/v1"
        self.client = httpx.AsyncClient(
            timeout=30.0,
            transport=transport,
            headers={
                "X-N8N-API-KEY": api_token,
                "Content-Type": "application/json",
            },
        )

    async def get_workflow(self, workflow_id: str) -> dict[str, Any]:
        """Get a full workflow definition.

        Raises:
            httpx.HTTPStatusError: 404 when the workflow does not exist, 401 on bad key
        """
        response = await self.client.get(f"{self.base_url}/workflows/{workflow_id}")
        response.raise_for_status()
        return response.json()

    async def list_workflows(self) -> list[dict[str, Any]]:
        """List workflows (the `data` array of GET /workflows)."""
        response = await self.client.get(f"{self.base_url}/workflows")
        response.raise_for_status()
        return response.json().get("data", [])

    async def _set_active(self, workflow_id: str, active: bool) -> ActivationResult:
        workflow = await self.get_workflow(workflow_id)
        name = workflow.get("name", "")
        node_count = len(workflow.get("nodes") or [])

        if bool(workflow.get("active")) == active:
            log.info("n8n_workflow_unchanged", workflow_id=workflow_id, active=active)
            return ActivationResult(workflow_id, name, active, True, node_count)

        response = await self.client.put(
            f"{self.base_url}/workflows/{workflow_id}",
            json=writable_definition(workflow, active),
        )
        response.raise_for_status()
        updated = response.json()

        log.info("n8n_workflow_active_changed", workflow_id=workflow_id, active=active)
        return ActivationResult(
            workflow_id=workflow_id,
            name=updated.get("name", name),
            active=bool(updated.get("active", active)),
            already_active=False,
            node_count=node_count,
        )

    async def activate_workflow(self, workflow_id: str) -> ActivationResult:
        """Activate a workflow; returns early (no PUT) when already active.

        Raises:
            httpx.HTTPStatusError: If n8n returns HTTP error
        """
        return await self._set_active(workflow_id, True)

    async def deactivate_workflow(self, workflow_id: str) -> ActivationResult:
        """Deactivate a workflow; `already_active` means it was already inactive."""
        return await self._set_active(workflow_id, False)

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
