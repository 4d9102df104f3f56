"""Client for the content backend's phased VEO3 session endpoints.

The backend (not part of this repository) runs a three-phase flow:
1. prepare-session: script generation + Nano Banana reference images
2. generate-single-segment: one VEO3 segment per call (0-based index)
3. finalize-session: concatenation + logo outro

Calls are long-running (up to 10 minutes for one segment), so this client is
synchronous and uses per-call timeouts instead of a client-wide one.
"""

from typing import Any

import requests

from fantasy_ops.exceptions import ExternalServiceError
from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

PREPARE_TIMEOUT = 300
SEGMENT_TIMEOUT = 600
FINALIZE_TIMEOUT = 120


class BackendClient:
    """Synchronous client for /api/veo3/* session endpoints."""

    def __init__(self, base_url: str, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict[str, Any], timeout: int) -> dict[str, Any]:
        """POST JSON and return the payload of a {"success": true, ...} body.

        The payload is `data` when present, otherwise the body without `success`.

        Raises:
            requests.HTTPError: On HTTP error status
            ExternalServiceError: If the body reports success=false
        """
        log.info("backend_request", path=path, timeout=timeout)
        response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=timeout)
        response.raise_for_status()
        body = response.json()

        if not body.get("success"):
            raise ExternalServiceError(
                "backend",
                body.get("message") or body.get("error") or "Request failed",
                response.status_code,
                response.text,
            )
        if "data" in body:
            return body["data"] or {}
        # generate-single-segment answers with top-level "segment" and "session"
        return {key: value for key, value in body.items() if key != "success"}

    def prepare_session(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Phase 1: create a session (returns sessionId, script, images, costs)."""
        data = self._post("/api/veo3/prepare-session", payload, PREPARE_TIMEOUT)
        log.info("backend_session_prepared", session_id=data.get("sessionId"))
        return data

    def generate_single_segment(self, session_id: str, segment_index: int) -> dict[str, Any]:
        """Phase 2: generate one segment.

        Args:
            session_id: Session created by prepare_session
            segment_index: 0-based segment index

        Raises:
            ValueError: If segment_index is negative
        """
        if segment_index < 0:
            raise ValueError(f"segment_index must be >= 0, got {segment_index}")
        return self._post(
            "/api/veo3/generate-single-segment",
            {"sessionId": session_id, "segmentIndex": segment_index},
            SEGMENT_TIMEOUT,
        )

    def finalize_session(self, session_id: str) -> dict[str, Any]:
        """Phase 3: concatenate the session's segments on the backend."""
        return self._post("/api/veo3/finalize-session", {"sessionId": session_id}, FINALIZE_TIMEOUT)

    def close(self) -> None:
        self.session.close()
