"""API-Football (API-Sports v3) client with 1 req/sec rate limiting.

This module provides a rate-limited client for the sports statistics provider.
It implements:
- Global 1 request per second rate limit via AsyncLimiter (Pro plan pacing)
- Uniform result envelope: HTTP and network errors never raise, they come back
  as `ApiFootballResult(success=False, error=..., status=...)`
- Pagination helper that follows `paging.total` for the /players endpoint

Response Format:
    Every endpoint answers with {"response": [...], "paging": {"current": 1,
    "total": N}, "results": N, "errors": [...]}.

Usage:
    client = ApiFootballClient(api_key)
    result = await client.get_players(LA_LIGA, CURRENT_SEASON, page=1)
    if result.success:
        print(result.count, result.pagination)
"""

from dataclasses import dataclass
from typing import Any

import httpx
from aiolimiter import AsyncLimiter

from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

BASE_URL = "https://v3.football.api-sports.io"
LA_LIGA = 140
CURRENT_SEASON = 2025  # 2025 = season 2025-26 in API-Sports
FALLBACK_SEASON = 2024
TIMEZONE = "Europe/Madrid"


@dataclass
class ApiFootballResult:
    """Outcome of one API-Football request.

    Attributes:
        success: True when the HTTP call succeeded
        data: The `response` array (None on failure)
        pagination: The `paging` object, if any
        count: The `results` counter
        error: Error message on failure
        status: HTTP status code on failure, if a response was received
    """

    success: bool
    data: Any = None
    pagination: dict[str, int] | None = None
    count: int = 0
    error: str | None = None
    status: int | None = None


def flatten_player(item: dict[str, Any]) -> dict[str, Any]:
    """Flatten a /players entry into the fields used by the probes.

    Position and team come from the first statistics block.
    """
    player = item.get("player") or {}
    stats = (item.get("statistics") or [None])[0] or {}
    team = stats.get("team") or {}
    return {
        "id": player.get("id"),
        "name": player.get("name"),
        "firstname": player.get("firstname"),
        "lastname": player.get("lastname"),
        "age": player.get("age"),
        "nationality": player.get("nationality"),
        "photo": player.get("photo"),
        "injured": bool(player.get("injured")),
        "position": (stats.get("games") or {}).get("position"),
        "team": {"id": team.get("id"), "name": team.get("name"), "logo": team.get("logo")},
    }


class ApiFootballClient:
    """API-Football client with mandatory 1 req/sec rate limiting.

    Usage:
        client = ApiFootballClient(api_key)
        status = await client.test_connection()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize API-Football client with rate limiting.

        Args:
            api_key: API-Sports key (sent as x-apisports-key)
            base_url: API base URL
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=10.0, transport=transport)
        # 1 request per second across the whole client
        self.rate_limiter = AsyncLimiter(max_rate=1, time_period=1)

    def _get_headers(self) -> dict[str, str]:
        return {"x-apisports-key": self.api_key}

    async def make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        include_timezone: bool = False,
    ) -> ApiFootballResult:
        """Perform a GET request against an API-Football endpoint.

        Args:
            endpoint: Path such as "/players"
            params: Query parameters
            include_timezone: Add timezone=Europe/Madrid (fixtures only)

        Returns:
            ApiFootballResult; never raises for HTTP or network errors.
        """
        request_params = dict(params or {})
        if include_timezone:
            request_params["timezone"] = TIMEZONE

        log.info("api_football_request", endpoint=endpoint, params=request_params)
        try:
            async with self.rate_limiter:
                response = await self.client.get(
                    f"{self.base_url}{endpoint}",
                    headers=self._get_headers(),
                    params=request_params,
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            log.error("api_football_error", endpoint=endpoint, status=e.response.status_code)
            return ApiFootballResult(success=False, error=str(e), status=e.response.status_code)
        except (httpx.HTTPError, ValueError) as e:
            log.error("api_football_error", endpoint=endpoint, error=str(e))
            return ApiFootballResult(success=False, error=str(e))

        log.info("api_football_success", endpoint=endpoint, results=body.get("results", 0))
        return ApiFootballResult(
            success=True,
            data=body.get("response"),
            pagination=body.get("paging") or None,
            count=body.get("results") or 0,
        )

    async def test_connection(self) -> ApiFootballResult:
        """Check the key against /status (account and request quota)."""
        return await self.make_request("/status")

    async def get_league_info(self, league: int = LA_LIGA, season: int = CURRENT_SEASON) -> ApiFootballResult:
        """Get league metadata; data is the first matching league or None."""
        result = await self.make_request("/leagues", {"id": league, "season": season})
        if result.success:
            result.data = result.data[0] if result.data else None
        return result

    async def get_teams(self, league: int = LA_LIGA, season: int = CURRENT_SEASON) -> ApiFootballResult:
        """Get the teams of a league season, flattened to id/name/code/logo/venue."""
        result = await self.make_request("/teams", {"league": league, "season": season})
        if result.success:
            result.data = [
                {
                    "id": entry["team"]["id"],
                    "name": entry["team"]["name"],
                    "code": entry["team"].get("code"),
                    "logo": entry["team"].get("logo"),
                    "venue": (entry.get("venue") or {}).get("name"),
                }
                for entry in result.data or []
            ]
        return result

    async def get_players(
        self,
        league: int = LA_LIGA,
        season: int = CURRENT_SEASON,
        page: int = 1,
        team: int | None = None,
    ) -> ApiFootballResult:
        """Get one page of players (flattened with flatten_player)."""
        params: dict[str, Any] = {"league": league, "season": season, "page": page}
        if team:
            params["team"] = team
        result = await self.make_request("/players", params)
        if result.success:
            result.data = [flatten_player(item) for item in result.data or []]
        return result

    async def get_all_players(
        self,
        league: int = LA_LIGA,
        season: int = CURRENT_SEASON,
        team: int | None = None,
        max_pages: int = 50,
    ) -> tuple[list[dict[str, Any]], int]:
        """Load every players page until paging.current reaches paging.total.

        Stops early on a failed or empty page. The rate limiter paces pages.

        Returns:
            Tuple of (players, pages fetched)
        """
        players: list[dict[str, Any]] = []
        pages_fetched = 0
        page = 1
        while page <= max_pages:
            result = await self.get_players(league, season, page=page, team=team)
            if not result.success or not result.data:
                break
            players.extend(result.data)
            pages_fetched += 1
            paging = result.pagination or {}
            if paging.get("current", page) >= paging.get("total", page):
                break
            page += 1

        log.info("api_football_all_players", season=season, players=len(players), pages=pages_fetched)
        return players, pages_fetched

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
