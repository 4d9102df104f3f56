"""Tests for ApiFootballClient.

Test Coverage:
- Result envelope on success, HTTP error and network error
- Player flattening
- Pagination across /players pages
- Rate limiter configuration
"""

import httpx
import pytest
from aiolimiter import AsyncLimiter

from fantasy_ops.clients.api_football import (
    LA_LIGA,
    ApiFootballClient,
    flatten_player,
)


def make_client(handler) -> ApiFootballClient:
    client = ApiFootballClient("test-key", transport=httpx.MockTransport(handler))
    # Tests should not wait a second between pages
    client.rate_limiter = AsyncLimiter(max_rate=100, time_period=1)
    return client


def players_page(current: int, total: int, items: list) -> dict:
    return {"response": items, "paging": {"current": current, "total": total}, "results": len(items), "errors": []}


class TestFlattenPlayer:
    """Tests for flatten_player."""

    def test_p1_extracts_team_and_position(self, api_player_item):
        """[P1] Should take team and position from the first statistics block."""
        player = flatten_player(api_player_item)

        assert player["id"] == 521
        assert player["name"] == "R. Lewandowski"
        assert player["position"] == "Attacker"
        assert player["team"] == {
            "id": 529,
            "name": "Barcelona",
            "logo": "https://media.api-sports.io/football/teams/529.png",
        }
        assert player["injured"] is False

    def test_p2_handles_missing_statistics(self):
        """[P2] Should not fail when statistics are absent."""
        player = flatten_player({"player": {"id": 1, "name": "X"}, "statistics": []})

        assert player["position"] is None
        assert player["team"] == {"id": None, "name": None, "logo": None}


class TestMakeRequest:
    """Tests for make_request envelope."""

    def test_p1_rate_limit_is_one_per_second(self):
        """[P1] Should default to 1 request per second."""
        client = ApiFootballClient("test-key")

        assert client.rate_limiter.max_rate == 1
        assert client.rate_limiter.time_period == 1

    @pytest.mark.asyncio
    async def test_p1_success_envelope(self):
        """[P1] Should map response/paging/results and send the key header."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"response": {"account": {}}, "results": 1, "paging": {"current": 1, "total": 1}})

        client = make_client(handler)
        result = await client.test_connection()
        await client.close()

        assert result.success is True
        assert result.count == 1
        assert result.pagination == {"current": 1, "total": 1}
        assert seen["request"].headers["x-apisports-key"] == "test-key"
        assert seen["request"].url.path == "/status"

    @pytest.mark.asyncio
    async def test_p1_http_error_returns_failure(self):
        """[P1] Should return success=False with the status instead of raising."""
        client = make_client(lambda request: httpx.Response(429, json={"message": "Too many requests"}))

        result = await client.make_request("/players", {"league": LA_LIGA})
        await client.close()

        assert result.success is False
        assert result.status == 429
        assert result.error

    @pytest.mark.asyncio
    async def test_p1_network_error_returns_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        client = make_client(handler)
        result = await client.make_request("/status")
        await client.close()

        assert result.success is False
        assert result.status is None
        assert "Connection refused" in result.error

    @pytest.mark.asyncio
    async def test_p2_timezone_param(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"response": [], "results": 0})

        client = make_client(handler)
        await client.make_request("/fixtures", {"league": 140}, include_timezone=True)
        await client.close()

        assert seen["params"] == {"league": "140", "timezone": "Europe/Madrid"}


class TestEndpoints:
    """Tests for league, team and player helpers."""

    @pytest.mark.asyncio
    async def test_p1_league_info_returns_first_entry(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"response": [{"league": {"id": 140, "name": "La Liga"}}], "results": 1})
        )

        result = await client.get_league_info()
        await client.close()

        assert result.data == {"league": {"id": 140, "name": "La Liga"}}

    @pytest.mark.asyncio
    async def test_p2_league_info_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={"response": [], "results": 0}))

        result = await client.get_league_info()
        await client.close()

        assert result.success is True
        assert result.data is None

    @pytest.mark.asyncio
    async def test_p1_teams_are_flattened(self):
        body = {
            "response": [
                {"team": {"id": 529, "name": "Barcelona", "code": "BAR", "logo": "l.png"}, "venue": {"name": "Spotify Camp Nou"}}
            ],
            "results": 1,
        }
        client = make_client(lambda request: httpx.Response(200, json=body))

        result = await client.get_teams()
        await client.close()

        assert result.data == [{"id": 529, "name": "Barcelona", "code": "BAR", "logo": "l.png", "venue": "Spotify Camp Nou"}]

    @pytest.mark.asyncio
    async def test_p1_get_all_players_follows_pagination(self, api_player_item):
        """[P1] Should fetch pages until current reaches total."""
        # GIVEN: Three pages of one player each
        requested_pages = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            requested_pages.append(page)
            return httpx.Response(200, json=players_page(page, 3, [api_player_item]))

        client = make_client(handler)

        # WHEN: Loading all players
        players, pages = await client.get_all_players(season=2025)
        await client.close()

        # THEN: All pages were read in order
        assert requested_pages == [1, 2, 3]
        assert pages == 3
        assert len(players) == 3

    @pytest.mark.asyncio
    async def test_p1_get_all_players_stops_on_failed_page(self, api_player_item):
        """[P1] Should keep players from earlier pages when a page fails."""
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            if page == 2:
                return httpx.Response(500, text="error")
            return httpx.Response(200, json=players_page(page, 5, [api_player_item]))

        client = make_client(handler)
        players, pages = await client.get_all_players()
        await client.close()

        assert pages == 1
        assert len(players) == 1

    @pytest.mark.asyncio
    async def test_p2_get_all_players_respects_max_pages(self, api_player_item):
        client = make_client(
            lambda request: httpx.Response(200, json=players_page(int(request.url.params["page"]), 40, [api_player_item]))
        )

        players, pages = await client.get_all_players(max_pages=2)
        await client.close()

        assert pages == 2
        assert len(players) == 2
