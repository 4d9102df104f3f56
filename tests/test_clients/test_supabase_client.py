"""Tests for SupabaseClient.

Requests are served by httpx.MockTransport so URL, query string, headers
and body can be asserted without a network.

Test Coverage:
- select filters, ordering and limits
- update/delete refusing empty filters
- insert with return=representation
- HTTP error propagation
"""

import json

import httpx
import pytest

from fantasy_ops.clients.supabase import SupabaseClient, _filter_params


def make_client(handler) -> SupabaseClient:
    return SupabaseClient("https://abcd.supabase.co/", "service-key", transport=httpx.MockTransport(handler))


class TestFilterParams:
    """Tests for equality filter encoding."""

    def test_p1_encodes_values_bools_and_nulls(self):
        """[P1] Should encode eq, boolean and is.null filters."""
        params = _filter_params({"processing_status": "failed", "active": True, "analysis": None})

        assert params == {"processing_status": "eq.failed", "active": "eq.true", "analysis": "is.null"}

    def test_p2_empty_filters(self):
        assert _filter_params(None) == {}


class TestSupabaseSelect:
    """Tests for SupabaseClient.select."""

    @pytest.mark.asyncio
    async def test_p1_builds_query_and_returns_rows(self):
        """[P1] Should send select, filters, order and limit as query params."""
        # GIVEN: A transport that records the request
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1, "title": "Video"}])

        client = make_client(handler)

        # WHEN: Selecting with filters
        rows = await client.select(
            "competitive_videos", "id, title", filters={"processing_status": "failed"},
            order="id", ascending=False, limit=10,
        )
        await client.close()

        # THEN: Rows are returned and the query is PostgREST-shaped
        assert rows == [{"id": 1, "title": "Video"}]
        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/competitive_videos"
        assert request.url.params["select"] == "id,title"
        assert request.url.params["processing_status"] == "eq.failed"
        assert request.url.params["order"] == "id.desc"
        assert request.url.params["limit"] == "10"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_p1_raises_on_http_error(self):
        """[P1] Should raise HTTPStatusError on 4xx/5xx."""
        client = make_client(lambda request: httpx.Response(401, json={"message": "Invalid API key"}))

        with pytest.raises(httpx.HTTPStatusError):
            await client.select("competitive_videos")
        await client.close()


class TestSupabaseWrites:
    """Tests for insert, update and delete."""

    @pytest.mark.asyncio
    async def test_p1_insert_requests_representation(self):
        """[P1] Should POST the row and ask for it back."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(201, json=[{"id": 42, "message": "ping"}])

        client = make_client(handler)
        rows = await client.insert("keep_alive_pings", {"message": "ping"})
        await client.close()

        assert rows == [{"id": 42, "message": "ping"}]
        assert seen["request"].method == "POST"
        assert seen["request"].headers["Prefer"] == "return=representation"
        assert json.loads(seen["request"].content) == {"message": "ping"}

    @pytest.mark.asyncio
    async def test_p1_update_sends_patch_with_filters(self):
        """[P1] Should PATCH with filters in the query and values in the body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1}, {"id": 2}])

        client = make_client(handler)
        rows = await client.update(
            "competitive_videos",
            {"processing_status": "onboarding_analyzed"},
            filters={"processing_status": "analyzing"},
        )
        await client.close()

        assert len(rows) == 2
        assert seen["request"].method == "PATCH"
        assert seen["request"].url.params["processing_status"] == "eq.analyzing"
        assert json.loads(seen["request"].content) == {"processing_status": "onboarding_analyzed"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["update", "delete"])
    async def test_p1_refuses_empty_filters(self, method):
        """[P1] Should refuse whole-table update/delete."""
        client = make_client(lambda request: httpx.Response(200, json=[]))

        with pytest.raises(ValueError, match="requires at least one filter"):
            if method == "update":
                await client.update("competitive_videos", {"title": "x"}, filters={})
            else:
                await client.delete("competitive_videos", filters={})
        await client.close()

    @pytest.mark.asyncio
    async def test_p2_delete_by_id(self):
        """[P2] Should DELETE with an id filter."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 7}])

        client = make_client(handler)
        rows = await client.delete("keep_alive_pings", {"id": 7})
        await client.close()

        assert rows == [{"id": 7}]
        assert seen["request"].method == "DELETE"
        assert seen["request"].url.params["id"] == "eq.7"
