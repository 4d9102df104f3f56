"""Shared pytest fixtures.

Provides environment isolation for the cached configuration getters and a
few canned API payloads reused across client and service tests.
"""

import pytest

from fantasy_ops import config


_CACHED_GETTERS = (
    config.get_supabase_url,
    config.get_supabase_service_key,
    config.get_database_url,
    config.get_api_football_key,
    config.get_n8n_api_token,
    config.get_kie_api_key,
)


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Clear lru_cache on configuration getters before and after each test."""
    for getter in _CACHED_GETTERS:
        getter.cache_clear()
    yield
    for getter in _CACHED_GETTERS:
        getter.cache_clear()


@pytest.fixture
def supabase_env(monkeypatch: pytest.MonkeyPatch):
    """Set Supabase credentials for tests that build clients from config."""
    monkeypatch.setenv("SUPABASE_PROJECT_URL", "https://abcd.supabase.co/")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")


@pytest.fixture
def api_player_item():
    """One entry of API-Football /players `response`."""
    return {
        "player": {
            "id": 521,
            "name": "R. Lewandowski",
            "firstname": "Robert",
            "lastname": "Lewandowski",
            "age": 37,
            "nationality": "Poland",
            "photo": "https://media.api-sports.io/football/players/521.png",
            "injured": False,
        },
        "statistics": [
            {
                "team": {"id": 529, "name": "Barcelona", "logo": "https://media.api-sports.io/football/teams/529.png"},
                "games": {"position": "Attacker"},
            }
        ],
    }


@pytest.fixture
def sample_workflow():
    """n8n workflow definition as returned by GET /workflows/{id}."""
    return {
        "id": "wf123",
        "name": "Fantasy Chollos",
        "active": False,
        "nodes": [
            {
                "name": "Webhook",
                "type": "n8n-nodes-base.webhook",
                "parameters": {"path": "chollos", "httpMethod": "POST"},
            },
            {
                "name": "Fetch Players",
                "type": "n8n-nodes-base.httpRequest",
                "parameters": {"url": "http://localhost:3000/api/players", "options": {"timeout": 30000}},
            },
            {
                "name": "Generate Video",
                "type": "n8n-nodes-base.httpRequest",
                "parameters": {"url": "http://localhost:3000/api/veo3/generate", "options": {}},
            },
            {"name": "Pick Chollo", "type": "n8n-nodes-base.code", "parameters": {}},
            {"name": "Wait", "type": "n8n-nodes-base.wait", "parameters": {}},
            {"name": "Respond", "type": "n8n-nodes-base.respondToWebhook", "parameters": {}},
        ],
        "connections": {"Webhook": {"main": [[{"node": "Fetch Players", "type": "main", "index": 0}]]}},
        "settings": {"executionOrder": "v1"},
        "staticData": None,
        "createdAt": "2025-09-30T10:00:00.000Z",
        "updatedAt": "2025-10-01T10:00:00.000Z",
        "tags": [],
    }
