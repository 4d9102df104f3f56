"""HTTP clients for the hosted services used by the scripts."""

from fantasy_ops.clients.api_football import ApiFootballClient, ApiFootballResult
from fantasy_ops.clients.backend import BackendClient
from fantasy_ops.clients.kie import KieClient, TaskStatus
from fantasy_ops.clients.n8n import ActivationResult, N8nClient
from fantasy_ops.clients.storage import StorageClient
from fantasy_ops.clients.supabase import SupabaseClient

__all__ = [
    "ActivationResult",
    "ApiFootballClient",
    "ApiFootballResult",
    "BackendClient",
    "KieClient",
    "N8nClient",
    "StorageClient",
    "SupabaseClient",
    "TaskStatus",
]
