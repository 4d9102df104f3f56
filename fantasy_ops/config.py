"""Configuration management for the operational scripts.

This module provides centralized configuration loading from environment variables.
Each script calls `load_env_files()` once at startup, then reads values through
the getters below. Required values are cached after the first successful read.

Environment Variables:
    SUPABASE_PROJECT_URL: Supabase project URL (required for table/storage scripts)
    SUPABASE_SERVICE_ROLE_KEY: Supabase service role key (required)
    DATABASE_URL: Direct Postgres URL (optional, overrides SUPABASE_DB_*)
    SUPABASE_DB_HOST / _PORT / _NAME / _USER / _PASSWORD: Direct connection parts
    API_FOOTBALL_KEY: API-Sports key (required for player probes)
    N8N_BASE_URL / N8N_API_TOKEN: n8n instance and API key
    KIE_AI_API_KEY: KIE.ai key for VEO3 and Nano Banana

Usage:
    from fantasy_ops.config import get_supabase_url, load_env_files

    load_env_files()
    url = get_supabase_url()  # Raises if SUPABASE_PROJECT_URL not set
"""

import os
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote_plus

import structlog
from dotenv import load_dotenv

log = structlog.get_logger(__name__)

REPO_ROOT = Path(__file__).resolve().parent.parent

# Loaded in order; earlier files win because load_dotenv never overrides.
ENV_FILES = (".env", ".env.supabase", ".env.n8n")

DEFAULT_N8N_BASE_URL = "http://localhost:5678"
DEFAULT_BACKEND_BASE_URL = "http://localhost:3000"
DEFAULT_VEO3_MODEL = "veo3_fast"
DEFAULT_VEO3_ASPECT = "9:16"
DEFAULT_VEO3_WATERMARK = "Fantasy La Liga Pro"
DEFAULT_CHARACTER_SEED = 30001
DEFAULT_POLL_INTERVAL_SECONDS = 10
DEFAULT_MAX_POLL_ATTEMPTS = 30


def load_env_files(base_dir: Path | None = None) -> list[Path]:
    """Load .env files from the repository root into the process environment.

    Real environment variables always take precedence over file values.

    Args:
        base_dir: Directory to look in (defaults to the repository root).

    Returns:
        List of env files that were found and loaded.
    """
    base = base_dir or REPO_ROOT
    loaded = []
    for name in ENV_FILES:
        path = base / name
        if path.exists():
            load_dotenv(path, override=False)
            loaded.append(path)
    return loaded


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} environment variable is required")
    return value


def _get_int(name: str, default: int, minimum: int, maximum: int) -> int:
    """Read an integer variable, clamped to [minimum, maximum].

    Falls back to the default (with a warning) when the value is not an integer.
    """
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("invalid_int_setting", name=name, value=raw, using_default=default)
        return default
    return max(minimum, min(maximum, value))


@lru_cache
def get_supabase_url() -> str:
    """Get Supabase project URL (without trailing slash).

    Raises:
        ValueError: If SUPABASE_PROJECT_URL not set.
    """
    return _require("SUPABASE_PROJECT_URL").rstrip("/")


@lru_cache
def get_supabase_service_key() -> str:
    """Get Supabase service role key.

    Raises:
        ValueError: If SUPABASE_SERVICE_ROLE_KEY not set.
    """
    return _require("SUPABASE_SERVICE_ROLE_KEY")


@lru_cache
def get_database_url() -> str:
    """Get direct Postgres URL for raw SQL execution.

    Uses DATABASE_URL when set, otherwise assembles one from the SUPABASE_DB_*
    variables. Converts postgresql:// to postgresql+asyncpg:// for async SQLAlchemy.

    Returns:
        Database URL with asyncpg driver.

    Raises:
        ValueError: If neither DATABASE_URL nor SUPABASE_DB_HOST is set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        host = os.getenv("SUPABASE_DB_HOST")
        if not host:
            raise ValueError("DATABASE_URL or SUPABASE_DB_HOST environment variable is required")
        port = os.getenv("SUPABASE_DB_PORT", "5432")
        name = os.getenv("SUPABASE_DB_NAME", "postgres")
        user = quote_plus(os.getenv("SUPABASE_DB_USER", "postgres"))
        password = quote_plus(os.getenv("SUPABASE_DB_PASSWORD", ""))
        url = f"postgresql://{user}:{password}@{host}:{port}/{name}"

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


@lru_cache
def get_api_football_key() -> str:
    """Get API-Sports key.

    Raises:
        ValueError: If API_FOOTBALL_KEY not set.
    """
    return _require("API_FOOTBALL_KEY")


def get_n8n_base_url() -> str:
    """Get n8n base URL (default: http://localhost:5678)."""
    return os.getenv("N8N_BASE_URL", DEFAULT_N8N_BASE_URL).rstrip("/")


@lru_cache
def get_n8n_api_token() -> str:
    """Get n8n API key.

    Raises:
        ValueError: If N8N_API_TOKEN not set.
    """
    return _require("N8N_API_TOKEN")


@lru_cache
def get_kie_api_key() -> str:
    """Get KIE.ai API key used for VEO3 and Nano Banana.

    Raises:
        ValueError: If KIE_AI_API_KEY not set.
    """
    return _require("KIE_AI_API_KEY")


def get_backend_base_url() -> str:
    """Get base URL of the content backend (default: http://localhost:3000)."""
    return os.getenv("BACKEND_BASE_URL", DEFAULT_BACKEND_BASE_URL).rstrip("/")


def get_veo3_model() -> str:
    return os.getenv("VEO3_DEFAULT_MODEL", DEFAULT_VEO3_MODEL)


def get_veo3_aspect_ratio() -> str:
    return os.getenv("VEO3_DEFAULT_ASPECT", DEFAULT_VEO3_ASPECT)


def get_veo3_watermark() -> str:
    return os.getenv("VEO3_WATERMARK", DEFAULT_VEO3_WATERMARK)


def get_character_seed() -> int:
    """Get the fixed VEO3 seed that keeps the presenter consistent across segments."""
    return _get_int("VEO3_CHARACTER_SEED", DEFAULT_CHARACTER_SEED, 0, 2**31 - 1)


def get_poll_interval() -> int:
    """Get seconds between generation status checks.

    Environment Variable:
        VEO3_POLL_INTERVAL_SECONDS: Polling interval (default: 10)

    Returns:
        Interval in seconds (minimum 1, maximum 60).
    """
    return _get_int("VEO3_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS, 1, 60)


def get_max_poll_attempts() -> int:
    """Get the hard ceiling on status checks per generation job.

    Environment Variable:
        VEO3_MAX_POLL_ATTEMPTS: Attempt ceiling (default: 30)

    Returns:
        Attempt ceiling (minimum 1, maximum 360).
    """
    return _get_int("VEO3_MAX_POLL_ATTEMPTS", DEFAULT_MAX_POLL_ATTEMPTS, 1, 360)


def get_output_dir() -> Path:
    """Get root directory for generated videos and sessions (default: output/veo3)."""
    return Path(os.getenv("VEO3_OUTPUT_DIR", str(REPO_ROOT / "output" / "veo3")))


def get_sessions_dir() -> Path:
    """Get directory holding per-session working directories."""
    return get_output_dir() / "sessions"
