"""Fantasy La Liga operational scripts.

This package contains the clients and services behind the one-off and
scheduled scripts in scripts/: Supabase maintenance and migrations,
API-Football probes, n8n workflow activation, and the VEO3 / Nano Banana
video pipeline (session preparation, segment generation, concatenation).
"""

from fantasy_ops.config import load_env_files
from fantasy_ops.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FFmpegError,
    GenerationFailedError,
    GenerationTimeoutError,
)

__all__ = [
    "ConfigurationError",
    "ExternalServiceError",
    "FFmpegError",
    "GenerationFailedError",
    "GenerationTimeoutError",
    "load_env_files",
]
