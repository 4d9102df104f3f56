"""Cross-cutting utilities for the operational scripts.

This package contains helper functions used across clients and services.
Utilities should be pure functions without business logic.

Modules:
    ffmpeg: Non-blocking ffmpeg/ffprobe wrapper.
    filesystem: Session path helpers with traversal protection.
    logging: Structured JSON logger.
"""

from fantasy_ops.utils.filesystem import get_session_dir, validate_identifier
from fantasy_ops.utils.logging import get_logger

__all__ = [
    "get_logger",
    "get_session_dir",
    "validate_identifier",
]
