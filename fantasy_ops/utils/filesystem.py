"""Filesystem path helpers for the video session workspace.

This module provides standardized path construction for generation sessions
and enforces that every path stays under the configured output root.

Security:
    Session IDs must be alphanumeric with optional underscores/dashes.
    Resolved paths are verified to stay within the given root.

Architecture Pattern:
    output/veo3/
    ├── sessions/
    │   └── {session_id}/
    │       ├── progress.json
    │       ├── segment_1.mp4
    │       └── segment_2.mp4
    └── final/

Usage:
    from fantasy_ops.utils.filesystem import get_session_dir

    session_dir = get_session_dir(sessions_root, "session_1760180721221")
"""

import re
from pathlib import Path

__all__ = [
    "FINAL_DIR_NAME",
    "PROGRESS_FILE_NAME",
    "get_final_dir",
    "get_session_dir",
    "validate_identifier",
    "verify_path_in_root",
]

PROGRESS_FILE_NAME = "progress.json"
FINAL_DIR_NAME = "final"

# Validation pattern: alphanumeric, underscores, dashes only
_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def validate_identifier(identifier: str, name: str) -> None:
    """Validate identifier to prevent path traversal attacks.

    Args:
        identifier: The identifier to validate (e.g., a session_id)
        name: Human-readable name for error messages

    Raises:
        ValueError: If identifier is empty, longer than 100 characters,
            or contains characters outside [a-zA-Z0-9_-]
    """
    if not identifier:
        raise ValueError(f"{name} cannot be empty")

    if len(identifier) > 100:
        raise ValueError(f"{name} length must be 1-100 characters")

    if not _ID_PATTERN.match(identifier):
        raise ValueError(
            f"Invalid {name}: '{identifier}'. "
            f"Only alphanumeric characters, underscores, and dashes are allowed."
        )


def verify_path_in_root(path: Path, root: Path) -> None:
    """Verify that resolved path stays within root.

    Raises:
        ValueError: If resolved path escapes root
    """
    resolved = path.resolve()
    root_resolved = root.resolve()

    if not resolved.is_relative_to(root_resolved):
        raise ValueError(
            f"Path traversal detected: resolved path '{resolved}' "
            f"is outside root '{root_resolved}'"
        )


def get_session_dir(sessions_root: Path, session_id: str, create: bool = True) -> Path:
    """Get working directory for a session.

    Args:
        sessions_root: Directory holding all sessions.
        session_id: Session identifier.
        create: Create the directory when missing (default: True).

    Returns:
        Path to {sessions_root}/{session_id}/

    Raises:
        ValueError: If session_id is invalid or escapes sessions_root.
    """
    validate_identifier(session_id, "session_id")
    session_dir = sessions_root / session_id
    verify_path_in_root(session_dir, sessions_root)
    if create:
        session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def get_final_dir(output_root: Path) -> Path:
    """Get (and create) the directory for concatenated final videos."""
    final_dir = output_root / FINAL_DIR_NAME
    final_dir.mkdir(parents=True, exist_ok=True)
    return final_dir
