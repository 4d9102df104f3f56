"""Tests for path helpers and identifier validation."""

from pathlib import Path

import pytest

from fantasy_ops.utils.filesystem import (
    get_final_dir,
    get_session_dir,
    validate_identifier,
    verify_path_in_root,
)


class TestValidateIdentifier:
    """Tests for validate_identifier."""

    @pytest.mark.parametrize("identifier", ["session_1760180721221", "session-nanoBanana-1", "a"])
    def test_p1_accepts_safe_ids(self, identifier):
        validate_identifier(identifier, "session_id")

    @pytest.mark.parametrize("identifier", ["", "../etc", "a/b", "a b", "x" * 101])
    def test_p1_rejects_unsafe_ids(self, identifier):
        with pytest.raises(ValueError):
            validate_identifier(identifier, "session_id")


class TestSessionDirs:
    """Tests for get_session_dir, get_final_dir and verify_path_in_root."""

    def test_p1_creates_session_dir(self, tmp_path: Path):
        directory = get_session_dir(tmp_path, "session_1")

        assert directory == tmp_path / "session_1"
        assert directory.is_dir()

    def test_p2_no_create(self, tmp_path: Path):
        directory = get_session_dir(tmp_path, "session_2", create=False)

        assert not directory.exists()

    def test_p1_path_escape_detected(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Path traversal"):
            verify_path_in_root(tmp_path / ".." / "other", tmp_path)

    def test_p2_final_dir(self, tmp_path: Path):
        assert get_final_dir(tmp_path) == tmp_path / "final"
        assert (tmp_path / "final").is_dir()
