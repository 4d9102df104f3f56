"""Tests for fantasy_ops/exceptions.py."""

from fantasy_ops.exceptions import (
    ExternalServiceError,
    FFmpegError,
    GenerationFailedError,
    GenerationTimeoutError,
)


class TestExternalServiceError:
    """Tests for ExternalServiceError formatting."""

    def test_p1_includes_service_and_status(self):
        """[P1] Should prefix the service and append the status code."""
        error = ExternalServiceError("kie", "Insufficient credits", 402, "x" * 1000)

        assert str(error) == "[kie] Insufficient credits (status=402)"
        assert len(error.body) == 500

    def test_p2_without_status(self):
        """[P2] Should omit the status when unknown."""
        assert str(ExternalServiceError("n8n", "boom")) == "[n8n] boom"


class TestGenerationErrors:
    """Tests for generation error messages."""

    def test_p1_failed_message_contains_task_id(self):
        error = GenerationFailedError("task-1", "content policy")

        assert error.task_id == "task-1"
        assert "task-1" in str(error) and "content policy" in str(error)

    def test_p1_timeout_records_attempts(self):
        error = GenerationTimeoutError("task-2", 30)

        assert error.attempts == 30
        assert "30 attempts" in str(error)


class TestFFmpegError:
    """Tests for FFmpegError."""

    def test_p1_truncates_stderr_in_message(self):
        """[P1] Should keep full stderr but only its tail in the message."""
        stderr = "a" * 600 + "Invalid data found"
        error = FFmpegError(["ffmpeg", "-i", "x.mp4"], 1, stderr)

        assert error.stderr == stderr
        assert str(error).startswith("ffmpeg failed with exit code 1: ")
        assert str(error).endswith("Invalid data found")
