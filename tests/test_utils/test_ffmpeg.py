"""Tests for the ffmpeg/ffprobe process wrapper.

subprocess.run is patched; no binary is executed.
"""

import asyncio
import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from fantasy_ops.exceptions import FFmpegError
from fantasy_ops.utils.ffmpeg import (
    ensure_ffmpeg_available,
    probe_duration,
    probe_streams,
    run_ffmpeg,
)


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestRunFfmpeg:
    """Tests for run_ffmpeg."""

    @pytest.mark.asyncio
    async def test_p1_adds_overwrite_flag(self):
        """[P1] Should call ffmpeg with -y before the given arguments."""
        with patch("fantasy_ops.utils.ffmpeg.subprocess.run", return_value=completed()) as mock_run:
            await run_ffmpeg(["-i", "in.mp4", "out.mp4"])

        command = mock_run.call_args.args[0]
        assert command == ["ffmpeg", "-y", "-i", "in.mp4", "out.mp4"]
        assert mock_run.call_args.kwargs["timeout"] == 600

    @pytest.mark.asyncio
    async def test_p1_non_zero_exit_raises(self):
        """[P1] Should raise FFmpegError with stderr."""
        with patch(
            "fantasy_ops.utils.ffmpeg.subprocess.run",
            return_value=completed(1, stderr="in.mp4: No such file or directory"),
        ):
            with pytest.raises(FFmpegError) as exc_info:
                await run_ffmpeg(["-i", "in.mp4", "out.mp4"])

        assert exc_info.value.exit_code == 1
        assert "No such file" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_p2_timeout(self):
        with patch(
            "fantasy_ops.utils.ffmpeg.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffmpeg", timeout=5),
        ):
            with pytest.raises(asyncio.TimeoutError):
                await run_ffmpeg(["out.mp4"], timeout=5)


class TestProbes:
    """Tests for probe_duration and probe_streams."""

    @pytest.mark.asyncio
    async def test_p1_probe_duration(self):
        with patch("fantasy_ops.utils.ffmpeg.subprocess.run", return_value=completed(stdout="8.000000\n")) as mock_run:
            duration = await probe_duration(Path("segment_1.mp4"))

        assert duration == 8.0
        assert mock_run.call_args.args[0][:3] == ["ffprobe", "-v", "error"]

    @pytest.mark.asyncio
    async def test_p1_probe_streams(self):
        stdout = json.dumps({"streams": [{"codec_type": "video"}, {"codec_type": "audio"}]})
        with patch("fantasy_ops.utils.ffmpeg.subprocess.run", return_value=completed(stdout=stdout)):
            streams = await probe_streams(Path("segment_1.mp4"))

        assert [s["codec_type"] for s in streams] == ["video", "audio"]

    @pytest.mark.asyncio
    async def test_p2_probe_failure(self):
        with patch("fantasy_ops.utils.ffmpeg.subprocess.run", return_value=completed(1, stderr="Invalid data")):
            with pytest.raises(FFmpegError):
                await probe_streams(Path("broken.mp4"))


class TestEnsureFfmpegAvailable:
    """Tests for ensure_ffmpeg_available."""

    def test_p1_missing_binary(self):
        with patch("fantasy_ops.utils.ffmpeg.shutil.which", side_effect=lambda name: None if name == "ffprobe" else "/usr/bin/ffmpeg"):
            with pytest.raises(FileNotFoundError, match="ffprobe not found"):
                ensure_ffmpeg_available()

    def test_p2_both_present(self):
        with patch("fantasy_ops.utils.ffmpeg.shutil.which", return_value="/usr/bin/x"):
            ensure_ffmpeg_available()
