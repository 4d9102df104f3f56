"""FFmpeg / FFprobe process wrapper.

This module wraps the ffmpeg and ffprobe binaries so the concatenation
service never builds subprocess calls itself. Commands run through
`asyncio.to_thread()` so async scripts are not blocked while a long encode
is in progress.

Critical Pattern:
- Services pass argument lists only (never shell strings)
- `-y` is always added so reruns overwrite stale intermediates
- Non-zero exit codes raise FFmpegError with the stderr tail
"""

import asyncio
import json
import shutil
import subprocess
from pathlib import Path
from typing import Any

from fantasy_ops.exceptions import FFmpegError
from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

FFMPEG_BIN = "ffmpeg"
FFPROBE_BIN = "ffprobe"


def ensure_ffmpeg_available() -> None:
    """Verify ffmpeg and ffprobe are on PATH.

    Raises:
        FileNotFoundError: If either binary is missing.
    """
    for binary in (FFMPEG_BIN, FFPROBE_BIN):
        if shutil.which(binary) is None:
            raise FileNotFoundError(
                f"{binary} not found on PATH (macOS: brew install ffmpeg, "
                f"Ubuntu: sudo apt-get install ffmpeg)"
            )


async def run_ffmpeg(args: list[str], timeout: int = 600) -> subprocess.CompletedProcess[str]:
    """Run ffmpeg with the given arguments without blocking the event loop.

    Args:
        args: Arguments after the binary name (inputs, filters, output path).
        timeout: Timeout in seconds (default: 600).

    Returns:
        CompletedProcess with stdout, stderr, returncode.

    Raises:
        FFmpegError: If ffmpeg exits with non-zero code.
        asyncio.TimeoutError: If ffmpeg exceeds timeout.
    """
    command = [FFMPEG_BIN, "-y", *args]
    output = args[-1] if args else ""
    log.info("ffmpeg_start", output=output, arg_count=len(args), timeout=timeout)

    try:
        result = await asyncio.to_thread(
            subprocess.run,
            command,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        log.error("ffmpeg_timeout", output=output, timeout=timeout)
        raise asyncio.TimeoutError(f"ffmpeg exceeded timeout of {timeout}s") from e

    if result.returncode != 0:
        log.error("ffmpeg_error", output=output, exit_code=result.returncode, stderr=result.stderr[-500:])
        raise FFmpegError(command, result.returncode, result.stderr)

    log.info("ffmpeg_success", output=output)
    return result


async def run_ffprobe(args: list[str], timeout: int = 60) -> str:
    """Run ffprobe and return its stdout.

    Raises:
        FFmpegError: If ffprobe exits with non-zero code.
    """
    command = [FFPROBE_BIN, "-v", "error", *args]
    result = await asyncio.to_thread(
        subprocess.run,
        command,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
    )
    if result.returncode != 0:
        raise FFmpegError(command, result.returncode, result.stderr)
    return result.stdout


async def probe_duration(path: Path) -> float:
    """Get the duration of a media file in seconds.

    Raises:
        FFmpegError: If ffprobe fails.
        ValueError: If ffprobe output is not a number.
    """
    stdout = await run_ffprobe(
        [
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
    )
    return float(stdout.strip())


async def probe_streams(path: Path) -> list[dict[str, Any]]:
    """List the streams of a media file (codec_type, codec_name, duration, ...)."""
    stdout = await run_ffprobe(["-print_format", "json", "-show_streams", str(path)])
    return json.loads(stdout or "{}").get("streams", [])
