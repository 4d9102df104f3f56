"""Segment concatenation with transition, freeze frame and logo outro.

Final sequence (N segments):

    seg_1, transition, seg_2, transition, ..., seg_N, freeze frame, logo outro

Method: pre-normalisation + concat demuxer. Every clip is first re-encoded
to the same format (1080x1920, 24 fps, H.264 yuv420p without B-frames,
48 kHz stereo AAC) so that the concat demuxer never meets mismatched
streams, then the list is concatenated with a final re-encode. VEO3 segments
come with slightly different timebases; stream-copy concatenation shows black
flashes at the joins.

FFmpeg Commands:
    transition:  ffmpeg -loop 1 -i img -f lavfi -i anullsrc=r=48000:cl=stereo
                 -t 0.5 -c:v libx264 -pix_fmt yuv420p -c:a aac -b:a 192k -r 24
                 -g 24 -keyint_min 24 -sc_threshold 0 -bf 0 -shortest out.mp4
    normalize:   ffmpeg -i seg.mp4 -vf "scale=...,pad=...,setsar=1,fps=24"
                 -af aformat=sample_rates=48000:channel_layouts=stereo ...
    concat:      ffmpeg -f concat -safe 0 -i list.txt -c:v libx264 ... final.mp4

All intermediates live in a temporary directory next to the output and are
removed whether or not the concatenation succeeds.
"""

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

import structlog

from fantasy_ops.exceptions import ConfigurationError
from fantasy_ops.utils.ffmpeg import probe_duration, probe_streams, run_ffmpeg

log = structlog.get_logger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp", ".svg"}
KEYFRAME_ARGS = ["-g", "24", "-keyint_min", "24", "-sc_threshold", "0", "-bf", "0"]


def is_image(path: Path) -> bool:
    """True for still-image files (used to tell a logo image from an outro clip)."""
    return path.suffix.lower() in IMAGE_SUFFIXES


@dataclass
class ConcatenationConfig:
    """Output format and optional parts of the final video.

    Attributes:
        width / height: Output frame size (9:16 vertical)
        fps: Output frame rate
        crf: x264 quality for normalised clips and the final encode
        audio_sample_rate / audio_bitrate: AAC settings (stereo)
        transition_duration: Seconds the transition image is shown
        freeze_duration: Seconds the last frame is held before the outro
        outro_enabled: Append freeze frame + logo outro
        transition_image: Still image shown between segments (None = hard cut)
        logo_image: Logo rendered into an outro clip
        logo_video: Pre-rendered outro clip (used instead of logo_image)
        logo_duration / logo_width: Generated outro length and logo width
    """

    width: int = 1080
    height: int = 1920
    fps: int = 24
    crf: int = 18
    audio_sample_rate: int = 48000
    audio_bitrate: str = "192k"
    transition_duration: float = 0.5
    freeze_duration: float = 0.8
    outro_enabled: bool = True
    transition_image: Path | None = None
    logo_image: Path | None = None
    logo_video: Path | None = None
    logo_duration: float = 1.5
    logo_width: int = 600

    @property
    def silent_audio_source(self) -> str:
        return f"anullsrc=r={self.audio_sample_rate}:cl=stereo"

    @property
    def has_outro_clip(self) -> bool:
        return self.outro_enabled and (self.logo_video is not None or self.logo_image is not None)


@dataclass
class ConcatenationResult:
    """Summary of a finished concatenation."""

    output_path: Path
    segments: int
    transitions: int
    duration: float


def _audio_args(config: ConcatenationConfig) -> list[str]:
    return ["-c:a", "aac", "-b:a", config.audio_bitrate]


def _video_args(config: ConcatenationConfig) -> list[str]:
    return ["-c:v", "libx264", "-preset", "fast", "-crf", str(config.crf), "-pix_fmt", "yuv420p"]


def build_normalize_args(
    input_path: Path,
    output_path: Path,
    config: ConcatenationConfig,
    has_audio: bool = True,
) -> list[str]:
    """Re-encode a clip to the common format.

    Clips without an audio stream get a silent track so every concat input
    has the same stream layout.
    """
    video_filter = (
        f"scale={config.width}:{config.height}:force_original_aspect_ratio=decrease,"
        f"pad={config.width}:{config.height}:(ow-iw)/2:(oh-ih)/2,setsar=1,fps={config.fps}"
    )
    args = ["-i", str(input_path)]
    if has_audio:
        args += ["-vf", video_filter]
        args += ["-af", f"aformat=sample_rates={config.audio_sample_rate}:channel_layouts=stereo"]
    else:
        args += ["-f", "lavfi", "-i", config.silent_audio_source]
        args += ["-map", "0:v:0", "-map", "1:a:0", "-vf", video_filter, "-shortest"]
    return [*args, *_video_args(config), *_audio_args(config), *KEYFRAME_ARGS, str(output_path)]


def build_still_clip_args(
    image_path: Path,
    output_path: Path,
    duration: float,
    config: ConcatenationConfig,
) -> list[str]:
    """Turn a still image into a clip with a silent audio track (no B-frames)."""
    return [
        "-loop", "1",
        "-i", str(image_path),
        "-f", "lavfi",
        "-i", config.silent_audio_source,
        "-t", str(duration),
        "-vf",
        f"scale={config.width}:{config.height}:force_original_aspect_ratio=decrease,"
        f"pad={config.width}:{config.height}:(ow-iw)/2:(oh-ih)/2,setsar=1",
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        *_audio_args(config),
        "-r", str(config.fps),
        *KEYFRAME_ARGS,
        "-shortest",
        str(output_path),
    ]


def build_transition_args(image_path: Path, output_path: Path, config: ConcatenationConfig) -> list[str]:
    """Transition clip: the transition image held for transition_duration."""
    return build_still_clip_args(image_path, output_path, config.transition_duration, config)


def build_last_frame_args(video_path: Path, image_path: Path) -> list[str]:
    """Extract the last frame of a clip as an image."""
    return ["-sseof", "-0.5", "-i", str(video_path), "-update", "1", "-q:v", "1", str(image_path)]


def build_freeze_frame_args(frame_path: Path, output_path: Path, config: ConcatenationConfig) -> list[str]:
    """Freeze clip: the extracted last frame held for freeze_duration."""
    return build_still_clip_args(frame_path, output_path, config.freeze_duration, config)


def build_logo_outro_args(
    logo_path: Path,
    output_path: Path,
    duration: float = 1.5,
    width: int = 1080,
    height: int = 1920,
    fps: int = 30,
    logo_width: int = 600,
    silent_audio: str | None = None,
) -> list[str]:
    """Black background with the logo centred and scaled to logo_width.

    Without silent_audio the clip has no audio track (standalone outro);
    with an anullsrc spec a silent track is added for concatenation.
    """
    args = [
        "-f", "lavfi",
        "-i", f"color=black:s={width}x{height}:d={duration}:r={fps}",
        "-loop", "1",
        "-i", str(logo_path),
    ]
    if silent_audio:
        args += ["-f", "lavfi", "-i", silent_audio]
    args += [
        "-filter_complex",
        f"[1:v]scale={logo_width}:-1[logo];[0:v][logo]overlay=(W-w)/2:(H-h)/2:shortest=1[out]",
        "-map", "[out]",
    ]
    if silent_audio:
        args += ["-map", "2:a:0", "-c:a", "aac", "-b:a", "192k"]
    else:
        args += ["-an"]
    args += [
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        "-r", str(fps),
        "-b:v", "2M",
        "-preset", "fast",
        "-t", str(duration),
        str(output_path),
    ]
    return args


def build_concat_list(paths: list[Path]) -> str:
    """Concat demuxer list: one `file '<absolute path>'` line per clip."""
    lines = []
    for path in paths:
        escaped = str(path.resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


def build_concat_args(list_path: Path, output_path: Path, config: ConcatenationConfig) -> list[str]:
    return [
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_path),
        *_video_args(config),
        *_audio_args(config),
        *KEYFRAME_ARGS,
        "-movflags", "+faststart",
        str(output_path),
    ]


def plan_sequence(
    segments: list[Path],
    transition: Path | None = None,
    freeze: Path | None = None,
    outro: Path | None = None,
) -> list[Path]:
    """Order the clips: segments separated by the transition, then freeze, then outro.

    The transition never follows the last segment.
    """
    sequence: list[Path] = []
    for position, segment in enumerate(segments):
        sequence.append(segment)
        if transition is not None and position < len(segments) - 1:
            sequence.append(transition)
    if freeze is not None:
        sequence.append(freeze)
    if outro is not None:
        sequence.append(outro)
    return sequence


class VideoConcatenator:
    """Build the final video from downloaded segments.

    Example:
        >>> concatenator = VideoConcatenator(ConcatenationConfig(
        ...     transition_image=Path("assets/cortina-red-1080x1920.png"),
        ...     logo_image=Path("assets/logo.png")))
        >>> result = await concatenator.concatenate(paths, Path("output/veo3/final/ana.mp4"))
    """

    def __init__(self, config: ConcatenationConfig | None = None):
        self.config = config or ConcatenationConfig()

    def _validate(self, segment_paths: list[Path]) -> None:
        if not segment_paths:
            raise ValueError("At least one segment is required")
        missing = [str(p) for p in segment_paths if not p.exists()]
        if missing:
            raise FileNotFoundError(f"Segment files not found: {', '.join(missing)}")
        for label, path in (
            ("Transition image", self.config.transition_image),
            ("Logo image", self.config.logo_image),
            ("Logo video", self.config.logo_video),
        ):
            if path is not None and not path.exists():
                raise ConfigurationError(f"{label} not found: {path}")

    async def _has_audio(self, path: Path) -> bool:
        streams = await probe_streams(path)
        return any(stream.get("codec_type") == "audio" for stream in streams)

    async def _normalize(self, source: Path, target: Path) -> Path:
        has_audio = await self._has_audio(source)
        await run_ffmpeg(build_normalize_args(source, target, self.config, has_audio=has_audio))
        return target

    async def _build_outro(self, work_dir: Path) -> Path | None:
        if not self.config.has_outro_clip:
            return None
        target = work_dir / "outro.mp4"
        if self.config.logo_video is not None:
            return await self._normalize(self.config.logo_video, target)
        await run_ffmpeg(
            build_logo_outro_args(
                self.config.logo_image,
                target,
                duration=self.config.logo_duration,
                width=self.config.width,
                height=self.config.height,
                fps=self.config.fps,
                logo_width=self.config.logo_width,
                silent_audio=self.config.silent_audio_source,
            )
        )
        return target

    async def concatenate(self, segment_paths: list[Path], output_path: Path) -> ConcatenationResult:
        """Concatenate segments into output_path.

        Args:
            segment_paths: Segment files in playback order
            output_path: Final MP4 path (parent directories are created)

        Returns:
            ConcatenationResult with the probed duration

        Raises:
            ValueError: If no segments are given
            FileNotFoundError: If a segment file is missing
            ConfigurationError: If a configured transition/logo file is missing
            FFmpegError: If any ffmpeg step fails
        """
        self._validate(segment_paths)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(prefix="concat_", dir=output_path.parent))
        log.info("concatenation_started", segments=len(segment_paths), output=str(output_path))

        try:
            normalized = []
            for position, segment in enumerate(segment_paths, start=1):
                normalized.append(await self._normalize(segment, work_dir / f"normalized_{position}.mp4"))

            transition = None
            if self.config.transition_image is not None and len(normalized) > 1:
                transition = work_dir / "transition.mp4"
                await run_ffmpeg(build_transition_args(self.config.transition_image, transition, self.config))

            freeze = None
            if self.config.outro_enabled and self.config.freeze_duration > 0:
                frame = work_dir / "last_frame.png"
                await run_ffmpeg(build_last_frame_args(normalized[-1], frame))
                freeze = work_dir / "freeze.mp4"
                await run_ffmpeg(build_freeze_frame_args(frame, freeze, self.config))

            outro = await self._build_outro(work_dir)

            sequence = plan_sequence(normalized, transition, freeze, outro)
            list_path = work_dir / "concat_list.txt"
            list_path.write_text(build_concat_list(sequence), encoding="utf-8")
            await run_ffmpeg(build_concat_args(list_path, output_path, self.config))

            duration = await probe_duration(output_path)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        transitions = len(segment_paths) - 1 if transition is not None else 0
        log.info("concatenation_completed", output=str(output_path), duration=duration, transitions=transitions)
        return ConcatenationResult(output_path, len(segment_paths), transitions, duration)

    async def create_logo_outro(self, logo_path: Path, output_path: Path) -> Path:
        """Render the standalone logo outro (1.5 s, 30 fps, no audio).

        Raises:
            FileNotFoundError: If the logo does not exist
            FFmpegError: If ffmpeg fails
        """
        if not logo_path.exists():
            raise FileNotFoundError(f"Logo not found: {logo_path}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        await run_ffmpeg(
            build_logo_outro_args(
                logo_path,
                output_path,
                duration=self.config.logo_duration,
                width=self.config.width,
                height=self.config.height,
                logo_width=self.config.logo_width,
            )
        )
        return output_path
