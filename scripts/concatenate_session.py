#!/usr/bin/env python3
"""Concatenate VEO3 segments into the final video.

Segments come either from a session (recorded in progress.json, in index
order) or from an explicit list of files. Between segments an optional
transition image is shown; the last frame is frozen before the logo outro.

Usage:
    python scripts/concatenate_session.py session_nanoBanana_1760180721221
    python scripts/concatenate_session.py session_1760180721221 --transition assets/cortina.png --logo assets/logo.png
    python scripts/concatenate_session.py --videos a.mp4 b.mp4 c.mp4 --no-outro --output out.mp4
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.config import get_output_dir, get_sessions_dir, load_env_files
from fantasy_ops.exceptions import ConfigurationError, FFmpegError
from fantasy_ops.services.session import load_session, missing_segment_numbers, segment_paths
from fantasy_ops.services.video_concatenation import (
    ConcatenationConfig,
    VideoConcatenator,
    is_image,
)
from fantasy_ops.utils.ffmpeg import ensure_ffmpeg_available
from fantasy_ops.utils.filesystem import get_final_dir


def build_config(args: argparse.Namespace) -> ConcatenationConfig:
    """Translate command-line options into a ConcatenationConfig.

    A --logo image is rendered as an outro clip; a --logo video is used as is.
    """
    config = ConcatenationConfig(
        transition_image=args.transition,
        outro_enabled=not args.no_outro,
        freeze_duration=args.freeze,
    )
    if args.logo is not None:
        if is_image(args.logo):
            config.logo_image = args.logo
        else:
            config.logo_video = args.logo
    return config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Concatenate VEO3 segments")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("session_id", nargs="?", help="Session whose recorded segments to join")
    source.add_argument("--videos", nargs="+", type=Path, help="Explicit segment files in order")
    parser.add_argument("--transition", type=Path, default=None, help="Image shown between segments")
    parser.add_argument("--logo", type=Path, default=None, help="Logo image or outro video")
    parser.add_argument("--freeze", type=float, default=0.8, help="Freeze-frame seconds before the outro")
    parser.add_argument("--no-outro", action="store_true", help="Skip freeze frame and logo outro")
    parser.add_argument(
        "--allow-partial",
        action="store_true",
        help="Join the recorded segments even when some are missing",
    )
    parser.add_argument("--output", type=Path, default=None, help="Output .mp4 path")
    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    load_env_files()

    try:
        ensure_ffmpeg_available()
    except FileNotFoundError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.session_id:
        try:
            session = load_session(get_sessions_dir(), args.session_id)
        except (ValueError, FileNotFoundError) as e:
            print(f"❌ Error: {e}", file=sys.stderr)
            sys.exit(1)
        missing = missing_segment_numbers(session.progress)
        if missing:
            numbers = ", ".join(str(n) for n in missing)
            if not args.allow_partial:
                print(f"❌ Error: session is incomplete, missing segments: {numbers}", file=sys.stderr)
                print(
                    f"💡 Generate them with: python scripts/continue_session_segment.py {session.session_id} {missing[0]}",
                    file=sys.stderr,
                )
                sys.exit(1)
            print(f"⚠️  Missing segments {numbers}, joining the recorded ones (--allow-partial)")
        paths = segment_paths(session)
        name = session.session_id
    else:
        paths = args.videos
        name = f"concat_{paths[0].stem}"

    output_path = args.output or get_final_dir(get_output_dir()) / f"{name}_final.mp4"
    print(f"🎞️  Concatenating {len(paths)} segments:")
    for path in paths:
        print(f"   - {path}")

    concatenator = VideoConcatenator(build_config(args))
    try:
        result = await concatenator.concatenate(paths, output_path)
    except (ValueError, FileNotFoundError, ConfigurationError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (FFmpegError, asyncio.TimeoutError) as e:
        print(f"❌ FFmpeg failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\n✅ Final video: {result.output_path}")
    print(f"   Segments: {result.segments}   Transitions: {result.transitions}   Duration: {result.duration:.1f}s")


if __name__ == "__main__":
    asyncio.run(main())
