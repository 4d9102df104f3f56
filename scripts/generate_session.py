#!/usr/bin/env python3
"""Generate a multi-segment VEO3 session locally through KIE.ai.

Creates a session directory, generates every segment in order with the
character seed (submit, poll, download, record in progress.json) and
optionally joins them into the final video. A failed run can be resumed
with --resume, which keeps the segments already on disk.

The prompts file is a JSON object, e.g.:

    {
      "playerName": "Pere Milla",
      "contentType": "chollo",
      "preset": "chollo_viral",
      "segments": [
        {"prompt": "...", "imageUrl": "https://.../ana.png", "dialogue": "..."},
        {"prompt": "...", "dialogue": "..."}
      ]
    }

Usage:
    python scripts/generate_session.py prompts.json
    python scripts/generate_session.py prompts.json --concatenate --logo assets/logo.png
    python scripts/generate_session.py prompts.json --resume session_1760180721221
"""

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.kie import KieClient
from fantasy_ops.config import (
    get_character_seed,
    get_kie_api_key,
    get_max_poll_attempts,
    get_output_dir,
    get_poll_interval,
    get_sessions_dir,
    get_veo3_aspect_ratio,
    get_veo3_model,
    get_veo3_watermark,
    load_env_files,
)
from fantasy_ops.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FFmpegError,
    GenerationFailedError,
    GenerationTimeoutError,
)
from fantasy_ops.services.segment_generation import SegmentGenerator
from fantasy_ops.services.session import create_session, load_session, segment_paths
from fantasy_ops.services.video_concatenation import ConcatenationConfig, VideoConcatenator, is_image
from fantasy_ops.utils.ffmpeg import ensure_ffmpeg_available
from fantasy_ops.utils.filesystem import get_final_dir


@dataclass
class SessionPlan:
    """Contents of the prompts file."""

    prompts: list[str]
    image_urls: list[str | None]
    dialogues: list[str]
    player_name: str = ""
    content_type: str = ""
    preset: str = ""


def load_plan(path: Path) -> SessionPlan:
    """Read and validate the prompts file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file has no segments or a segment has no prompt
    """
    if not path.exists():
        raise FileNotFoundError(f"Prompts file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Prompts file must be a JSON object")

    segments = data.get("segments") or []
    if not segments:
        raise ValueError("Prompts file has no segments")
    for number, segment in enumerate(segments, start=1):
        if not isinstance(segment, dict) or not str(segment.get("prompt") or "").strip():
            raise ValueError(f"Segment {number} has no prompt")

    return SessionPlan(
        prompts=[s["prompt"] for s in segments],
        image_urls=[s.get("imageUrl") for s in segments],
        dialogues=[s.get("dialogue") or "" for s in segments],
        player_name=data.get("playerName") or "",
        content_type=data.get("contentType") or "",
        preset=data.get("preset") or "",
    )


def build_concat_config(args: argparse.Namespace) -> ConcatenationConfig:
    config = ConcatenationConfig(transition_image=args.transition)
    if args.logo is not None:
        if is_image(args.logo):
            config.logo_image = args.logo
        else:
            config.logo_video = args.logo
    return config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a VEO3 session segment by segment")
    parser.add_argument("prompts", type=Path, help="JSON file with the segment prompts")
    parser.add_argument("--prefix", default="session", help="Session id prefix (default: session)")
    parser.add_argument("--resume", metavar="SESSION_ID", default=None, help="Continue an existing session")
    parser.add_argument("--seed", type=int, default=None, help="Character seed (default: VEO3_CHARACTER_SEED)")
    parser.add_argument("--concatenate", action="store_true", help="Join the segments when all are done")
    parser.add_argument("--transition", type=Path, default=None, help="Image shown between segments")
    parser.add_argument("--logo", type=Path, default=None, help="Logo image or outro video")
    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    try:
        plan = load_plan(args.prompts)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    load_env_files()
    if args.concatenate:
        try:
            ensure_ffmpeg_available()
        except FileNotFoundError as e:
            print(f"❌ Error: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        api_key = get_kie_api_key()
        if args.resume:
            session = load_session(get_sessions_dir(), args.resume)
        else:
            session = create_session(
                get_sessions_dir(),
                prefix=args.prefix,
                player_name=plan.player_name,
                content_type=plan.content_type,
                preset=plan.preset,
                segments_total=len(plan.prompts),
            )
    except (ValueError, FileNotFoundError, FileExistsError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    client = KieClient(api_key)
    seed = args.seed if args.seed is not None else get_character_seed()
    print(f"📁 Session: {session.session_id}")
    print(f"🎬 {len(plan.prompts)} segments ({get_veo3_model()}, {get_veo3_aspect_ratio()}, seed {seed})")

    generator = SegmentGenerator(
        client,
        session,
        model=get_veo3_model(),
        aspect_ratio=get_veo3_aspect_ratio(),
        seed=seed,
        watermark=get_veo3_watermark() or None,
        poll_interval=get_poll_interval(),
        max_poll_attempts=get_max_poll_attempts(),
    )
    try:
        records = await generator.generate_all(
            plan.prompts,
            plan.image_urls,
            plan.dialogues,
            skip_existing=bool(args.resume),
        )
    except (ExternalServiceError, GenerationFailedError, GenerationTimeoutError) as e:
        progress = session.progress
        print(f"❌ Generation failed: {e}", file=sys.stderr)
        print(f"   {progress.segments_completed}/{progress.segments_total} segments saved", file=sys.stderr)
        print(
            f"💡 Resume with: python scripts/generate_session.py {args.prompts} --resume {session.session_id}",
            file=sys.stderr,
        )
        sys.exit(1)
    finally:
        await client.close()

    for record in records:
        print(f"   ✅ Segment {record.index + 1}: {record.filename} (task {record.task_id})")

    if not args.concatenate:
        print("\n📌 Next step:")
        print(f"   python scripts/concatenate_session.py {session.session_id}")
        return

    output_path = get_final_dir(get_output_dir()) / f"{session.session_id}_final.mp4"
    print(f"\n🎞️  Concatenating {len(records)} segments...")
    try:
        result = await VideoConcatenator(build_concat_config(args)).concatenate(segment_paths(session), output_path)
    except (ValueError, FileNotFoundError, ConfigurationError, FFmpegError, asyncio.TimeoutError) as e:
        print(f"❌ Concatenation failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✅ Final video: {result.output_path} ({result.duration:.1f}s)")


if __name__ == "__main__":
    asyncio.run(main())
