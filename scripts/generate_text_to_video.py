#!/usr/bin/env python3
"""Generate a VEO3 video from a text prompt and check its streams.

Submits a text-to-video task to KIE.ai, polls until it finishes,
downloads the result and verifies with ffprobe that it has a video
stream (and reports whether it has audio).

Usage:
    python scripts/generate_text_to_video.py "A presenter in a football studio says hola"
    python scripts/generate_text_to_video.py "..." --model veo3 --aspect 16:9 --seed 30001
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.kie import KieClient
from fantasy_ops.config import (
    get_kie_api_key,
    get_max_poll_attempts,
    get_output_dir,
    get_poll_interval,
    get_veo3_aspect_ratio,
    get_veo3_model,
    load_env_files,
)
from fantasy_ops.exceptions import ExternalServiceError, GenerationFailedError, GenerationTimeoutError
from fantasy_ops.utils.ffmpeg import probe_streams


def describe_streams(streams: list[dict[str, Any]]) -> tuple[bool, bool]:
    """Return (has_video, has_audio) for ffprobe stream entries."""
    codec_types = {stream.get("codec_type") for stream in streams}
    return "video" in codec_types, "audio" in codec_types


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="VEO3 text-to-video via KIE.ai")
    parser.add_argument("prompt", help="Video prompt")
    parser.add_argument("--model", default=None, help="veo3_fast (default) or veo3")
    parser.add_argument("--aspect", default=None, help="Aspect ratio (default: 9:16)")
    parser.add_argument("--seed", type=int, default=None, help="Generation seed")
    parser.add_argument("--output", type=Path, default=None, help="Output .mp4 path")
    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    if not args.prompt.strip():
        print("❌ Error: prompt must not be empty", file=sys.stderr)
        sys.exit(1)

    load_env_files()
    try:
        client = KieClient(get_kie_api_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    model = args.model or get_veo3_model()
    aspect = args.aspect or get_veo3_aspect_ratio()
    print(f"🎬 Generating video ({model}, {aspect})...")
    print(f"   Prompt: {args.prompt[:100]}")

    try:
        task_id = await client.generate_video(args.prompt, model=model, aspect_ratio=aspect, seed=args.seed)
        print(f"✅ Task submitted: {task_id}")
        print("⏳ Waiting for completion...")
        video_url = await client.wait_for_video(task_id, get_poll_interval(), get_max_poll_attempts())
        print(f"✅ Video ready: {video_url}")

        output_path = args.output or get_output_dir() / f"veo3_{task_id}.mp4"
        await client.download(video_url, output_path)
        print(f"💾 Saved to {output_path}")
    except (ExternalServiceError, GenerationFailedError, GenerationTimeoutError) as e:
        print(f"❌ Generation failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()

    try:
        has_video, has_audio = describe_streams(await probe_streams(output_path))
    except Exception as e:
        print(f"⚠️  Could not probe {output_path}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"🔍 Video stream: {'✅' if has_video else '❌'}   Audio stream: {'✅' if has_audio else '⚠️  none'}")
    if not has_video:
        sys.exit(1)

    print("🎉 Done")


if __name__ == "__main__":
    asyncio.run(main())
