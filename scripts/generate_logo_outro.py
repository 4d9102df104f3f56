#!/usr/bin/env python3
"""Render the standalone logo outro clip.

1.5 seconds of the logo (600 px wide) centred on black, 1080x1920 at
30 fps, without audio.

Usage:
    python scripts/generate_logo_outro.py assets/logo.png output/veo3/logo-outro.mp4
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.exceptions import FFmpegError
from fantasy_ops.services.video_concatenation import VideoConcatenator
from fantasy_ops.utils.ffmpeg import ensure_ffmpeg_available, probe_duration


async def main() -> None:
    parser = argparse.ArgumentParser(description="Render the logo outro clip")
    parser.add_argument("logo", type=Path, help="Logo image (PNG with transparency works best)")
    parser.add_argument("output", type=Path, help="Output .mp4 path")
    args = parser.parse_args()

    try:
        ensure_ffmpeg_available()
        print(f"🎨 Rendering logo outro from {args.logo}...")
        output = await VideoConcatenator().create_logo_outro(args.logo, args.output)
        duration = await probe_duration(output)
    except (FileNotFoundError, FFmpegError, asyncio.TimeoutError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    size_kb = output.stat().st_size / 1024
    print(f"✅ Outro saved to {output} ({duration:.2f}s, {size_kb:.0f} KB)")


if __name__ == "__main__":
    asyncio.run(main())
