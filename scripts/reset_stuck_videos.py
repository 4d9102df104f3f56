#!/usr/bin/env python3
"""Reset competitor videos stuck in an in-progress status.

A crashed analysis run leaves rows in "analyzing" (default) or "processing";
this moves them back to onboarding_analyzed. The stored analysis is kept.

Usage:
    python scripts/reset_stuck_videos.py
    python scripts/reset_stuck_videos.py --status processing
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.supabase import SupabaseClient
from fantasy_ops.config import get_supabase_service_key, get_supabase_url, load_env_files
from fantasy_ops.services.video_maintenance import (
    ProcessingStatus,
    list_videos_by_status,
    reset_videos,
    summarize_failures,
)

STUCK_STATUSES = (ProcessingStatus.ANALYZING, ProcessingStatus.PROCESSING)


async def reset_stuck_videos(client: SupabaseClient, status: ProcessingStatus) -> int:
    videos = await list_videos_by_status(client, status)
    if not videos:
        print(f"✅ No videos in \"{status.value}\"")
        return 0

    print(f"📊 Found {len(videos)} videos in \"{status.value}\":")
    for video in summarize_failures(videos):
        print(f"   - {video.video_id}: {video.title}")

    count = await reset_videos(client, status)
    print()
    print(f"✅ {count} videos reset to \"{ProcessingStatus.ONBOARDING_ANALYZED.value}\"")
    return count


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reset videos stuck in an in-progress status")
    parser.add_argument(
        "--status",
        choices=[s.value for s in STUCK_STATUSES],
        default=ProcessingStatus.ANALYZING.value,
        help="Status to reset (default: analyzing)",
    )
    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    load_env_files()
    try:
        client = SupabaseClient(get_supabase_url(), get_supabase_service_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Add SUPABASE_PROJECT_URL and SUPABASE_SERVICE_ROLE_KEY to .env.supabase", file=sys.stderr)
        sys.exit(1)

    try:
        await reset_stuck_videos(client, ProcessingStatus(args.status))
    except Exception as e:
        print(f"❌ Error resetting videos: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
