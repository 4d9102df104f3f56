#!/usr/bin/env python3
"""List competitor videos whose analysis failed, with the stored error.

Usage:
    python scripts/check_failed_videos.py
"""

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
    summarize_failures,
)


async def check_failed_videos(client: SupabaseClient) -> int:
    """Print every failed video and return how many there are."""
    videos = await list_videos_by_status(client, ProcessingStatus.FAILED)

    if not videos:
        print("✅ No failed videos")
        return 0

    print(f"❌ FAILED VIDEOS: {len(videos)}")
    print()
    for position, video in enumerate(summarize_failures(videos), start=1):
        print(f"{position}. {video.title}...")
        print(f"   Video ID: {video.video_id}")
        print(f"   Error: {video.error}")
        print()
    return len(videos)


async def main() -> None:
    load_env_files()
    try:
        client = SupabaseClient(get_supabase_url(), get_supabase_service_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Add SUPABASE_PROJECT_URL and SUPABASE_SERVICE_ROLE_KEY to .env.supabase", file=sys.stderr)
        sys.exit(1)

    try:
        await check_failed_videos(client)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
