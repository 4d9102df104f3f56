#!/usr/bin/env python3
"""Reset failed competitor videos to onboarding_analyzed so they are re-analysed.

The stored analysis (which holds the error) is cleared.

Usage:
    python scripts/reset_failed_videos.py
"""

import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.supabase import SupabaseClient
from fantasy_ops.config import get_supabase_service_key, get_supabase_url, load_env_files
from fantasy_ops.services.video_maintenance import ProcessingStatus, reset_videos


async def reset_failed_videos(client: SupabaseClient) -> int:
    count = await reset_videos(client, ProcessingStatus.FAILED, clear_analysis=True)
    if count == 0:
        print("✅ No failed videos to reset")
    else:
        print(f"✅ {count} videos reset to \"{ProcessingStatus.ONBOARDING_ANALYZED.value}\"")
    return count


async def main() -> None:
    load_env_files()
    try:
        client = SupabaseClient(get_supabase_url(), get_supabase_service_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Add SUPABASE_PROJECT_URL and SUPABASE_SERVICE_ROLE_KEY to .env.supabase", file=sys.stderr)
        sys.exit(1)

    try:
        await reset_failed_videos(client)
    except Exception as e:
        print(f"❌ Error resetting videos: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
