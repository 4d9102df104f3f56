#!/usr/bin/env python3
"""Supabase keep-alive: insert a temporary row and delete it again.

Prevents free-tier projects from pausing after 7 days of inactivity.
Meant to run from cron or a scheduled CI job. Requires the
keep_alive_pings table.

Usage:
    python scripts/keep_alive.py
"""

import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.supabase import SupabaseClient
from fantasy_ops.config import get_supabase_service_key, get_supabase_url, load_env_files
from fantasy_ops.services.keep_alive import PING_TABLE, ping


async def main() -> None:
    print("🚀 Starting Supabase keep-alive...")
    load_env_files()
    try:
        url = get_supabase_url()
        client = SupabaseClient(url, get_supabase_service_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Run: cp .env.supabase.example .env.supabase", file=sys.stderr)
        sys.exit(1)

    print(f"📡 Connecting to {url[:40]}...")
    try:
        ping_id = await ping(client)
        print(f"✅ Ping {ping_id} inserted and deleted")
    except Exception as e:
        print(f"❌ Keep-alive failed: {e}", file=sys.stderr)
        print(f"💡 Make sure the {PING_TABLE} table exists", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()

    print("🎉 Keep-alive completed")


if __name__ == "__main__":
    asyncio.run(main())
