#!/usr/bin/env python3
"""Phase 3 of a VEO3 session: ask the content backend to finalize it.

The backend concatenates the session's segments and appends the logo
outro. When the session's progress.json is available locally, missing
segments are reported before the request is sent.

Usage:
    python scripts/finalize_session.py session_nanoBanana_1760180721221
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Any

import requests

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.backend import BackendClient
from fantasy_ops.config import get_backend_base_url, get_sessions_dir, load_env_files
from fantasy_ops.exceptions import ExternalServiceError
from fantasy_ops.services.session import load_session, missing_segment_numbers


def print_finalized(data: dict[str, Any]) -> None:
    final_video = data.get("finalVideo") or {}
    print("\n🎉 Session finalized")
    print(f"📹 Final video: {final_video.get('url')}")
    print(f"📁 Output path: {final_video.get('outputPath')}")
    if final_video.get("duration") is not None:
        print(f"⏱️  Duration: {final_video['duration']}s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Finalize a VEO3 session on the content backend")
    parser.add_argument("session_id", help="Session id")
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()
    load_env_files()

    try:
        session = load_session(get_sessions_dir(), args.session_id)
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError:
        session = None

    if session is not None:
        missing = missing_segment_numbers(session.progress)
        if missing:
            print(f"❌ Error: missing segments: {', '.join(str(n) for n in missing)}", file=sys.stderr)
            print(
                f"💡 Generate them with: python scripts/continue_session_segment.py {args.session_id} {missing[0]}",
                file=sys.stderr,
            )
            sys.exit(1)

    client = BackendClient(get_backend_base_url())
    print(f"🌐 POST {client.base_url}/api/veo3/finalize-session (up to 2 minutes)...")
    start = time.monotonic()
    try:
        data = client.finalize_session(args.session_id)
    except (requests.RequestException, ExternalServiceError) as e:
        print(f"❌ Error after {time.monotonic() - start:.1f}s: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(f"✅ Response in {time.monotonic() - start:.1f}s")
    print_finalized(data)


if __name__ == "__main__":
    main()
