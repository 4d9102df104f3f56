#!/usr/bin/env python3
"""Phase 2 of a VEO3 session: generate one segment through the backend.

Reads the session's progress.json, validates the 1-based segment number
and asks the content backend to generate that segment. An existing
segment is only regenerated after confirmation (or with --force).

Usage:
    python scripts/continue_session_segment.py session_nanoBanana_1760180721221 2
    python scripts/continue_session_segment.py session_nanoBanana_1760180721221 2 --force
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
from fantasy_ops.services.session import load_session, validate_segment_number


def confirm(question: str) -> bool:
    """Ask a y/n question; no answer (closed stdin) counts as no."""
    try:
        return input(question).strip().lower() == "y"
    except EOFError:
        print()
        return False


def print_result(result: dict[str, Any], session_id: str, number: int) -> None:
    segment = result.get("segment") or {}
    print(f"\n✅ Segment {number} generated")
    print(f"📹 Task ID: {segment.get('taskId')}")
    print(f"📁 File: {segment.get('filename')}")
    if segment.get("dialogue"):
        print(f"💬 Dialogue: \"{segment['dialogue']}\"")

    state = result.get("session") or {}
    completed = state.get("segmentsCompleted", 0)
    total = state.get("segmentsTotal", 0)
    if total:
        print(f"\n📊 Session: {completed}/{total} segments ({round(completed / total * 100)}%)")

    if total and completed >= total:
        print("\n🎉 All segments completed")
        print(f"   Next: python scripts/concatenate_session.py {session_id}")
        print(f"   or on the backend: python scripts/finalize_session.py {session_id}")
    elif not total or number < total:
        print("\n💡 Next segment:")
        print(f"   python scripts/continue_session_segment.py {session_id} {number + 1}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate one segment of an existing session")
    parser.add_argument("session_id", help="Session id (directory name under the sessions root)")
    parser.add_argument("segment", type=int, help="1-based segment number")
    parser.add_argument("--force", action="store_true", help="Regenerate without asking")
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()
    load_env_files()

    try:
        session = load_session(get_sessions_dir(), args.session_id)
        index = validate_segment_number(session.progress, args.segment)
    except (ValueError, FileNotFoundError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    progress = session.progress
    print(f"📋 Session: {session.session_id}")
    print(f"   - Player: {progress.player_name}")
    print(f"   - Content: {progress.content_type}")
    print(f"   - Preset: {progress.preset}")
    print(f"   - Completed: {progress.segments_completed}/{progress.segments_total}")

    existing = progress.get_segment(index)
    if existing and not args.force:
        print(f"\n⚠️  Segment {args.segment} already exists ({existing.filename}, task {existing.task_id})")
        if not confirm("   Regenerate? (y/n): "):
            print("❌ Cancelled")
            sys.exit(0)

    client = BackendClient(get_backend_base_url())
    print(f"\n🎬 Generating segment {args.segment} (2-3 minutes)...")
    start = time.monotonic()
    try:
        result = client.generate_single_segment(session.session_id, index)
    except (requests.RequestException, ExternalServiceError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(f"⏱️  {time.monotonic() - start:.1f}s")
    print_result(result, session.session_id, args.segment)


if __name__ == "__main__":
    main()
