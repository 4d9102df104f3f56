#!/usr/bin/env python3
"""Phase 1 of a VEO3 session: ask the content backend to prepare it.

The backend writes the script, generates the Nano Banana reference images
and creates the session directory. The payload is a JSON file, e.g.:

    {
      "contentType": "outlier_response",
      "playerData": {"name": "Pere Milla"},
      "presenter": "ana",
      "customScript": [
        {"role": "intro", "duration": 8, "dialogue": "...", "emotion": "mysterious"}
      ]
    }

Usage:
    python scripts/prepare_session.py payload.json
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

import requests

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.backend import BackendClient
from fantasy_ops.config import get_backend_base_url, load_env_files
from fantasy_ops.exceptions import ExternalServiceError


def load_payload(path: Path) -> dict[str, Any]:
    """Read the request payload.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object
    """
    if not path.exists():
        raise FileNotFoundError(f"Payload file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object")
    return payload


def print_prepared(data: dict[str, Any]) -> None:
    print("\n🎉 Session prepared")
    print(f"📁 Session ID: {data.get('sessionId')}")
    if data.get("sessionDir"):
        print(f"📂 Session Dir: {data['sessionDir']}")
    print(f"🖼️  Images: {len(data.get('nanoBananaImages') or [])}")
    print(f"💰 Nano Banana cost: ${data.get('nanoBananaCost') or 0}")
    print("\n📌 Next step:")
    print(f"   python scripts/continue_session_segment.py {data.get('sessionId')} 1")


def main() -> None:
    parser = argparse.ArgumentParser(description="Prepare a VEO3 session on the content backend")
    parser.add_argument("payload", type=Path, help="JSON payload file")
    args = parser.parse_args()

    try:
        payload = load_payload(args.payload)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    load_env_files()
    client = BackendClient(get_backend_base_url())
    print(f"🌐 POST {client.base_url}/api/veo3/prepare-session (up to 5 minutes)...")
    start = time.monotonic()
    try:
        data = client.prepare_session(payload)
    except (requests.RequestException, ExternalServiceError) as e:
        print(f"❌ Error after {time.monotonic() - start:.1f}s: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(f"✅ Response in {time.monotonic() - start:.1f}s")
    print_prepared(data)


if __name__ == "__main__":
    main()
