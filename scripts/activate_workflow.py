#!/usr/bin/env python3
"""Activate (or deactivate) an n8n workflow through the public API.

Usage:
    python scripts/activate_workflow.py YjvjMbHILQjUZjJz
    python scripts/activate_workflow.py YjvjMbHILQjUZjJz --deactivate
"""

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.n8n import ActivationResult, N8nClient
from fantasy_ops.config import get_n8n_api_token, get_n8n_base_url, load_env_files


async def set_workflow_state(client: N8nClient, workflow_id: str, activate: bool) -> ActivationResult:
    print(f"🔄 Fetching workflow {workflow_id}...")
    if activate:
        result = await client.activate_workflow(workflow_id)
    else:
        result = await client.deactivate_workflow(workflow_id)

    state = "ACTIVE" if result.active else "INACTIVE"
    if result.already_active:
        print(f"✅ Workflow '{result.name}' is already {state}")
    else:
        print(f"\n✅ WORKFLOW {'ACTIVATED' if activate else 'DEACTIVATED'}\n")
        print(f"📋 Workflow ID: {result.workflow_id}")
        print(f"📝 Workflow Name: {result.name}")
        print(f"✅ State: {state}")
        print(f"📊 Nodes: {result.node_count}")
    return result


async def main() -> None:
    parser = argparse.ArgumentParser(description="Activate an n8n workflow")
    parser.add_argument("workflow_id", help="n8n workflow id")
    parser.add_argument("--deactivate", action="store_true", help="Deactivate instead of activating")
    args = parser.parse_args()

    load_env_files()
    try:
        client = N8nClient(get_n8n_base_url(), get_n8n_api_token())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Add N8N_API_TOKEN (and N8N_BASE_URL) to .env.n8n", file=sys.stderr)
        sys.exit(1)

    try:
        await set_workflow_state(client, args.workflow_id, activate=not args.deactivate)
    except httpx.HTTPStatusError as e:
        print("\n❌ ERROR UPDATING WORKFLOW", file=sys.stderr)
        print(f"Status: {e.response.status_code}", file=sys.stderr)
        print(f"Data: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()

    print("\n🎉 OPERATION COMPLETED")


if __name__ == "__main__":
    asyncio.run(main())
