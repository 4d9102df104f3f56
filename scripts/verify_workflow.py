#!/usr/bin/env python3
"""Print an overview of an n8n workflow: state, node distribution, URLs.

Without a workflow id the workflows of the instance are listed.

Usage:
    python scripts/verify_workflow.py
    python scripts/verify_workflow.py 7pVHQO4CcjiE20Yo
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.n8n import N8nClient
from fantasy_ops.config import get_n8n_api_token, get_n8n_base_url, load_env_files
from fantasy_ops.services.workflow_report import http_timeouts, summarize_nodes, webhook_paths

NODE_LABELS = {
    "webhook": "Webhook",
    "httpRequest": "HTTP Request",
    "function": "Function/Code",
    "wait": "Wait",
    "if": "IF",
    "respondToWebhook": "Respond",
    "other": "Other",
}


def print_workflow_list(workflows: list[dict[str, Any]]) -> None:
    print(f"📋 {len(workflows)} workflows:")
    for workflow in workflows:
        state = "✅ active" if workflow.get("active") else "⏳ inactive"
        print(f"   - {workflow.get('id')}: {workflow.get('name')} ({state})")


def print_workflow(workflow: dict[str, Any], base_url: str) -> None:
    print("✅ WORKFLOW VERIFIED\n")
    print("📋 General:")
    print(f"   - ID: {workflow.get('id')}")
    print(f"   - Name: {workflow.get('name')}")
    print(f"   - Active: {'✅ ACTIVE' if workflow.get('active') else '⏳ INACTIVE'}")
    print(f"   - Total Nodes: {len(workflow.get('nodes') or [])}")
    print(f"   - Created: {workflow.get('createdAt')}")
    print(f"   - Updated: {workflow.get('updatedAt')}")

    print("\n📊 Node distribution:")
    for category, count in summarize_nodes(workflow).items():
        print(f"   - {NODE_LABELS[category]}: {count}")

    print("\n🔗 URLs:")
    for path in webhook_paths(workflow):
        print(f"   - Webhook URL: {base_url}/webhook/{path.lstrip('/')}")
    print(f"   - n8n UI: {base_url}/workflow/{workflow.get('id')}")

    timeouts = http_timeouts(workflow)
    if timeouts:
        print("\n⏱️  HTTP timeouts:")
        for name, timeout in timeouts.items():
            print(f"   - {name}: {f'{timeout}ms' if timeout else 'default'}")

    if not workflow.get("active"):
        print("\n⚠️  ACTION REQUIRED:")
        print(f"   Activate with: python scripts/activate_workflow.py {workflow.get('id')}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Verify an n8n workflow")
    parser.add_argument("workflow_id", nargs="?", help="n8n workflow id (omit to list workflows)")
    args = parser.parse_args()

    load_env_files()
    try:
        base_url = get_n8n_base_url()
        client = N8nClient(base_url, get_n8n_api_token())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.workflow_id is None:
            print_workflow_list(await client.list_workflows())
            return
        workflow = await client.get_workflow(args.workflow_id)
    except Exception as e:
        print(f"❌ Error verifying workflow: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()

    print_workflow(workflow, base_url)


if __name__ == "__main__":
    asyncio.run(main())
