"""Inspection helpers for n8n workflow definitions.

Node types look like "n8n-nodes-base.httpRequest"; categories are derived
from the part after the last dot.
"""

from collections import Counter
from typing import Any

NODE_CATEGORIES = {
    "webhook": "webhook",
    "httpRequest": "httpRequest",
    "function": "function",
    "functionItem": "function",
    "code": "function",
    "wait": "wait",
    "if": "if",
    "respondToWebhook": "respondToWebhook",
}
OTHER_CATEGORY = "other"


def node_category(node_type: str) -> str:
    """Map a node type to its report category ("other" when unknown)."""
    short_name = node_type.rsplit(".", 1)[-1]
    return NODE_CATEGORIES.get(short_name, OTHER_CATEGORY)


def summarize_nodes(workflow: dict[str, Any]) -> dict[str, int]:
    """Count nodes per category.

    Every known category is present in the result, with 0 when absent;
    "other" appears only when some node is uncategorised.
    """
    counts = Counter(node_category(node.get("type", "")) for node in workflow.get("nodes") or [])
    summary = {category: counts.get(category, 0) for category in dict.fromkeys(NODE_CATEGORIES.values())}
    if counts.get(OTHER_CATEGORY):
        summary[OTHER_CATEGORY] = counts[OTHER_CATEGORY]
    return summary


def webhook_paths(workflow: dict[str, Any]) -> list[str]:
    """Paths of webhook trigger nodes (to build the public webhook URLs)."""
    return [
        node["parameters"]["path"]
        for node in workflow.get("nodes") or []
        if node_category(node.get("type", "")) == "webhook" and (node.get("parameters") or {}).get("path")
    ]


def http_timeouts(workflow: dict[str, Any]) -> dict[str, int | None]:
    """Configured timeout (ms) of each HTTP Request node by node name."""
    timeouts = {}
    for node in workflow.get("nodes") or []:
        if node_category(node.get("type", "")) != "httpRequest":
            continue
        options = (node.get("parameters") or {}).get("options") or {}
        timeouts[node.get("name", "")] = options.get("timeout")
    return timeouts
