"""Topic taxonomy: display classification and Sparkplug B topic parsing."""

from __future__ import annotations

from spmon.models.messages import MessageCategory

SPARKPLUG_NAMESPACE = "spBv1.0"
TEDGE_NAMESPACE = "te"

DEFAULT_TOPICS: tuple[str, ...] = (
    f"{SPARKPLUG_NAMESPACE}/#",
    "te/device/+///m/",
    "te/device/+///m/+",
    "c8y/#",
)


def classify_topic(topic: str) -> MessageCategory:
    if topic.startswith(SPARKPLUG_NAMESPACE + "/"):
        return MessageCategory.SPARKPLUG
    if topic.startswith(TEDGE_NAMESPACE + "/"):
        return MessageCategory.TEDGE
    return MessageCategory.OTHER


def parse_sparkplug_topic(topic: str) -> tuple[str, str] | None:
    """Extract ``(group_id, edge_node_id)`` from a Sparkplug B topic.

    Topics have the form ``spBv1.0/{group}/{command}/{node}[/{device}]``.
    Returns ``None`` when the topic does not match or either id is empty.
    """
    parts = topic.split("/", 4)
    if len(parts) < 4 or parts[0] != SPARKPLUG_NAMESPACE:
        return None
    group, node = parts[1], parts[3]
    if not group or not node:
        return None
    return group, node


def ncmd_topic(group: str, node: str) -> str:
    """The Node Command topic for an edge node."""
    return f"{SPARKPLUG_NAMESPACE}/{group}/NCMD/{node}"
