"""Carry expand/collapse state across a full tree replacement."""

from typing import Dict, Optional

from node_models import MindNode


def capture_expand_state(root: Optional[MindNode]) -> tuple[Dict[str, bool], Dict[str, bool]]:
    """Return ``(by_id, by_topic)`` lookups of each node's ``expanded`` flag.

    Topics are not unique; when several nodes share one, the last node
    visited in pre-order wins.
    """
    by_id: Dict[str, bool] = {}
    by_topic: Dict[str, bool] = {}
    if root is None:
        return by_id, by_topic
    for node in root.walk():
        by_id[node.id] = node.expanded
        by_topic[node.topic] = node.expanded
    return by_id, by_topic


def reconcile_expanded(previous: Optional[MindNode], incoming: MindNode) -> MindNode:
    """Copy ``expanded`` flags from ``previous`` onto matching nodes of ``incoming``.

    Nodes are matched by id first, then by topic. Unmatched nodes keep the
    parser's default. ``incoming`` is updated in place and returned.
    """
    by_id, by_topic = capture_expand_state(previous)
    if not by_id:
        return incoming
    for node in incoming.walk():
        if node.id in by_id:
            node.expanded = by_id[node.id]
        elif node.topic in by_topic:
            node.expanded = by_topic[node.topic]
    return incoming
