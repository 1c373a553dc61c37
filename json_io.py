"""JSON interchange in the renderer's native ``{"nodeData": ...}`` layout."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from node_models import Direction, MindmapValidationError, MindNode, new_node_id


_DIRECTION_NAMES = {"left": Direction.LEFT, "right": Direction.RIGHT}


def node_to_dict(node: MindNode, depth: int = 0) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": node.id,
        "topic": node.topic,
        "expanded": node.expanded,
    }
    if depth == 1 and node.direction is not None:
        data["direction"] = node.direction.code
    data["children"] = [node_to_dict(child, depth + 1) for child in node.children]
    return data


def to_json(root: MindNode, *, indent: Optional[int] = 2) -> str:
    if not isinstance(root, MindNode):
        raise MindmapValidationError("root node must be a MindNode")
    return json.dumps({"nodeData": node_to_dict(root)}, ensure_ascii=False, indent=indent)


def _parse_direction(raw: Any) -> Optional[Direction]:
    if raw is None:
        return None
    # bool is an int subclass; True/False are not valid side codes.
    if isinstance(raw, int) and not isinstance(raw, bool) and raw in (0, 1):
        return Direction.from_code(raw)
    if isinstance(raw, str) and raw.strip().lower() in _DIRECTION_NAMES:
        return _DIRECTION_NAMES[raw.strip().lower()]
    raise MindmapValidationError("'direction' must be 0, 1, 'left' or 'right' when provided")


def node_from_dict(data: Dict[str, Any], depth: int = 0) -> MindNode:
    if not isinstance(data, dict):
        raise MindmapValidationError("Node payload must be a mapping")

    topic = data.get("topic")
    if not isinstance(topic, str):
        raise MindmapValidationError("Each node must include a string 'topic'")

    node_id = data.get("id")
    if node_id is None:
        node_id = new_node_id()
    elif not isinstance(node_id, str) or not node_id:
        raise MindmapValidationError("'id' must be a non-empty string when provided")

    expanded = data.get("expanded", True)
    if expanded is None:
        expanded = True
    if not isinstance(expanded, bool):
        raise MindmapValidationError("'expanded' must be a boolean when provided")

    children_data = data.get("children", [])
    if children_data is None:
        children_data = []
    if not isinstance(children_data, list):
        raise MindmapValidationError("'children' must be a list when provided")

    direction = _parse_direction(data.get("direction"))
    if depth != 1:
        direction = None

    return MindNode(
        topic,
        children=[node_from_dict(child, depth + 1) for child in children_data],
        id=node_id,
        direction=direction,
        expanded=expanded,
    )


def from_mapping(data: Dict[str, Any]) -> MindNode:
    if not isinstance(data, dict):
        raise MindmapValidationError("Mind map payload must be a mapping")
    if "nodeData" not in data:
        raise MindmapValidationError("Mind map payload must include a 'nodeData' object")
    root = node_from_dict(data["nodeData"])
    ids = [node.id for node in root.walk()]
    if len(ids) != len(set(ids)):
        raise MindmapValidationError("Node ids must be unique within a mind map")
    return root


def from_json(raw_json: str) -> MindNode:
    try:
        parsed = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise MindmapValidationError("Mind map JSON could not be parsed") from exc
    return from_mapping(parsed)
