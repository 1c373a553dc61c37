import copy
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


ROOT_ID = "root"


class MindmapContentError(ValueError):
    """Raised when a caller hands the codec something that is not a mind map."""


class MindmapValidationError(MindmapContentError):
    """Raised when an interchange payload is malformed."""


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def tag(self) -> str:
        return "[L] " if self is Direction.LEFT else "[R] "

    @property
    def code(self) -> int:
        # Renderer convention: 0 = left side, 1 = right side.
        return 0 if self is Direction.LEFT else 1

    @classmethod
    def from_code(cls, code: int) -> "Direction":
        return cls.LEFT if code == 0 else cls.RIGHT


def new_node_id() -> str:
    return uuid.uuid4().hex


@dataclass
class MindNode:
    topic: str
    children: List["MindNode"] = field(default_factory=list)
    id: str = field(default_factory=new_node_id)
    # Only meaningful for direct children of the root.
    direction: Optional[Direction] = None
    # Presentation state, not part of the map's content.
    expanded: bool = True

    def walk(self) -> Iterator["MindNode"]:
        """Yield this node and every descendant in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def walk_with_depth(self, depth: int = 0) -> Iterator[tuple["MindNode", int]]:
        stack = [(self, depth)]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((child, level + 1) for child in reversed(node.children))

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    def clone(self) -> "MindNode":
        return copy.deepcopy(self)


def find_parent(root: MindNode, target: MindNode) -> Optional[MindNode]:
    for node in root.walk():
        for child in node.children:
            if child is target:
                return node
    return None


def collapse_all(root: MindNode) -> MindNode:
    """Collapse everything below the first level, keeping root and branches open."""
    for node, depth in root.walk_with_depth():
        if depth <= 1:
            node.expanded = True
        elif node.children:
            node.expanded = False
    return root


def default_mindmap() -> MindNode:
    return MindNode(
        "My Mind Map",
        id=ROOT_ID,
        children=[
            MindNode(
                "Main Branch 1",
                id="branch1",
                direction=Direction.LEFT,
                children=[
                    MindNode("Sub topic 1", id="sub1"),
                    MindNode("Sub topic 2", id="sub2"),
                ],
            ),
            MindNode(
                "Main Branch 2",
                id="branch2",
                direction=Direction.RIGHT,
                children=[
                    MindNode("Sub topic 3", id="sub3"),
                    MindNode("Sub topic 4", id="sub4"),
                ],
            ),
            MindNode(
                "Main Branch 3",
                id="branch3",
                direction=Direction.LEFT,
                children=[MindNode("Click to edit", id="sub5")],
            ),
        ],
    )
