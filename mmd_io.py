import logging
from typing import List, Optional, Tuple

from node_models import (
    ROOT_ID,
    Direction,
    MindmapContentError,
    MindNode,
    new_node_id,
)


logger = logging.getLogger(__name__)

HEADER = "mindmap"
PLACEHOLDER_TOPIC = "Root"
INDENT = "  "

_QUOTE_TOKEN = "#quot;"
# Tried in order; the doubled forms must win over their single counterparts.
_DELIMITERS: Tuple[Tuple[str, str], ...] = (
    ("((", "))"),
    ("[[", "]]"),
    ("{{", "}}"),
    ("[", "]"),
    ("(", ")"),
    ("{", "}"),
)
_LEGACY_ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&quot;", '"'),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
)
_DIRECTION_TAGS: Tuple[Tuple[str, Direction], ...] = (
    (Direction.RIGHT.tag, Direction.RIGHT),
    (Direction.LEFT.tag, Direction.LEFT),
)


def escape_topic(topic: str) -> str:
    return topic.replace('"', _QUOTE_TOKEN)


def unescape_topic(text: str) -> str:
    # The custom token goes first so a literal "&quot;" is not decoded twice.
    text = text.replace(_QUOTE_TOKEN, '"')
    for entity, char in _LEGACY_ENTITIES:
        text = text.replace(entity, char)
    return text


def to_mermaid(root: MindNode) -> str:
    """Serialize a mind map tree to Mermaid ``mindmap`` outline text.

    Pure and deterministic: the same tree always yields the same text.
    Depth-1 branches carry their side as a ``[L] ``/``[R] `` tag inside the
    quotes; deeper nodes never do.
    """
    if root is None:
        raise MindmapContentError("root node must not be None")
    if not isinstance(root, MindNode):
        raise MindmapContentError(f"expected a MindNode root, got {type(root).__name__}")

    lines: List[str] = [HEADER]
    lines.append(f'{INDENT}root(("{escape_topic(root.topic)}"))')

    def write_children(parent: MindNode, depth: int) -> None:
        pad = INDENT * (depth + 1)
        for child in parent.children:
            tag = ""
            if depth == 1 and child.direction is not None:
                tag = child.direction.tag
            lines.append(f'{pad}"{tag}{escape_topic(child.topic)}"')
            write_children(child, depth + 1)

    write_children(root, 1)
    return "\n".join(lines)


def _is_quoted(text: str) -> bool:
    # A lone '"' counts as an empty quoted topic.
    return text.startswith('"') and text.endswith('"')


def _strip_delimiters(text: str) -> str:
    for opening, closing in _DELIMITERS:
        if opening not in text or not text.endswith(closing):
            continue
        start = text.index(opening) + len(opening)
        end = len(text) - len(closing)
        if start <= end:
            return text[start:end]
    return text


def extract_content(line: str, *, allow_direction: bool = True) -> Tuple[str, Optional[Direction]]:
    """Return ``(topic, direction)`` for a single outline line.

    Quoted lines are preferred; bracketed and bare lines from older exports
    are accepted as a fallback. ``allow_direction`` is False for lines that
    are not direct children of the root, so a topic that happens to start
    with ``[R] `` is kept as typed.
    """
    text = line.strip()
    if _is_quoted(text):
        content = text[1:-1]
    else:
        content = _strip_delimiters(text)
    if _is_quoted(content):
        content = content[1:-1]

    direction: Optional[Direction] = None
    if allow_direction:
        for tag, candidate in _DIRECTION_TAGS:
            if content.startswith(tag):
                direction = candidate
                content = content[len(tag):]
                break

    return unescape_topic(content), direction


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


def has_content(text: Optional[str]) -> bool:
    return bool(text and text.strip())


def from_mermaid(text: str) -> MindNode:
    """Parse Mermaid ``mindmap`` outline text into a fresh tree.

    Never raises on malformed input: lines indented under no valid parent are
    attached to the root, and an empty document yields a placeholder root.
    Every node gets a new id (the root gets ``ROOT_ID``) and ``expanded=True``.
    """
    # Only "\n" ends a line; other Unicode separators may appear inside topics.
    lines = [line.removesuffix("\r") for line in (text or "").split("\n")]
    lines = [line for line in lines if line.strip()]
    if lines and lines[0].strip().lower() == HEADER:
        lines = lines[1:]

    if not lines:
        logger.debug("Empty outline, using placeholder root")
        return MindNode(PLACEHOLDER_TOPIC, id=ROOT_ID)

    root_line, *child_lines = lines
    root_topic, _ = extract_content(root_line, allow_direction=False)
    root = MindNode(root_topic, id=ROOT_ID)

    stack: List[Tuple[MindNode, int]] = [(root, _indent_width(root_line))]
    for line in child_lines:
        indent = _indent_width(line)

        while stack and stack[-1][1] >= indent:
            stack.pop()
        if not stack:
            logger.debug("Line %r is not nested under the root, attaching it there", line.strip())
            stack.append((root, -1))

        parent = stack[-1][0]
        topic, direction = extract_content(line, allow_direction=parent is root)
        node = MindNode(topic, id=new_node_id(), direction=direction)
        parent.children.append(node)
        stack.append((node, indent))

    logger.debug("Parsed outline into %d nodes", root.count())
    return root
