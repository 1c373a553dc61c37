"""Copy/cut/paste buffer shared by every map opened in one editing session."""

import logging
from typing import Optional

from node_models import MindmapContentError, MindNode, find_parent, new_node_id


logger = logging.getLogger(__name__)


class Clipboard:
    """Holds the last copied or cut subtree.

    One instance lives for the whole editing session and is handed to the
    components that need it, so a subtree copied from one map can be pasted
    into another.
    """

    def __init__(self) -> None:
        self._content: Optional[MindNode] = None
        self.is_cut = False

    @property
    def has_content(self) -> bool:
        return self._content is not None

    @property
    def content(self) -> Optional[MindNode]:
        return self._content

    def clear(self) -> None:
        self._content = None
        self.is_cut = False

    def copy(self, node: MindNode) -> None:
        self._content = node.clone()
        self.is_cut = False
        logger.debug("Copied subtree %r (%d nodes)", node.topic, self._content.count())

    def cut(self, root: MindNode, node: MindNode) -> None:
        if node is root:
            raise MindmapContentError("The root node cannot be cut")
        parent = find_parent(root, node)
        if parent is None:
            raise MindmapContentError(f"Node {node.topic!r} is not part of this map")
        parent.children = [child for child in parent.children if child is not node]
        self._content = node
        self.is_cut = True
        logger.debug("Cut subtree %r (%d nodes)", node.topic, node.count())

    def paste(self, target: MindNode, *, depth: int) -> Optional[MindNode]:
        """Append the buffered subtree under ``target`` (which sits at ``depth``).

        The pasted copy gets fresh ids throughout. Its side tag is kept only
        when it lands as a direct child of the root.
        """
        if self._content is None:
            return None
        pasted = self._content.clone()
        for node in pasted.walk():
            node.id = new_node_id()
            node.direction = None
        if depth == 0:
            pasted.direction = self._content.direction
        target.children.append(pasted)
        if self.is_cut:
            self.clear()
        return pasted
