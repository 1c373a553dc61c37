"""Editing session: owns the live tree and every wholesale replacement of it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

import json_io
from clipboard import Clipboard
from mmd_io import from_mermaid, has_content, to_mermaid
from node_models import MindNode, collapse_all, default_mindmap
from reconcile import reconcile_expanded


logger = logging.getLogger(__name__)

ChangeListener = Callable[[MindNode], None]


def is_json_path(path: Path) -> bool:
    return path.suffix.lower() == ".json"


def render(root: MindNode, path: Path) -> str:
    if is_json_path(path):
        return json_io.to_json(root)
    return to_mermaid(root)


def read_tree(path: Path) -> MindNode:
    """Read a map from disk, picking the format by file suffix."""
    text = path.read_text(encoding="utf-8")
    if is_json_path(path):
        return json_io.from_json(text)
    return from_mermaid(text)


class EditingSession:
    """Current tree plus the hooks the rendering widget listens on.

    In-place edits made by the widget are followed by ``notify_changed``;
    imports, reloads and remote updates go through ``replace_root`` so the
    expansion state of the outgoing tree is carried over first.
    """

    def __init__(
        self,
        root: Optional[MindNode] = None,
        *,
        clipboard: Optional[Clipboard] = None,
        path: str | Path | None = None,
    ) -> None:
        self.root = root if root is not None else default_mindmap()
        self.clipboard = clipboard if clipboard is not None else Clipboard()
        self.path: Optional[Path] = Path(path).expanduser() if path else None
        self._listeners: List[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def notify_changed(self) -> None:
        for listener in list(self._listeners):
            listener(self.root)

    def export_text(self) -> str:
        return to_mermaid(self.root)

    def replace_root(self, incoming: MindNode) -> MindNode:
        self.root = reconcile_expanded(self.root, incoming)
        logger.info("Replaced mind map (%d nodes)", self.root.count())
        self.notify_changed()
        return self.root

    def replace_from_text(self, text: str) -> MindNode:
        if not has_content(text):
            logger.info("Ignoring empty outline; keeping the current map")
            return self.root
        return self.replace_root(from_mermaid(text))

    def load_file(self, path: str | Path) -> MindNode:
        target = Path(path).expanduser()
        incoming = read_tree(target)
        self.path = target
        logger.info("Loaded %s", target)
        return self.replace_root(incoming)

    def save_file(self, path: str | Path | None = None) -> Path:
        target = Path(path).expanduser() if path else self.path
        if target is None:
            raise ValueError("No path given and the session has no file yet")
        target.write_text(render(self.root, target), encoding="utf-8")
        self.path = target
        logger.info("Saved %s", target)
        return target

    def collapse_all(self) -> None:
        collapse_all(self.root)
        self.notify_changed()
