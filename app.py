"""Terminal mind-map editor backed by Mermaid ``mindmap`` outline files."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Tree
from textual.widgets._tree import TextType, TreeNode
from rich.text import Text

from log_utils import configure_logging
from node_models import Direction, MindmapContentError, MindNode, find_parent
from session import EditingSession
from settings import Settings, load_settings
from sync import InMemoryStore, SyncSession


logger = logging.getLogger(__name__)


class MindmapTree(Tree[MindNode]):
    """Tree widget specialised for ``MindNode`` data."""

    def process_label(self, label: TextType) -> Text:
        if isinstance(label, str):
            return Text(label, justify="left")
        return label


class TopicEditScreen(ModalScreen[Optional[str]]):
    """Modal prompt for editing a node's topic."""

    DEFAULT_CSS = """
    TopicEditScreen {
        align: center middle;
        background: transparent;
    }

    #topic-edit-field {
        width: 60;
        border: round $secondary;
        background: $surface;
    }
    """

    def __init__(self, initial_topic: str) -> None:
        super().__init__()
        self._initial_topic = initial_topic

    def compose(self) -> ComposeResult:
        yield Input(value=self._initial_topic, id="topic-edit-field")

    def on_mount(self) -> None:
        self.query_one("#topic-edit-field", Input).focus()

    def on_key(self, event: events.Key) -> None:
        field = self.query_one("#topic-edit-field", Input)
        if event.key == "escape":
            event.stop()
            self.dismiss(None)
        elif event.key == "enter":
            event.stop()
            self.dismiss(field.value)


class MindmapApp(App[None]):
    """Textual user interface for the outline-backed mind map."""

    TITLE = "mmdmap"

    CSS = """
    #mindmap-tree {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=False),
        Binding("s", "save", "Save"),
        Binding("o", "open", "Reload"),
        Binding("left", "collapse_cursor", "Collapse", show=False),
        Binding("right", "expand_cursor", "Expand", show=False),
        Binding("tab", "add_child", "(child +)", priority=True),
        Binding("e", "edit_node", "(edit)"),
        Binding("0", "delete_node", "(del)"),
        Binding("d", "toggle_direction", "Side"),
        Binding("c", "copy_node", "Copy"),
        Binding("x", "cut_node", "Cut"),
        Binding("v", "paste_node", "Paste"),
        Binding("a", "expand_all", "Expand All"),
        Binding("z", "collapse_all", "Collapse All"),
    ]

    def __init__(
        self,
        session: EditingSession | None = None,
        *,
        sync: SyncSession | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings or Settings()
        self.session = session or EditingSession(path=self.settings.mindmap_path)
        self.sync = sync
        self._tree_widget: Optional[MindmapTree] = None
        self._remove_listener = None

    def compose(self) -> ComposeResult:
        yield Header()
        tree = MindmapTree("Mind Map", id="mindmap-tree")
        tree.show_root = True
        tree.auto_expand = False
        self._tree_widget = tree
        yield tree
        yield Footer()

    def on_mount(self) -> None:
        self._remove_listener = self.session.add_listener(lambda _root: self.rebuild_tree())
        if self.sync is not None:
            if self.sync.load_initial():
                self.show_status("Loaded map from the store.")
            self.sync.start()
        self.rebuild_tree()
        self.require_tree().focus()

    def on_unmount(self) -> None:
        if self.sync is not None:
            self.sync.stop()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def require_tree(self) -> MindmapTree:
        if self._tree_widget is None:
            raise RuntimeError("Tree widget not initialised")
        return self._tree_widget

    def rebuild_tree(self) -> None:
        tree = self.require_tree()
        selected = self.get_selected_model_node()
        selected_id = selected.id if selected else None
        root = self.session.root

        tree.clear()
        tree.root.set_label(self._format_node_label(root, 0))
        tree.root.data = root
        self.populate_tree(tree.root, root, 0)
        if root.expanded:
            tree.root.expand()
        else:
            tree.root.collapse()

        target = self._find_tree_node(selected_id) if selected_id else None
        tree.call_after_refresh(tree.move_cursor, target or tree.root)
        self.sub_title = self._summary()

    def populate_tree(self, tree_node: TreeNode[MindNode], node: MindNode, depth: int) -> None:
        for child in node.children:
            child_tree_node = tree_node.add(
                self._format_node_label(child, depth + 1),
                data=child,
                expand=child.expanded,
                allow_expand=bool(child.children),
            )
            self.populate_tree(child_tree_node, child, depth + 1)

    def _find_tree_node(self, node_id: str) -> Optional[TreeNode[MindNode]]:
        stack = [self.require_tree().root]
        while stack:
            tree_node = stack.pop()
            if tree_node.data is not None and tree_node.data.id == node_id:
                return tree_node
            stack.extend(tree_node.children)
        return None

    @staticmethod
    def _format_node_label(node: MindNode, depth: int) -> Text:
        if depth == 0:
            return Text(node.topic, style="bold")
        if depth == 1 and node.direction is not None:
            return Text.assemble((node.direction.tag, "dim"), node.topic)
        return Text(node.topic)

    @staticmethod
    def _tree_node_depth(tree_node: TreeNode[MindNode]) -> int:
        depth = 0
        current = tree_node.parent
        while current is not None:
            depth += 1
            current = current.parent
        return depth

    def get_selected_tree_node(self) -> Optional[TreeNode[MindNode]]:
        return self.require_tree().cursor_node

    def get_selected_model_node(self) -> Optional[MindNode]:
        selected = self.get_selected_tree_node()
        return selected.data if selected else None

    def _require_selection(self) -> Optional[TreeNode[MindNode]]:
        selected = self.get_selected_tree_node()
        if selected is None or selected.data is None:
            self.bell()
            self.show_status("No node selected.")
            return None
        return selected

    def _summary(self) -> str:
        name = self.session.path.name if self.session.path else "unsaved"
        return f"{name} · {self.session.root.count()} nodes"

    def show_status(self, message: str | None = None) -> None:
        summary = self._summary()
        self.sub_title = f"{summary} · {message}" if message else summary

    def on_tree_node_expanded(self, event: Tree.NodeExpanded[MindNode]) -> None:
        if isinstance(event.node.data, MindNode):
            event.node.data.expanded = True

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[MindNode]) -> None:
        if isinstance(event.node.data, MindNode):
            event.node.data.expanded = False

    @staticmethod
    def _balanced_direction(root: MindNode) -> Direction:
        lefts = sum(1 for child in root.children if child.direction is Direction.LEFT)
        rights = sum(1 for child in root.children if child.direction is Direction.RIGHT)
        return Direction.LEFT if rights > lefts else Direction.RIGHT

    def action_add_child(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        parent = selected.data
        direction = None
        if parent is self.session.root:
            direction = self._balanced_direction(parent)
        new_node = MindNode("New idea", direction=direction)
        parent.children.append(new_node)
        parent.expanded = True
        self.session.notify_changed()
        self._edit_topic(new_node)

    def action_edit_node(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        self._edit_topic(selected.data)

    def _edit_topic(self, node: MindNode) -> None:
        def apply_topic(result: str | None) -> None:
            if result is None:
                self.show_status("Edit cancelled.")
                return
            node.topic = result
            self.session.notify_changed()
            self.show_status("Node title updated.")

        self.push_screen(TopicEditScreen(node.topic), apply_topic)

    def action_delete_node(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        node = selected.data
        parent = find_parent(self.session.root, node)
        if parent is None:
            self.bell()
            self.show_status("The root cannot be deleted.")
            return
        parent.children = [child for child in parent.children if child is not node]
        self.session.notify_changed()
        self.show_status(f"Deleted '{node.topic}'.")

    def action_toggle_direction(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        if self._tree_node_depth(selected) != 1:
            self.bell()
            self.show_status("Only main branches have a side.")
            return
        node = selected.data
        node.direction = Direction.RIGHT if node.direction is Direction.LEFT else Direction.LEFT
        self.session.notify_changed()
        self.show_status(f"Moved '{node.topic}' to the {node.direction.value}.")

    def action_copy_node(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        self.session.clipboard.copy(selected.data)
        self.show_status(f"Copied '{selected.data.topic}'.")

    def action_cut_node(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        try:
            self.session.clipboard.cut(self.session.root, selected.data)
        except MindmapContentError as exc:
            self.bell()
            self.show_status(str(exc))
            return
        self.session.notify_changed()
        self.show_status(f"Cut '{selected.data.topic}'.")

    def action_paste_node(self) -> None:
        selected = self._require_selection()
        if selected is None:
            return
        pasted = self.session.clipboard.paste(
            selected.data, depth=self._tree_node_depth(selected)
        )
        if pasted is None:
            self.bell()
            self.show_status("Clipboard is empty.")
            return
        selected.data.expanded = True
        self.session.notify_changed()
        self.show_status(f"Pasted '{pasted.topic}'.")

    def action_expand_all(self) -> None:
        for node in self.session.root.walk():
            node.expanded = True
        self.session.notify_changed()

    def action_collapse_all(self) -> None:
        self.session.collapse_all()
        self.show_status("Nodes collapsed.")

    def action_collapse_cursor(self) -> None:
        node = self.get_selected_tree_node()
        if node:
            node.collapse()

    def action_expand_cursor(self) -> None:
        node = self.get_selected_tree_node()
        if node:
            node.expand()

    def _default_mindmap_path(self) -> Path:
        return self.session.path or self.settings.mindmap_path

    def action_save(self) -> None:
        try:
            path = self.session.save_file(self._default_mindmap_path())
        except (OSError, MindmapContentError) as exc:
            logger.exception("Save failed")
            self.bell()
            self.show_status(f"Failed to save: {exc}")
            return
        self.show_status(f"Saved to {path}")

    def action_open(self) -> None:
        target = self._default_mindmap_path().expanduser()
        if not target.exists():
            self.bell()
            self.show_status(f"{target} not found.")
            return
        try:
            self.session.load_file(target)
        except (OSError, MindmapContentError) as exc:
            logger.exception("Load failed for %s", target)
            self.bell()
            self.show_status(f"Failed to load {target}: {exc}")
            return
        self.show_status(f"Loaded {target}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mmdmap", description=__doc__)
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        help="Mind map to open (.mmd outline or .json). Defaults to $MMDMAP_FILE.",
    )
    parser.add_argument(
        "--convert",
        type=Path,
        metavar="OUTPUT",
        help="Convert the map to OUTPUT (format chosen by suffix) and exit.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write log records to this file instead of $MMDMAP_LOG_FILE.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging output.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(args.verbose or settings.verbose, args.log_file or settings.log_path)

    path = (args.path or settings.mindmap_path).expanduser()
    session = EditingSession(path=path)
    if path.exists():
        try:
            session.load_file(path)
        except (OSError, MindmapContentError) as exc:
            logger.exception("Could not read %s", path)
            print(f"Invalid file {path}: {exc}", file=sys.stderr)
            return 1
    elif args.convert:
        print(f"{path} not found", file=sys.stderr)
        return 1

    if args.convert:
        try:
            output = session.save_file(args.convert)
        except (OSError, MindmapContentError) as exc:
            logger.exception("Could not write %s", args.convert)
            print(f"Could not write {args.convert}: {exc}", file=sys.stderr)
            return 1
        logger.info("Converted %s to %s", path, output)
        return 0

    # Process-local store only; no network client is wired.
    sync = SyncSession(InMemoryStore(), session, key=settings.sync_key)
    MindmapApp(session, sync=sync, settings=settings).run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
