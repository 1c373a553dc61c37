"""Expansion reconciliation tests."""

from __future__ import annotations

from mmd_io import from_mermaid, to_mermaid
from node_models import MindNode
from reconcile import capture_expand_state, reconcile_expanded


def test_topic_match_carries_collapsed_state() -> None:
    previous = MindNode("Root", id="root", children=[MindNode("Alpha", id="n1", expanded=False)])
    incoming = MindNode("Root", id="root", children=[MindNode("Alpha", id="fresh")])

    result = reconcile_expanded(previous, incoming)

    assert result is incoming
    assert incoming.children[0].expanded is False


def test_id_match_wins_over_topic_match() -> None:
    previous = MindNode(
        "Root",
        id="root",
        children=[
            MindNode("Renamed", id="keep", expanded=True),
            MindNode("Alpha", id="other", expanded=False),
        ],
    )
    incoming = MindNode("Root", id="root", children=[MindNode("Alpha", id="keep")])

    reconcile_expanded(previous, incoming)

    assert incoming.children[0].expanded is True


def test_unmatched_nodes_keep_parser_default() -> None:
    previous = MindNode("Root", id="root", expanded=False, children=[MindNode("Alpha", expanded=False)])
    incoming = from_mermaid(to_mermaid(MindNode("Root", children=[MindNode("Beta")])))

    reconcile_expanded(previous, incoming)

    assert incoming.expanded is False
    assert incoming.children[0].expanded is True


def test_duplicate_topics_use_last_visited_node() -> None:
    previous = MindNode(
        "Root",
        id="root",
        children=[
            MindNode("Same", expanded=False, children=[MindNode("x")]),
            MindNode("Same", expanded=True, children=[MindNode("y")]),
        ],
    )
    incoming = from_mermaid(to_mermaid(previous))

    reconcile_expanded(previous, incoming)

    assert [child.expanded for child in incoming.children] == [True, True]


def test_full_reparse_restores_expansion() -> None:
    previous = from_mermaid(
        "mindmap\n"
        '  root(("Plan"))\n'
        '    "[L] Work"\n'
        '      "Tasks"\n'
        '        "Email"\n'
        '    "[R] Home"\n'
        '      "Garden"'
    )
    previous.children[0].children[0].expanded = False
    previous.children[1].expanded = False

    incoming = from_mermaid(to_mermaid(previous))
    reconcile_expanded(previous, incoming)

    assert [node.expanded for node in incoming.walk()] == [
        node.expanded for node in previous.walk()
    ]


def test_no_previous_tree_is_a_no_op() -> None:
    incoming = MindNode("Root", children=[MindNode("A")])

    assert reconcile_expanded(None, incoming) is incoming
    assert all(node.expanded for node in incoming.walk())


def test_capture_expand_state() -> None:
    root = MindNode("Root", id="root", children=[MindNode("A", id="a", expanded=False)])

    by_id, by_topic = capture_expand_state(root)

    assert by_id == {"root": True, "a": False}
    assert by_topic == {"Root": True, "A": False}
