from __future__ import annotations

import random

import pytest

from domain.errors import UnknownNode
from domain.layout_config import LayoutConfig
from domain.models import ROOT_NODE_ID, SINK_NODE_ID
from domain.services.graph_mutations import DecisionTreeEditor


def _pairs(graph) -> set[tuple[str, str]]:
    return {(edge.source, edge.target) for edge in graph.edges}


def test_reset_builds_two_node_graph(editor: DecisionTreeEditor) -> None:
    graph = editor.reset()

    assert graph.node_ids() == [ROOT_NODE_ID, SINK_NODE_ID]
    assert _pairs(graph) == {(ROOT_NODE_ID, SINK_NODE_ID)}
    assert all(node.height == 500 and node.width == 500 for node in graph.nodes)


def test_main_tree_child_is_routed_to_sink(editor: DecisionTreeEditor) -> None:
    graph = editor.reset()

    graph, new_id = editor.add_child(graph, ROOT_NODE_ID)

    assert new_id == "node-1"
    assert _pairs(graph) == {(ROOT_NODE_ID, "node-1"), ("node-1", SINK_NODE_ID)}
    assert [edge.id for edge in graph.edges] == ["edge-root-node-1", "edge-node-1-end-node"]
    node = graph.find_node(new_id)
    assert node is not None
    assert node.label == "Root -> Node 1"
    assert 200 <= (node.height or 0) <= 500
    assert node.original_height == node.height


def test_extending_a_leaf_moves_its_sink_edge(editor: DecisionTreeEditor) -> None:
    graph = editor.reset()
    graph, first = editor.add_child(graph, ROOT_NODE_ID)
    graph, second = editor.add_child(graph, ROOT_NODE_ID)
    graph, grandchild = editor.add_child(graph, first)

    pairs = _pairs(graph)
    assert (first, SINK_NODE_ID) not in pairs
    assert (first, grandchild) in pairs
    assert (grandchild, SINK_NODE_ID) in pairs
    assert (second, SINK_NODE_ID) in pairs
    assert graph.find_node(grandchild).label == "Root -> Node 1 -> Node 3"


def test_sink_subtree_grows_without_edges_back(editor: DecisionTreeEditor) -> None:
    graph = editor.reset()
    graph, child = editor.add_child(graph, SINK_NODE_ID)
    graph, grandchild = editor.add_child(graph, child)

    pairs = _pairs(graph)
    assert (SINK_NODE_ID, child) in pairs
    assert (child, grandchild) in pairs
    assert (child, SINK_NODE_ID) not in pairs
    assert (grandchild, SINK_NODE_ID) not in pairs
    assert (ROOT_NODE_ID, SINK_NODE_ID) in pairs


def test_unknown_parent_raises(editor: DecisionTreeEditor) -> None:
    with pytest.raises(UnknownNode):
        editor.add_child(editor.reset(), "missing")


def test_random_height_is_seeded() -> None:
    heights = []
    for _ in range(2):
        editor = DecisionTreeEditor(LayoutConfig(), rng=random.Random(42))
        graph, new_id = editor.add_child(editor.reset(), ROOT_NODE_ID)
        heights.append(graph.find_node(new_id).height)

    assert heights[0] == heights[1]


def test_new_ids_skip_existing_nodes(editor: DecisionTreeEditor) -> None:
    graph, _ = editor.add_child(editor.reset(), ROOT_NODE_ID, label="first")
    fresh = DecisionTreeEditor(LayoutConfig(), rng=random.Random(1))

    graph, new_id = fresh.add_child(graph, ROOT_NODE_ID)

    assert new_id == "node-2"


def test_reset_restarts_counter(editor: DecisionTreeEditor) -> None:
    editor.add_child(editor.reset(), ROOT_NODE_ID)

    _, new_id = editor.add_child(editor.reset(), ROOT_NODE_ID)

    assert new_id == "node-1"


def test_collapse_then_expand_restores_height(editor: DecisionTreeEditor) -> None:
    graph, node_id = editor.add_child(editor.reset(), ROOT_NODE_ID, height=400)

    collapsed = editor.collapse(graph, node_id)
    collapsed_twice = editor.collapse(collapsed, node_id)
    expanded = editor.expand(collapsed_twice, node_id)

    assert collapsed.find_node(node_id).height == 100
    assert collapsed_twice.find_node(node_id).original_height == 400
    assert expanded.find_node(node_id).height == 400
    assert expanded.edges == graph.edges


def test_resize_unknown_node_raises(editor: DecisionTreeEditor) -> None:
    with pytest.raises(UnknownNode):
        editor.collapse(editor.reset(), "missing")
    with pytest.raises(UnknownNode):
        editor.expand(editor.reset(), "missing")
