from __future__ import annotations

from dataclasses import dataclass

from domain.errors import InvalidGraph
from domain.models import SINK_NODE_ID, DecisionEdge, DecisionGraph, DecisionNode
from domain.services.tree_structure import (
    build_tree_structure,
    collect_descendants,
    find_cycle_path,
)


@dataclass(frozen=True)
class ForestDecomposition:
    sink: DecisionNode | None
    sink_subtree_ids: set[str]
    main_tree_nodes: list[DecisionNode]
    main_tree_edges: list[DecisionEdge]
    sink_subtree_nodes: list[DecisionNode]
    sink_subtree_edges: list[DecisionEdge]


def decompose_forest(graph: DecisionGraph, sink_id: str = SINK_NODE_ID) -> ForestDecomposition:
    validate_forest(graph, sink_id)

    structure = build_tree_structure(graph.node_ids(), graph.edges)
    sink_subtree_ids = set(collect_descendants(structure.children, sink_id))
    sink_subtree_ids.discard(sink_id)
    excluded = sink_subtree_ids | {sink_id}

    main_tree_nodes = [node for node in graph.nodes if node.id not in excluded]
    main_tree_edges = [
        edge
        for edge in graph.edges
        if edge.source not in excluded and edge.target not in excluded
    ]
    sink_subtree_nodes = [node for node in graph.nodes if node.id in sink_subtree_ids]
    sink_subtree_edges = [
        edge
        for edge in graph.edges
        if (edge.source == sink_id and edge.target != sink_id)
        or (edge.source in sink_subtree_ids and edge.target in sink_subtree_ids)
    ]
    return ForestDecomposition(
        sink=graph.find_node(sink_id),
        sink_subtree_ids=sink_subtree_ids,
        main_tree_nodes=main_tree_nodes,
        main_tree_edges=main_tree_edges,
        sink_subtree_nodes=sink_subtree_nodes,
        sink_subtree_edges=sink_subtree_edges,
    )


def validate_forest(graph: DecisionGraph, sink_id: str = SINK_NODE_ID) -> None:
    known = set(graph.node_ids())
    for edge in graph.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in known:
                msg = f"Edge {edge.id} references unknown node id: {endpoint}"
                raise InvalidGraph(msg)

    structural = [edge for edge in graph.edges if edge.target != sink_id]
    parents: dict[str, str] = {}
    for edge in structural:
        previous = parents.get(edge.target)
        if previous is not None:
            msg = (
                f"Node {edge.target} has more than one structural parent: "
                f"{previous}, {edge.source}"
            )
            raise InvalidGraph(msg)
        parents[edge.target] = edge.source

    ensure_acyclic(build_tree_structure(graph.node_ids(), structural).children)


def ensure_acyclic(children: dict[str, list[str]]) -> None:
    cycle = find_cycle_path(children)
    if cycle is not None:
        msg = f"Structural cycle detected: {' -> '.join(cycle)}"
        raise InvalidGraph(msg)


def is_in_sink_subtree(graph: DecisionGraph, node_id: str, sink_id: str = SINK_NODE_ID) -> bool:
    if node_id == sink_id:
        return True
    structure = build_tree_structure(graph.node_ids(), graph.edges)
    return node_id in collect_descendants(structure.children, sink_id)
