from __future__ import annotations

import random

from domain.errors import UnknownNode
from domain.layout_config import LayoutConfig
from domain.models import (
    SINK_NODE_ID,
    DecisionEdge,
    DecisionGraph,
    DecisionNode,
    initial_graph,
)
from domain.services.forest import is_in_sink_subtree


def edge_id_for(source: str, target: str) -> str:
    return f"edge-{source}-{target}"


class DecisionTreeEditor:
    def __init__(
        self,
        config: LayoutConfig | None = None,
        rng: random.Random | None = None,
        sink_id: str = SINK_NODE_ID,
    ) -> None:
        self.config = config or LayoutConfig()
        self.rng = rng or random.Random()
        self.sink_id = sink_id
        self._counter = 1

    def reset(self) -> DecisionGraph:
        self._counter = 1
        return initial_graph(self.config.default_expanded_height)

    def add_child(
        self,
        graph: DecisionGraph,
        parent_id: str,
        label: str | None = None,
        height: float | None = None,
    ) -> tuple[DecisionGraph, str]:
        parent = graph.find_node(parent_id)
        if parent is None:
            raise UnknownNode(parent_id)

        new_id = self._next_node_id(graph)
        counter = self._counter
        self._counter += 1
        if height is None:
            height = float(
                self.rng.randint(self.config.min_random_height, self.config.max_random_height)
            )
        node = DecisionNode(
            id=new_id,
            label=label or f"{parent.label or parent.id} -> Node {counter}",
            width=self.config.default_width,
            height=height,
            original_height=height,
        )

        edges = list(graph.edges)
        child_edge = DecisionEdge(
            id=edge_id_for(parent_id, new_id), source=parent_id, target=new_id
        )
        if is_in_sink_subtree(graph, parent_id, self.sink_id):
            edges.append(child_edge)
        else:
            edges = [
                edge
                for edge in edges
                if not (edge.source == parent_id and edge.target == self.sink_id)
            ]
            edges.append(child_edge)
            edges.append(
                DecisionEdge(
                    id=edge_id_for(new_id, self.sink_id), source=new_id, target=self.sink_id
                )
            )
        return DecisionGraph(nodes=[*graph.nodes, node], edges=edges), new_id

    def collapse(self, graph: DecisionGraph, node_id: str) -> DecisionGraph:
        node = self._require(graph, node_id)
        remembered = node.original_height or node.height or self.config.default_expanded_height
        return self._replace(
            graph,
            node.model_copy(
                update={"height": self.config.collapsed_height, "original_height": remembered}
            ),
        )

    def expand(self, graph: DecisionGraph, node_id: str) -> DecisionGraph:
        node = self._require(graph, node_id)
        restored = node.original_height or self.config.default_expanded_height
        return self._replace(
            graph, node.model_copy(update={"height": restored, "original_height": restored})
        )

    def _next_node_id(self, graph: DecisionGraph) -> str:
        existing = set(graph.node_ids())
        while f"node-{self._counter}" in existing:
            self._counter += 1
        return f"node-{self._counter}"

    def _require(self, graph: DecisionGraph, node_id: str) -> DecisionNode:
        node = graph.find_node(node_id)
        if node is None:
            raise UnknownNode(node_id)
        return node

    def _replace(self, graph: DecisionGraph, updated: DecisionNode) -> DecisionGraph:
        nodes = [updated if node.id == updated.id else node for node in graph.nodes]
        return DecisionGraph(nodes=nodes, edges=list(graph.edges))
