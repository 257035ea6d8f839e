from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from domain.errors import InvalidGraph, LayoutDelegateFailed
from domain.layout_config import LayoutConfig, resolve_node_size
from domain.models import (
    SINK_NODE_ID,
    DecisionEdge,
    DecisionGraph,
    EdgeRoute,
    LayoutPlan,
    NodePlacement,
    RenderedNode,
    Size,
)
from domain.ports.layout import (
    LayoutEdgeSpec,
    LayoutNodeSpec,
    TreeLayoutDelegate,
    TreeLayoutOptions,
    TreeLayoutRequest,
    TreeLayoutResponse,
)
from domain.services.forest import decompose_forest
from domain.services.layout_passes import (
    align_siblings,
    center_parents,
    constrain_distances,
    correct_skew,
)
from domain.services.sink_placement import anchor_sink_subtree, place_sink
from domain.services.subtree_sizer import compute_reserved_widths

logger = logging.getLogger(__name__)

MAIN_TREE_GRAPH_ID = "main-root"
SINK_SUBTREE_GRAPH_ID = "output-root"

LayoutStatus = Literal["ok", "invalid_graph", "delegate_failed", "stale"]


@dataclass(frozen=True)
class LayoutOutcome:
    status: LayoutStatus
    plan: LayoutPlan
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status, "error": self.error, **self.plan.to_dict()}


class LayoutPipeline:
    def __init__(
        self,
        delegate: TreeLayoutDelegate,
        config: LayoutConfig | None = None,
        sink_id: str = SINK_NODE_ID,
    ) -> None:
        self.delegate = delegate
        self.config = config or LayoutConfig()
        self.sink_id = sink_id

    async def run(self, graph: DecisionGraph) -> LayoutOutcome:
        try:
            plan = await self.compute(graph)
        except InvalidGraph as exc:
            logger.warning("Layout aborted on invalid graph: %s", exc)
            return LayoutOutcome(
                status="invalid_graph", plan=self.input_plan(graph), error=str(exc)
            )
        except LayoutDelegateFailed as exc:
            logger.exception("Tree layout delegate failed.")
            return LayoutOutcome(
                status="delegate_failed", plan=self.input_plan(graph), error=str(exc)
            )
        return LayoutOutcome(status="ok", plan=plan)

    async def compute(self, graph: DecisionGraph) -> LayoutPlan:
        forest = decompose_forest(graph, self.sink_id)
        sizes = {node.id: resolve_node_size(node, self.config) for node in graph.nodes}

        placements, _ = await self._layout_tree(
            MAIN_TREE_GRAPH_ID,
            [node.id for node in forest.main_tree_nodes],
            forest.main_tree_edges,
            sizes,
        )
        if forest.sink is not None:
            sink = place_sink(
                self.sink_id,
                sizes[self.sink_id],
                placements,
                vertical_gap=self.config.sink_vertical_gap,
                empty_width=self.config.default_width,
            )
            sink_subtree: dict[str, NodePlacement] = {}
            if forest.sink_subtree_nodes:
                sub_placements, sub_response = await self._layout_tree(
                    SINK_SUBTREE_GRAPH_ID,
                    [self.sink_id, *(node.id for node in forest.sink_subtree_nodes)],
                    forest.sink_subtree_edges,
                    sizes,
                )
                sink_subtree = anchor_sink_subtree(
                    sub_placements, sink, sub_response.position_of(self.sink_id)
                )
            placements[self.sink_id] = sink
            placements.update(sink_subtree)
        return self._build_plan(graph, placements)

    def input_plan(self, graph: DecisionGraph) -> LayoutPlan:
        placements = {
            node.id: NodePlacement(
                node_id=node.id,
                position=node.position,
                size=resolve_node_size(node, self.config),
            )
            for node in graph.nodes
        }
        return self._build_plan(graph, placements)

    async def _layout_tree(
        self,
        graph_id: str,
        node_ids: Sequence[str],
        edges: Sequence[DecisionEdge],
        sizes: dict[str, Size],
    ) -> tuple[dict[str, NodePlacement], TreeLayoutResponse]:
        if not node_ids:
            return {}, TreeLayoutResponse(positions={})
        reserved = compute_reserved_widths(node_ids, edges, self.config)
        request = TreeLayoutRequest(
            graph_id=graph_id,
            nodes=[
                LayoutNodeSpec(id=node_id, width=reserved[node_id], height=sizes[node_id].height)
                for node_id in node_ids
            ],
            edges=[
                LayoutEdgeSpec(id=edge.id, source=edge.source, target=edge.target)
                for edge in edges
            ],
            options=TreeLayoutOptions.from_config(self.config),
        )
        response = await self._call_delegate(request)

        placements = {
            node_id: NodePlacement(
                node_id=node_id,
                position=response.position_of(node_id),
                size=sizes[node_id],
            )
            for node_id in node_ids
        }
        # Pass order is fixed.
        placements = align_siblings(placements, edges)
        placements = center_parents(placements, edges)
        placements = correct_skew(placements, edges, excluded_roots=(self.sink_id,))
        return constrain_distances(placements, edges, self.config.max_vertical_gap), response

    async def _call_delegate(self, request: TreeLayoutRequest) -> TreeLayoutResponse:
        try:
            return await self.delegate.layout(request)
        except LayoutDelegateFailed:
            raise
        except Exception as exc:
            msg = f"Tree layout delegate failed for {request.graph_id}: {exc}"
            raise LayoutDelegateFailed(msg) from exc

    def _build_plan(
        self, graph: DecisionGraph, placements: dict[str, NodePlacement]
    ) -> LayoutPlan:
        nodes = [
            RenderedNode(
                id=placement.node_id,
                x=placement.position.x,
                y=placement.position.y,
                width=placement.size.width,
                height=placement.size.height,
            )
            for placement in placements.values()
        ]
        edges = [
            EdgeRoute(id=edge.id, source=edge.source, target=edge.target) for edge in graph.edges
        ]
        return LayoutPlan(nodes=nodes, edges=edges)
