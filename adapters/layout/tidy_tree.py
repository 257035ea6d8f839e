from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Dict, List

from domain.layout_config import DIRECTION_DOWN
from domain.models import Point
from domain.ports.layout import (
    LayoutEdgeSpec,
    LayoutNodeSpec,
    TreeLayoutDelegate,
    TreeLayoutRequest,
    TreeLayoutResponse,
)
from domain.services.tree_structure import post_order


@dataclass(frozen=True)
class _TreeIndex:
    order: List[str]
    specs: Dict[str, LayoutNodeSpec]
    children: Dict[str, List[str]]
    roots: List[str]


class TidyTreeLayoutDelegate(TreeLayoutDelegate):
    """In-process layered tree layout.

    Rows follow tree depth, each row as tall as its tallest node. Every subtree
    owns a horizontal band as wide as the larger of its root and its children
    packed side by side; the root and the children block are centered in that
    band. Output is fully determined by the request, including node order.
    """

    async def layout(self, request: TreeLayoutRequest) -> TreeLayoutResponse:
        return self.compute(request)

    def compute(self, request: TreeLayoutRequest) -> TreeLayoutResponse:
        if request.options.direction != DIRECTION_DOWN:
            msg = f"Unsupported layout direction: {request.options.direction}"
            raise ValueError(msg)
        if not request.nodes:
            return TreeLayoutResponse(positions={})

        index = self._index(request.nodes, request.edges)
        spacing = request.options.sibling_spacing
        padding = request.options.padding

        depths = self._depths(index)
        row_heights: Dict[int, float] = {}
        for node_id, depth in depths.items():
            height = index.specs[node_id].height
            row_heights[depth] = max(row_heights.get(depth, 0.0), height)
        row_tops: Dict[int, float] = {}
        cursor_y = padding
        for depth in range(max(row_heights) + 1):
            row_tops[depth] = cursor_y
            cursor_y += row_heights.get(depth, 0.0) + spacing

        extents: Dict[str, float] = {}
        for node_id in post_order(index.children, index.roots):
            kids = index.children.get(node_id, [])
            packed = sum(extents[kid] for kid in kids) + spacing * max(len(kids) - 1, 0)
            extents[node_id] = max(index.specs[node_id].width, packed)

        positions: Dict[str, Point] = {}
        cursor_x = padding
        for root in index.roots:
            self._place_subtree(
                root, cursor_x, index, extents, depths, row_tops, spacing, positions
            )
            cursor_x += extents[root] + spacing
        return TreeLayoutResponse(positions=positions)

    def _index(
        self, nodes: Iterable[LayoutNodeSpec], edges: Iterable[LayoutEdgeSpec]
    ) -> _TreeIndex:
        specs = {node.id: node for node in nodes}
        order = list(specs.keys())
        children: Dict[str, List[str]] = {}
        has_parent: set[str] = set()
        for edge in edges:
            if edge.source not in specs or edge.target not in specs:
                continue
            if edge.target in has_parent or edge.target == edge.source:
                continue
            children.setdefault(edge.source, []).append(edge.target)
            has_parent.add(edge.target)
        roots = [node_id for node_id in order if node_id not in has_parent]
        return _TreeIndex(order=order, specs=specs, children=children, roots=roots)

    def _depths(self, index: _TreeIndex) -> Dict[str, int]:
        depths: Dict[str, int] = {}
        frontier = list(index.roots)
        level = 0
        while frontier:
            next_frontier: List[str] = []
            for node_id in frontier:
                if node_id in depths:
                    continue
                depths[node_id] = level
                next_frontier.extend(index.children.get(node_id, []))
            frontier = next_frontier
            level += 1
        for node_id in index.order:
            depths.setdefault(node_id, 0)
        return depths

    def _place_subtree(
        self,
        root: str,
        left: float,
        index: _TreeIndex,
        extents: Dict[str, float],
        depths: Dict[str, int],
        row_tops: Dict[int, float],
        spacing: float,
        positions: Dict[str, Point],
    ) -> None:
        stack = [(root, left)]
        while stack:
            node_id, band_left = stack.pop()
            if node_id in positions:
                continue
            extent = extents[node_id]
            width = index.specs[node_id].width
            positions[node_id] = Point(
                band_left + (extent - width) / 2, row_tops[depths[node_id]]
            )
            kids = index.children.get(node_id, [])
            if not kids:
                continue
            packed = sum(extents[kid] for kid in kids) + spacing * (len(kids) - 1)
            kid_left = band_left + (extent - packed) / 2
            for kid in kids:
                stack.append((kid, kid_left))
                kid_left += extents[kid] + spacing
