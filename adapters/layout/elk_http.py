from __future__ import annotations

from typing import Any

import httpx
import orjson

from domain.errors import LayoutDelegateFailed
from domain.models import Point
from domain.ports.layout import (
    TreeLayoutDelegate,
    TreeLayoutOptions,
    TreeLayoutRequest,
    TreeLayoutResponse,
)

ELK_ALGORITHM = "mrtree"


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_elk_options(options: TreeLayoutOptions, algorithm: str = ELK_ALGORITHM) -> dict[str, str]:
    padding = _format_number(options.padding)
    return {
        "elk.algorithm": algorithm,
        "elk.direction": options.direction,
        "elk.spacing.nodeNode": _format_number(options.sibling_spacing),
        "elk.spacing.edgeNode": _format_number(options.edge_node_spacing),
        "elk.spacing.edgeEdge": _format_number(options.edge_edge_spacing),
        "elk.mrtree.compaction": "true",
        "elk.mrtree.edgeRoutingMode": "AVOID_OVERLAP",
        "elk.padding": f"[top={padding},left={padding},bottom={padding},right={padding}]",
    }


def build_elk_graph(request: TreeLayoutRequest, algorithm: str = ELK_ALGORITHM) -> dict[str, Any]:
    return {
        "id": request.graph_id,
        "layoutOptions": build_elk_options(request.options, algorithm),
        "children": [
            {"id": node.id, "width": node.width, "height": node.height} for node in request.nodes
        ],
        "edges": [
            {"id": edge.id, "sources": [edge.source], "targets": [edge.target]}
            for edge in request.edges
        ],
    }


def parse_elk_layout(payload: Any) -> TreeLayoutResponse:
    if not isinstance(payload, dict):
        msg = "ELK layout response must be a JSON object"
        raise LayoutDelegateFailed(msg)
    children = payload.get("children") or []
    if not isinstance(children, list):
        msg = "ELK layout response 'children' must be a list"
        raise LayoutDelegateFailed(msg)

    positions: dict[str, Point] = {}
    for child in children:
        if not isinstance(child, dict) or not child.get("id"):
            continue
        x, y = _coordinate(child.get("x")), _coordinate(child.get("y"))
        positions[str(child["id"])] = Point(x, y)
    return TreeLayoutResponse(positions=positions)


def _coordinate(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


class ElkHttpLayoutDelegate(TreeLayoutDelegate):
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        algorithm: str = ELK_ALGORITHM,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.algorithm = algorithm
        self._client = client

    @property
    def layout_url(self) -> str:
        return f"{self.base_url}/layout"

    async def layout(self, request: TreeLayoutRequest) -> TreeLayoutResponse:
        body = orjson.dumps(build_elk_graph(request, self.algorithm))
        headers = {"Content-Type": "application/json"}
        try:
            if self._client is not None:
                resp = await self._client.post(self.layout_url, content=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    resp = await client.post(self.layout_url, content=body, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"ELK layout request for {request.graph_id} failed: {exc}"
            raise LayoutDelegateFailed(msg) from exc

        try:
            payload = orjson.loads(resp.content)
        except orjson.JSONDecodeError as exc:
            msg = f"ELK layout response for {request.graph_id} is not valid JSON"
            raise LayoutDelegateFailed(msg) from exc
        return parse_elk_layout(payload)
