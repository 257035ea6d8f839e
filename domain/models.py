from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

SINK_NODE_ID = "end-node"
ROOT_NODE_ID = "root"
EDGE_HANDLE_BOTTOM = "bottom"
EDGE_HANDLE_TOP = "top"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


class DecisionNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = ""
    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    original_height: Optional[float] = Field(default=None, gt=0)
    position: Point = Point(0.0, 0.0)


class DecisionEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)


class DecisionGraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: List[DecisionNode] = Field(default_factory=list)
    edges: List[DecisionEdge] = Field(default_factory=list)

    @field_validator("nodes", mode="after")
    @classmethod
    def ensure_unique_node_ids(cls, nodes: List[DecisionNode]) -> List[DecisionNode]:
        seen: Set[str] = set()
        for node in nodes:
            if node.id in seen:
                msg = f"Duplicate node id found: {node.id}"
                raise ValueError(msg)
            seen.add(node.id)
        return nodes

    @field_validator("edges", mode="after")
    @classmethod
    def ensure_unique_edge_ids(cls, edges: List[DecisionEdge]) -> List[DecisionEdge]:
        seen: Set[str] = set()
        for edge in edges:
            if edge.id in seen:
                msg = f"Duplicate edge id found: {edge.id}"
                raise ValueError(msg)
            seen.add(edge.id)
        return edges

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def find_node(self, node_id: str) -> DecisionNode | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class NodePlacement:
    node_id: str
    position: Point
    size: Size

    @property
    def right(self) -> float:
        return self.position.x + self.size.width

    @property
    def bottom(self) -> float:
        return self.position.y + self.size.height

    def moved_to(self, x: float | None = None, y: float | None = None) -> NodePlacement:
        return NodePlacement(
            node_id=self.node_id,
            position=Point(
                self.position.x if x is None else x,
                self.position.y if y is None else y,
            ),
            size=self.size,
        )

    def translated(self, dx: float, dy: float) -> NodePlacement:
        return self.moved_to(self.position.x + dx, self.position.y + dy)


@dataclass(frozen=True)
class RenderedNode:
    id: str
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class EdgeRoute:
    id: str
    source: str
    target: str
    source_handle: str = EDGE_HANDLE_BOTTOM
    target_handle: str = EDGE_HANDLE_TOP

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
        }


@dataclass(frozen=True)
class LayoutPlan:
    nodes: List[RenderedNode]
    edges: List[EdgeRoute]

    def node(self, node_id: str) -> RenderedNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def positions(self) -> dict[str, Point]:
        return {node.id: Point(node.x, node.y) for node in self.nodes}

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


def initial_graph(default_size: float = 500.0) -> DecisionGraph:
    return DecisionGraph(
        nodes=[
            DecisionNode(
                id=ROOT_NODE_ID,
                label="Root",
                width=default_size,
                height=default_size,
                original_height=default_size,
            ),
            DecisionNode(
                id=SINK_NODE_ID,
                label="End",
                width=default_size,
                height=default_size,
                original_height=default_size,
            ),
        ],
        edges=[DecisionEdge(id="root-to-end", source=ROOT_NODE_ID, target=SINK_NODE_ID)],
    )
