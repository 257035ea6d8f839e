from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from domain.layout_config import DIRECTION_DOWN, LayoutConfig
from domain.models import Point


@dataclass(frozen=True)
class LayoutNodeSpec:
    id: str
    width: float
    height: float


@dataclass(frozen=True)
class LayoutEdgeSpec:
    id: str
    source: str
    target: str


@dataclass(frozen=True)
class TreeLayoutOptions:
    direction: str = DIRECTION_DOWN
    sibling_spacing: float = 50.0
    edge_node_spacing: float = 30.0
    edge_edge_spacing: float = 10.0
    padding: float = 50.0

    @classmethod
    def from_config(cls, config: LayoutConfig) -> TreeLayoutOptions:
        return cls(
            direction=config.direction,
            sibling_spacing=config.node_spacing,
            edge_node_spacing=config.edge_node_spacing,
            edge_edge_spacing=config.edge_edge_spacing,
            padding=config.padding,
        )


@dataclass(frozen=True)
class TreeLayoutRequest:
    graph_id: str
    nodes: list[LayoutNodeSpec]
    edges: list[LayoutEdgeSpec]
    options: TreeLayoutOptions = field(default_factory=TreeLayoutOptions)


@dataclass(frozen=True)
class TreeLayoutResponse:
    positions: dict[str, Point]

    def position_of(self, node_id: str) -> Point:
        return self.positions.get(node_id, Point(0.0, 0.0))


class TreeLayoutDelegate(Protocol):
    async def layout(self, request: TreeLayoutRequest) -> TreeLayoutResponse: ...
