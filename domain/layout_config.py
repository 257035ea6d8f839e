from __future__ import annotations

from dataclasses import dataclass

from domain.models import DecisionNode, Size

DIRECTION_DOWN = "DOWN"


@dataclass(frozen=True)
class LayoutConfig:
    default_width: float = 500.0
    default_height: float = 300.0
    subtree_sibling_spacing: float = 100.0
    node_spacing: float = 50.0
    edge_node_spacing: float = 30.0
    edge_edge_spacing: float = 10.0
    padding: float = 50.0
    direction: str = DIRECTION_DOWN
    max_vertical_gap: float = 50.0
    sink_vertical_gap: float = 100.0
    collapsed_height: float = 100.0
    default_expanded_height: float = 500.0
    min_random_height: int = 200
    max_random_height: int = 500


def resolve_node_size(node: DecisionNode, config: LayoutConfig) -> Size:
    """Single place where missing node sizes are replaced with defaults.

    ``width`` falls back to ``config.default_width`` and ``height`` to
    ``config.default_height``. Passes downstream only ever see resolved sizes.
    """
    width = node.width if node.width is not None else config.default_width
    height = node.height if node.height is not None else config.default_height
    return Size(width, height)
