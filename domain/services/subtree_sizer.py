from __future__ import annotations

from collections.abc import Iterable, Sequence

from domain.layout_config import LayoutConfig
from domain.models import DecisionEdge
from domain.services.forest import ensure_acyclic
from domain.services.tree_structure import build_tree_structure, post_order


def compute_reserved_widths(
    node_ids: Sequence[str],
    edges: Iterable[DecisionEdge],
    config: LayoutConfig,
) -> dict[str, float]:
    """Horizontal room each node asks of the layout delegate.

    A leaf reserves ``default_width``. A parent reserves the wider of
    ``default_width`` and its children's reserved widths laid side by side
    with ``subtree_sibling_spacing`` between them.
    """
    structure = build_tree_structure(node_ids, edges)
    ensure_acyclic(structure.children)

    widths: dict[str, float] = {}
    for node_id in post_order(structure.children, structure.vertices):
        children = structure.children.get(node_id, [])
        if not children:
            widths[node_id] = config.default_width
            continue
        total = sum(widths[child] for child in children)
        spacing = (len(children) - 1) * config.subtree_sibling_spacing
        widths[node_id] = max(config.default_width, total + spacing)
    return {node_id: widths[node_id] for node_id in node_ids}
