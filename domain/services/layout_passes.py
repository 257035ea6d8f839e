from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from domain.models import DecisionEdge, NodePlacement
from domain.services.tree_structure import (
    build_tree_structure,
    collect_descendants,
    compute_depths,
    post_order,
)

Placements = Mapping[str, NodePlacement]


def _children_map(
    placements: Placements, edges: Iterable[DecisionEdge]
) -> dict[str, list[str]]:
    structure = build_tree_structure(list(placements.keys()), edges)
    return structure.children


def _present(placements: Placements, node_ids: Sequence[str]) -> list[NodePlacement]:
    return [placements[node_id] for node_id in node_ids if node_id in placements]


def align_siblings(
    placements: Placements, edges: Iterable[DecisionEdge]
) -> dict[str, NodePlacement]:
    aligned = dict(placements)
    for children in _children_map(placements, edges).values():
        siblings = _present(aligned, children)
        if len(siblings) < 2:
            continue
        top_y = min(sibling.position.y for sibling in siblings)
        for sibling in siblings:
            aligned[sibling.node_id] = sibling.moved_to(y=top_y)
    return aligned


def center_parents(
    placements: Placements, edges: Iterable[DecisionEdge]
) -> dict[str, NodePlacement]:
    centered = dict(placements)
    children_map = _children_map(placements, edges)
    depths = compute_depths(children_map)
    # Parents of leaves first, ancestors last.
    parents = sorted(
        (parent for parent, children in children_map.items() if children),
        key=lambda parent: depths.get(parent, 0),
    )
    for parent_id in parents:
        parent = centered.get(parent_id)
        children = _present(centered, children_map[parent_id])
        if parent is None or not children:
            continue
        left = min(child.position.x for child in children)
        right = max(child.right for child in children)
        center = (left + right) / 2
        centered[parent_id] = parent.moved_to(x=center - parent.size.width / 2)
    return centered


def correct_skew(
    placements: Placements,
    edges: Iterable[DecisionEdge],
    excluded_roots: Iterable[str] = (),
) -> dict[str, NodePlacement]:
    corrected = dict(placements)
    structure = build_tree_structure(list(placements.keys()), edges)
    for root_id in structure.roots(excluded=excluded_roots):
        root = corrected.get(root_id)
        descendants = _present(corrected, collect_descendants(structure.children, root_id))
        if root is None or not descendants:
            continue
        box_min = min(node.position.x for node in descendants)
        box_max = max(node.right for node in descendants)
        corrected[root_id] = root.moved_to(x=(box_min + box_max) / 2 - root.size.width / 2)
    return corrected


def constrain_distances(
    placements: Placements,
    edges: Iterable[DecisionEdge],
    max_gap: float,
) -> dict[str, NodePlacement]:
    constrained = dict(placements)
    edge_list = list(edges)
    structure = build_tree_structure(list(placements.keys()), edge_list)
    order = {
        node_id: idx
        for idx, node_id in enumerate(reversed(post_order(structure.children, structure.roots())))
    }
    # Parents settle before their children so a later move never reopens a gap.
    edge_list.sort(key=lambda edge: order.get(edge.source, len(order)))
    for edge in edge_list:
        parent = constrained.get(edge.source)
        child = constrained.get(edge.target)
        if parent is None or child is None:
            continue
        if child.position.y - parent.bottom > max_gap:
            constrained[edge.target] = child.moved_to(y=parent.bottom + max_gap)
    return constrained
