from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from domain.models import DecisionEdge


@dataclass(frozen=True)
class TreeStructure:
    vertices: list[str]
    children: dict[str, list[str]]
    parents: dict[str, list[str]]

    def roots(self, excluded: Iterable[str] = ()) -> list[str]:
        skip = set(excluded)
        return [node for node in self.vertices if not self.parents.get(node) and node not in skip]


def build_tree_structure(
    vertices: Sequence[str],
    edges: Iterable[DecisionEdge],
) -> TreeStructure:
    children: dict[str, list[str]] = {}
    parents: dict[str, list[str]] = {}
    ordered: list[str] = list(vertices)
    known: set[str] = set(ordered)
    for edge in edges:
        for node_id in (edge.source, edge.target):
            if node_id not in known:
                known.add(node_id)
                ordered.append(node_id)
        children.setdefault(edge.source, []).append(edge.target)
        parents.setdefault(edge.target, []).append(edge.source)
    return TreeStructure(vertices=ordered, children=children, parents=parents)


def find_cycle_path(adjacency: Mapping[str, Sequence[str]]) -> list[str] | None:
    color: dict[str, int] = {}
    nodes = list(adjacency.keys())
    for start in nodes:
        if color.get(start, 0) != 0:
            continue
        path: list[str] = [start]
        iterators = [iter(adjacency.get(start, []))]
        color[start] = 1
        while iterators:
            neighbor = next(iterators[-1], None)
            if neighbor is None:
                color[path.pop()] = 2
                iterators.pop()
                continue
            state = color.get(neighbor, 0)
            if state == 1:
                idx = path.index(neighbor)
                return path[idx:] + [neighbor]
            if state == 0:
                color[neighbor] = 1
                path.append(neighbor)
                iterators.append(iter(adjacency.get(neighbor, [])))
    return None


def collect_descendants(adjacency: Mapping[str, Sequence[str]], root: str) -> list[str]:
    descendants: list[str] = []
    visited: set[str] = {root}
    stack = list(reversed(adjacency.get(root, [])))
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        descendants.append(node)
        stack.extend(child for child in reversed(adjacency.get(node, [])) if child not in visited)
    return descendants


def post_order(adjacency: Mapping[str, Sequence[str]], roots: Iterable[str]) -> list[str]:
    order: list[str] = []
    visited: set[str] = set()
    for root in roots:
        if root in visited:
            continue
        visited.add(root)
        stack: list[tuple[str, bool]] = [(root, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                order.append(node)
                continue
            stack.append((node, True))
            for child in reversed(adjacency.get(node, [])):
                if child not in visited:
                    visited.add(child)
                    stack.append((child, False))
    return order


def compute_depths(adjacency: Mapping[str, Sequence[str]]) -> dict[str, int]:
    depths: dict[str, int] = {}
    for node in post_order(adjacency, list(adjacency.keys())):
        child_depths = [depths[child] for child in adjacency.get(node, []) if child in depths]
        depths[node] = 1 + max(child_depths) if child_depths else 0
    return depths
