from __future__ import annotations

from collections.abc import Mapping

from domain.models import NodePlacement, Point, Size


def place_sink(
    sink_id: str,
    sink_size: Size,
    main_placements: Mapping[str, NodePlacement],
    vertical_gap: float,
    empty_width: float,
) -> NodePlacement:
    placements = list(main_placements.values())
    if placements:
        min_x = min(node.position.x for node in placements)
        max_x = max(node.right for node in placements)
        max_y = max(node.bottom for node in placements)
    else:
        min_x, max_x, max_y = 0.0, empty_width, 0.0
    return NodePlacement(
        node_id=sink_id,
        position=Point((min_x + max_x) / 2 - sink_size.width / 2, max_y + vertical_gap),
        size=sink_size,
    )


def anchor_sink_subtree(
    sub_placements: Mapping[str, NodePlacement],
    sink: NodePlacement,
    origin: Point,
) -> dict[str, NodePlacement]:
    """Translate an independently laid-out sink subtree onto the fixed sink.

    ``origin`` is where the delegate put the sink in the sub-layout; the offset
    from it to the fixed sink moves every descendant. The sub-layout's own copy
    of the sink is dropped, only the sink's descendants are returned.
    """
    dx = sink.position.x - origin.x
    dy = sink.position.y - origin.y
    return {
        node_id: placement.translated(dx, dy)
        for node_id, placement in sub_placements.items()
        if node_id != sink.node_id
    }
