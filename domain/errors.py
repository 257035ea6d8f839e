from __future__ import annotations


class LayoutError(Exception):
    pass


class InvalidGraph(LayoutError):
    pass


class UnknownNode(LayoutError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Unknown node id: {node_id}")
        self.node_id = node_id


class LayoutDelegateFailed(LayoutError):
    pass
