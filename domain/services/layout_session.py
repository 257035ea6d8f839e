from __future__ import annotations

import logging

from domain.models import DecisionGraph, LayoutPlan
from domain.services.graph_mutations import DecisionTreeEditor
from domain.services.layout_pipeline import LayoutOutcome, LayoutPipeline

logger = logging.getLogger(__name__)


class LayoutSession:
    """Current graph snapshot plus the last layout that was applied to it.

    Every mutation replaces the snapshot and triggers a full recompute. Each
    recompute takes a sequence number; a result is applied only while its number
    is still the latest one issued, so a slow delegate call that resolves after a
    newer request is dropped instead of overwriting fresher positions.
    """

    def __init__(
        self,
        pipeline: LayoutPipeline,
        editor: DecisionTreeEditor | None = None,
        graph: DecisionGraph | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.editor = editor or DecisionTreeEditor(pipeline.config, sink_id=pipeline.sink_id)
        self._graph = graph if graph is not None else self.editor.reset()
        self._plan: LayoutPlan | None = None
        self._sequence = 0

    @property
    def graph(self) -> DecisionGraph:
        return self._graph

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def plan(self) -> LayoutPlan:
        if self._plan is None:
            return self.pipeline.input_plan(self._graph)
        return self._plan

    async def recompute(self) -> LayoutOutcome:
        self._sequence += 1
        ticket = self._sequence
        outcome = await self.pipeline.run(self._graph)
        if ticket != self._sequence:
            logger.debug("Dropping stale layout #%s, latest is #%s.", ticket, self._sequence)
            return LayoutOutcome(status="stale", plan=self.plan)
        if outcome.ok:
            self._plan = outcome.plan
            self._graph = apply_positions(self._graph, outcome.plan)
        return outcome

    async def replace_graph(self, graph: DecisionGraph) -> LayoutOutcome:
        self._graph = graph
        return await self.recompute()

    async def add_child(
        self,
        parent_id: str,
        label: str | None = None,
        height: float | None = None,
    ) -> tuple[str, LayoutOutcome]:
        graph, new_id = self.editor.add_child(self._graph, parent_id, label=label, height=height)
        return new_id, await self.replace_graph(graph)

    async def collapse(self, node_id: str) -> LayoutOutcome:
        return await self.replace_graph(self.editor.collapse(self._graph, node_id))

    async def expand(self, node_id: str) -> LayoutOutcome:
        return await self.replace_graph(self.editor.expand(self._graph, node_id))

    async def reset(self) -> LayoutOutcome:
        return await self.replace_graph(self.editor.reset())


def apply_positions(graph: DecisionGraph, plan: LayoutPlan) -> DecisionGraph:
    positions = plan.positions()
    nodes = [
        node.model_copy(update={"position": positions[node.id]}) if node.id in positions else node
        for node in graph.nodes
    ]
    return DecisionGraph(nodes=nodes, edges=list(graph.edges))
