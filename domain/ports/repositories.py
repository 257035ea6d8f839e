from __future__ import annotations

from pathlib import Path
from typing import Protocol

from domain.models import DecisionGraph, LayoutPlan


class GraphRepository(Protocol):
    def load(self, path: Path) -> DecisionGraph: ...

    def save(self, graph: DecisionGraph, path: Path) -> None: ...

    def save_plan(self, plan: LayoutPlan, path: Path) -> None: ...
