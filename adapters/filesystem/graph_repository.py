from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

from domain.models import DecisionGraph, LayoutPlan
from domain.ports.repositories import GraphRepository

JSON_WRITE_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE


class FileSystemGraphRepository(GraphRepository):
    def load(self, path: Path) -> DecisionGraph:
        data = orjson.loads(path.read_bytes())
        if not isinstance(data, dict):
            msg = f"Expected a JSON object in {path}"
            raise ValueError(msg)
        return DecisionGraph.model_validate(data)

    def save(self, graph: DecisionGraph, path: Path) -> None:
        self._write(path, graph.to_dict())

    def save_plan(self, plan: LayoutPlan, path: Path) -> None:
        self._write(path, plan.to_dict())

    @staticmethod
    def _write(path: Path, payload: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f".{path.name}.tmp")
        staging.write_bytes(orjson.dumps(payload, option=JSON_WRITE_OPTIONS))
        staging.replace(path)
