from __future__ import annotations

import asyncio
from pathlib import Path

import orjson
import pytest

from adapters.filesystem.graph_repository import FileSystemGraphRepository
from domain.models import SINK_NODE_ID, initial_graph
from domain.services.layout_pipeline import LayoutPipeline


def test_saved_graph_loads_back(tmp_path: Path) -> None:
    repo = FileSystemGraphRepository()
    graph = initial_graph()
    path = tmp_path / "nested" / "graph.json"

    repo.save(graph, path)

    assert repo.load(path) == graph
    assert not list(path.parent.glob("*.tmp"))


def test_plan_is_written_with_handles(tmp_path: Path, pipeline: LayoutPipeline) -> None:
    outcome = asyncio.run(pipeline.run(initial_graph()))
    path = tmp_path / "plan.json"

    FileSystemGraphRepository().save_plan(outcome.plan, path)

    payload = orjson.loads(path.read_bytes())
    assert {node["id"] for node in payload["nodes"]} == {"root", SINK_NODE_ID}
    assert payload["edges"][0]["sourceHandle"] == "bottom"


def test_non_object_json_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "graph.json"
    path.write_bytes(b"[]")

    with pytest.raises(ValueError, match="Expected a JSON object"):
        FileSystemGraphRepository().load(path)
