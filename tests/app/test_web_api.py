from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from adapters.layout.tidy_tree import TidyTreeLayoutDelegate
from app.config import AppSettings
from app.web_main import create_app
from domain.models import ROOT_NODE_ID, SINK_NODE_ID
from domain.services.layout_pipeline import LayoutPipeline
from domain.services.layout_session import LayoutSession
from tests.helpers.graph_fixtures import build_graph
from tests.helpers.layout_fakes import FailingLayoutDelegate


@pytest.fixture
def client(app_settings: AppSettings) -> Generator[TestClient, None, None]:
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


def _nodes_by_id(payload: dict) -> dict[str, dict]:
    return {node["id"]: node for node in payload["nodes"]}


def test_startup_lays_out_initial_graph(client: TestClient) -> None:
    response = client.get("/api/layout")

    assert response.status_code == 200
    payload = response.json()
    assert payload["sequence"] == 1
    nodes = _nodes_by_id(payload)
    assert set(nodes) == {ROOT_NODE_ID, SINK_NODE_ID}
    root, sink = nodes[ROOT_NODE_ID], nodes[SINK_NODE_ID]
    assert sink["y"] == root["y"] + root["height"] + 100
    assert sink["x"] + sink["width"] / 2 == root["x"] + root["width"] / 2


def test_graph_endpoint_reflects_applied_positions(client: TestClient) -> None:
    layout = _nodes_by_id(client.get("/api/layout").json())
    graph = client.get("/api/graph").json()

    for node in graph["nodes"]:
        assert node["position"] == {"x": layout[node["id"]]["x"], "y": layout[node["id"]]["y"]}


def test_add_child_inserts_node_above_sink(client: TestClient) -> None:
    response = client.post(f"/api/nodes/{ROOT_NODE_ID}/children", json={"height": 250})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["node_id"] == "node-1"
    nodes = _nodes_by_id(payload)
    assert nodes["node-1"]["height"] == 250
    assert nodes["node-1"]["y"] > nodes[ROOT_NODE_ID]["y"]
    assert nodes[SINK_NODE_ID]["y"] > nodes["node-1"]["y"] + 250

    edges = {(edge["source"], edge["target"]) for edge in client.get("/api/graph").json()["edges"]}
    assert (ROOT_NODE_ID, "node-1") in edges
    assert ("node-1", SINK_NODE_ID) in edges
    assert (ROOT_NODE_ID, SINK_NODE_ID) not in edges


def test_add_child_without_body_uses_defaults(client: TestClient) -> None:
    response = client.post(f"/api/nodes/{ROOT_NODE_ID}/children")

    assert response.status_code == 200
    node = _nodes_by_id(response.json())["node-1"]
    assert 200 <= node["height"] <= 500


def test_unknown_node_returns_404(client: TestClient) -> None:
    assert client.post("/api/nodes/missing/children").status_code == 404
    assert client.post("/api/nodes/missing/collapse").status_code == 404
    assert client.post("/api/nodes/missing/expand").status_code == 404


def test_collapse_and_expand_change_height(client: TestClient) -> None:
    client.post(f"/api/nodes/{ROOT_NODE_ID}/children", json={"height": 320})

    collapsed = client.post("/api/nodes/node-1/collapse")
    assert collapsed.status_code == 200
    assert _nodes_by_id(collapsed.json())["node-1"]["height"] == 100

    expanded = client.post("/api/nodes/node-1/expand")
    assert expanded.status_code == 200
    assert _nodes_by_id(expanded.json())["node-1"]["height"] == 320


def test_reset_restores_initial_graph(client: TestClient) -> None:
    client.post(f"/api/nodes/{ROOT_NODE_ID}/children", json={"height": 250})

    response = client.post("/api/reset")

    assert response.status_code == 200
    assert set(_nodes_by_id(response.json())) == {ROOT_NODE_ID, SINK_NODE_ID}
    graph = client.get("/api/graph").json()
    assert [edge["id"] for edge in graph["edges"]] == ["root-to-end"]


def test_relayout_bumps_sequence(client: TestClient) -> None:
    assert client.post("/api/layout").status_code == 200
    assert client.get("/api/layout").json()["sequence"] == 2


def test_delegate_failure_returns_502(app_settings: AppSettings) -> None:
    with TestClient(create_app(app_settings, delegate=FailingLayoutDelegate())) as client:
        response = client.post("/api/layout")

    assert response.status_code == 502
    payload = response.json()
    assert payload["status"] == "delegate_failed"
    assert "layout service unavailable" in payload["error"]
    assert {(node["x"], node["y"]) for node in payload["nodes"]} == {(0, 0)}


def test_invalid_graph_returns_422(app_settings: AppSettings) -> None:
    graph = build_graph([("a", "c"), ("b", "c")])
    session = LayoutSession(LayoutPipeline(TidyTreeLayoutDelegate()), graph=graph)

    with TestClient(create_app(app_settings, session=session)) as client:
        response = client.post("/api/layout")

    assert response.status_code == 422
    payload = response.json()
    assert payload["status"] == "invalid_graph"
    assert "more than one structural parent" in payload["error"]
