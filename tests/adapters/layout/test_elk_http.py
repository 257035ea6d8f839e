from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from adapters.layout.elk_http import ElkHttpLayoutDelegate, build_elk_graph
from domain.errors import LayoutDelegateFailed
from domain.layout_config import LayoutConfig
from domain.models import initial_graph
from domain.ports.layout import (
    LayoutEdgeSpec,
    LayoutNodeSpec,
    TreeLayoutOptions,
    TreeLayoutRequest,
)
from domain.services.layout_pipeline import LayoutPipeline


def _request() -> TreeLayoutRequest:
    return TreeLayoutRequest(
        graph_id="main-root",
        nodes=[LayoutNodeSpec("root", 1100, 500), LayoutNodeSpec("a", 500, 300)],
        edges=[LayoutEdgeSpec("edge-root-a", "root", "a")],
        options=TreeLayoutOptions.from_config(LayoutConfig()),
    )


def _delegate(handler: Callable[[httpx.Request], httpx.Response]) -> ElkHttpLayoutDelegate:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ElkHttpLayoutDelegate("http://elk.local/", client=client)


def test_elk_graph_payload() -> None:
    payload = build_elk_graph(_request())

    assert payload["id"] == "main-root"
    assert payload["children"] == [
        {"id": "root", "width": 1100, "height": 500},
        {"id": "a", "width": 500, "height": 300},
    ]
    assert payload["edges"] == [{"id": "edge-root-a", "sources": ["root"], "targets": ["a"]}]
    options = payload["layoutOptions"]
    assert options["elk.algorithm"] == "mrtree"
    assert options["elk.direction"] == "DOWN"
    assert options["elk.spacing.nodeNode"] == "50"
    assert options["elk.spacing.edgeNode"] == "30"
    assert options["elk.padding"] == "[top=50,left=50,bottom=50,right=50]"


def test_layout_posts_graph_and_parses_children() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "http://elk.local/layout"
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"id": "main-root", "children": [{"id": "root", "x": 50, "y": 50}, {"id": "a"}]},
        )

    response = asyncio.run(_delegate(handler).layout(_request()))

    assert seen[0]["id"] == "main-root"
    assert response.position_of("root").x == 50
    assert (response.position_of("a").x, response.position_of("a").y) == (0, 0)
    assert (response.position_of("missing").x, response.position_of("missing").y) == (0, 0)


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, text="boom"),
        lambda request: httpx.Response(200, content=b"not json"),
        lambda request: httpx.Response(200, json=["unexpected"]),
    ],
)
def test_bad_responses_raise_delegate_failure(
    handler: Callable[[httpx.Request], httpx.Response],
) -> None:
    with pytest.raises(LayoutDelegateFailed):
        asyncio.run(_delegate(handler).layout(_request()))


def test_transport_error_is_delegate_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LayoutDelegateFailed, match="connection refused"):
        asyncio.run(_delegate(handler).layout(_request()))


def test_pipeline_recovers_from_unreachable_elk() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    pipeline = LayoutPipeline(_delegate(handler))

    outcome = asyncio.run(pipeline.run(initial_graph()))

    assert outcome.status == "delegate_failed"
    assert {(node.x, node.y) for node in outcome.plan.nodes} == {(0.0, 0.0)}
