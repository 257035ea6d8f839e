from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

from app.config import AppSettings, load_settings
from app.layout_wiring import build_layout_session, configure_logging
from domain.errors import UnknownNode
from domain.ports.layout import TreeLayoutDelegate
from domain.services.layout_pipeline import LayoutOutcome
from domain.services.layout_session import LayoutSession

logger = logging.getLogger(__name__)


class AddChildRequest(BaseModel):
    label: str | None = None
    height: float | None = Field(default=None, gt=0)


def create_app(
    settings: AppSettings,
    delegate: TreeLayoutDelegate | None = None,
    session: LayoutSession | None = None,
) -> FastAPI:
    configure_logging(settings)
    layout_session = session or build_layout_session(settings, delegate)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await layout_session.recompute()
        yield

    app = FastAPI(title=settings.title, lifespan=lifespan)
    app.state.session = layout_session

    @app.get("/api/graph")
    def api_graph(session: LayoutSession = Depends(get_session)) -> ORJSONResponse:
        return ORJSONResponse(session.graph.to_dict())

    @app.get("/api/layout")
    def api_layout(session: LayoutSession = Depends(get_session)) -> ORJSONResponse:
        return ORJSONResponse({"sequence": session.sequence, **session.plan.to_dict()})

    @app.post("/api/layout")
    async def api_relayout(session: LayoutSession = Depends(get_session)) -> ORJSONResponse:
        return outcome_response(await session.recompute())

    @app.post("/api/nodes/{node_id}/children")
    async def api_add_child(
        node_id: str,
        payload: AddChildRequest | None = None,
        session: LayoutSession = Depends(get_session),
    ) -> ORJSONResponse:
        body = payload or AddChildRequest()
        try:
            new_id, outcome = await session.add_child(node_id, label=body.label, height=body.height)
        except UnknownNode as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return outcome_response(outcome, node_id=new_id)

    @app.post("/api/nodes/{node_id}/collapse")
    async def api_collapse(
        node_id: str, session: LayoutSession = Depends(get_session)
    ) -> ORJSONResponse:
        try:
            outcome = await session.collapse(node_id)
        except UnknownNode as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return outcome_response(outcome)

    @app.post("/api/nodes/{node_id}/expand")
    async def api_expand(
        node_id: str, session: LayoutSession = Depends(get_session)
    ) -> ORJSONResponse:
        try:
            outcome = await session.expand(node_id)
        except UnknownNode as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return outcome_response(outcome)

    @app.post("/api/reset")
    async def api_reset(session: LayoutSession = Depends(get_session)) -> ORJSONResponse:
        return outcome_response(await session.reset())

    return app


def get_session(request: Request) -> LayoutSession:
    return cast(LayoutSession, request.app.state.session)


def outcome_response(outcome: LayoutOutcome, node_id: str | None = None) -> ORJSONResponse:
    payload = outcome.to_dict()
    if not outcome.ok:
        logger.info("Layout recompute finished with status %s.", outcome.status)
    if node_id is not None:
        payload["node_id"] = node_id
    if outcome.status == "invalid_graph":
        return ORJSONResponse(payload, status_code=422)
    if outcome.status == "delegate_failed":
        return ORJSONResponse(payload, status_code=502)
    return ORJSONResponse(payload)


app = create_app(load_settings())
