from __future__ import annotations

import logging
import random

from adapters.layout.elk_http import ElkHttpLayoutDelegate
from adapters.layout.tidy_tree import TidyTreeLayoutDelegate
from app.config import AppSettings
from domain.ports.layout import TreeLayoutDelegate
from domain.services.graph_mutations import DecisionTreeEditor
from domain.services.layout_pipeline import LayoutPipeline
from domain.services.layout_session import LayoutSession


def build_layout_delegate(settings: AppSettings) -> TreeLayoutDelegate:
    if settings.delegate.kind == "elk_http":
        if not settings.delegate.url:
            msg = "delegate.url is required when delegate.kind is elk_http"
            raise ValueError(msg)
        return ElkHttpLayoutDelegate(
            settings.delegate.url,
            timeout_seconds=settings.delegate.timeout_seconds,
            algorithm=settings.delegate.algorithm,
        )
    return TidyTreeLayoutDelegate()


def build_layout_pipeline(
    settings: AppSettings, delegate: TreeLayoutDelegate | None = None
) -> LayoutPipeline:
    return LayoutPipeline(
        delegate or build_layout_delegate(settings),
        settings.layout.to_layout_config(),
    )


def build_layout_session(
    settings: AppSettings,
    delegate: TreeLayoutDelegate | None = None,
    rng: random.Random | None = None,
) -> LayoutSession:
    pipeline = build_layout_pipeline(settings, delegate)
    editor = DecisionTreeEditor(pipeline.config, rng=rng, sink_id=pipeline.sink_id)
    return LayoutSession(pipeline, editor)


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
