from __future__ import annotations

import os
import random
from collections.abc import Callable, Generator

import pytest

from adapters.layout.tidy_tree import TidyTreeLayoutDelegate
from app.config import AppSettings, DelegateSettings, LayoutSettings
from domain.layout_config import LayoutConfig
from domain.services.graph_mutations import DecisionTreeEditor
from domain.services.layout_pipeline import LayoutPipeline


def _clear_dtl_env() -> None:
    for key in list(os.environ):
        if key.startswith("DTL_"):
            os.environ.pop(key, None)


_clear_dtl_env()


@pytest.fixture(autouse=True)
def clear_dtl_env() -> Generator[None, None, None]:
    _clear_dtl_env()
    yield
    _clear_dtl_env()


@pytest.fixture
def layout_config() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def editor(layout_config: LayoutConfig) -> DecisionTreeEditor:
    return DecisionTreeEditor(layout_config, rng=random.Random(7))


@pytest.fixture
def pipeline(layout_config: LayoutConfig) -> LayoutPipeline:
    return LayoutPipeline(TidyTreeLayoutDelegate(), layout_config)


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        title="Test Layout",
        log_level="WARNING",
        layout=LayoutSettings(),
        delegate=DelegateSettings(kind="tidy"),
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
