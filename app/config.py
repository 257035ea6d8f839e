from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.layout_config import DIRECTION_DOWN, LayoutConfig

DEFAULT_CONFIG_PATH = Path("config/layout.yaml")

DelegateKind = Literal["tidy", "elk_http"]


class LayoutSettings(BaseModel):
    default_width: float = Field(default=500.0, gt=0)
    default_height: float = Field(default=300.0, gt=0)
    subtree_sibling_spacing: float = Field(default=100.0, ge=0)
    node_spacing: float = Field(default=50.0, ge=0)
    edge_node_spacing: float = Field(default=30.0, ge=0)
    edge_edge_spacing: float = Field(default=10.0, ge=0)
    padding: float = Field(default=50.0, ge=0)
    direction: str = DIRECTION_DOWN
    max_vertical_gap: float = Field(default=50.0, ge=0)
    sink_vertical_gap: float = Field(default=100.0, ge=0)
    collapsed_height: float = Field(default=100.0, gt=0)
    default_expanded_height: float = Field(default=500.0, gt=0)
    min_random_height: int = Field(default=200, gt=0)
    max_random_height: int = Field(default=500, gt=0)

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, value: object) -> str:
        normalized = str(value or DIRECTION_DOWN).strip().upper()
        if normalized != DIRECTION_DOWN:
            msg = f"layout.direction must be {DIRECTION_DOWN}"
            raise ValueError(msg)
        return normalized

    @model_validator(mode="after")
    def ensure_height_range(self) -> LayoutSettings:
        if self.min_random_height > self.max_random_height:
            msg = "layout.min_random_height must not exceed layout.max_random_height"
            raise ValueError(msg)
        return self

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            default_width=self.default_width,
            default_height=self.default_height,
            subtree_sibling_spacing=self.subtree_sibling_spacing,
            node_spacing=self.node_spacing,
            edge_node_spacing=self.edge_node_spacing,
            edge_edge_spacing=self.edge_edge_spacing,
            padding=self.padding,
            direction=self.direction,
            max_vertical_gap=self.max_vertical_gap,
            sink_vertical_gap=self.sink_vertical_gap,
            collapsed_height=self.collapsed_height,
            default_expanded_height=self.default_expanded_height,
            min_random_height=self.min_random_height,
            max_random_height=self.max_random_height,
        )


class DelegateSettings(BaseModel):
    kind: DelegateKind = "tidy"
    url: str | None = None
    timeout_seconds: float = Field(default=10.0, gt=0)
    algorithm: str = "mrtree"

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value: object) -> str:
        return str(value).strip().lower() if value else "tidy"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DTL_", env_nested_delimiter="__")

    title: str = "Decision Tree Layout"
    log_level: str = "INFO"
    layout: LayoutSettings = LayoutSettings()
    delegate: DelegateSettings = DelegateSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("DTL_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
