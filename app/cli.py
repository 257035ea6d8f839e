from __future__ import annotations

import asyncio
import random
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from adapters.filesystem.graph_repository import FileSystemGraphRepository
from app.config import AppSettings, load_settings
from app.layout_wiring import build_layout_pipeline, configure_logging
from domain.errors import LayoutError, UnknownNode
from domain.models import DecisionGraph, LayoutPlan
from domain.services.forest import decompose_forest
from domain.services.graph_mutations import DecisionTreeEditor

app = typer.Typer(no_args_is_help=True)
console = Console()

ConfigOption = typer.Option(None, "--config", help="YAML settings file.")


def _settings(config_path: Path | None) -> AppSettings:
    settings = load_settings(config_path)
    configure_logging(settings)
    return settings


def _load_graph(path: Path) -> DecisionGraph:
    if not path.exists():
        console.print(f"[red]File not found:[/] {path}")
        raise typer.Exit(code=1)
    try:
        return FileSystemGraphRepository().load(path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid graph file:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _print_plan(plan: LayoutPlan) -> None:
    table = Table("id", "x", "y", "width", "height")
    for node in plan.nodes:
        table.add_row(
            node.id, f"{node.x:g}", f"{node.y:g}", f"{node.width:g}", f"{node.height:g}"
        )
    console.print(table)


@app.command("init")
def init_graph(
    output: Path = typer.Argument(..., help="Where to write the initial root/end graph."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    graph = DecisionTreeEditor(settings.layout.to_layout_config()).reset()
    FileSystemGraphRepository().save(graph, output)
    console.print(f"[green]Wrote[/] {output}")


@app.command("add-child")
def add_child(
    graph_path: Path = typer.Argument(..., help="Graph JSON file, updated in place."),
    parent_id: str = typer.Argument(..., help="Node that receives the new child."),
    label: str | None = typer.Option(None, help="Label of the new node."),
    height: float | None = typer.Option(None, help="Height of the new node."),
    seed: int | None = typer.Option(None, help="Seed for the random node height."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    graph = _load_graph(graph_path)
    editor = DecisionTreeEditor(settings.layout.to_layout_config(), rng=random.Random(seed))
    try:
        updated, new_id = editor.add_child(graph, parent_id, label=label, height=height)
    except UnknownNode as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    FileSystemGraphRepository().save(updated, graph_path)
    console.print(f"[green]Added[/] {new_id} under {parent_id}")


@app.command("collapse")
def collapse(
    graph_path: Path = typer.Argument(..., help="Graph JSON file, updated in place."),
    node_id: str = typer.Argument(...),
    config: Path | None = ConfigOption,
) -> None:
    _resize(graph_path, node_id, config, expand=False)


@app.command("expand")
def expand(
    graph_path: Path = typer.Argument(..., help="Graph JSON file, updated in place."),
    node_id: str = typer.Argument(...),
    config: Path | None = ConfigOption,
) -> None:
    _resize(graph_path, node_id, config, expand=True)


def _resize(graph_path: Path, node_id: str, config: Path | None, expand: bool) -> None:
    settings = _settings(config)
    graph = _load_graph(graph_path)
    editor = DecisionTreeEditor(settings.layout.to_layout_config())
    try:
        updated = editor.expand(graph, node_id) if expand else editor.collapse(graph, node_id)
    except UnknownNode as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    FileSystemGraphRepository().save(updated, graph_path)
    node = updated.find_node(node_id)
    console.print(f"[green]{node_id}[/] height is now {node.height if node else '?'}")


@app.command("layout")
def layout(
    graph_path: Path = typer.Argument(..., help="Graph JSON file to lay out."),
    output: Path | None = typer.Option(None, help="Write the layout plan JSON here."),
    config: Path | None = ConfigOption,
) -> None:
    settings = _settings(config)
    graph = _load_graph(graph_path)
    pipeline = build_layout_pipeline(settings)
    outcome = asyncio.run(pipeline.run(graph))
    if not outcome.ok:
        console.print(f"[red]Layout failed ({outcome.status}):[/] {outcome.error}")
        raise typer.Exit(code=1)
    if output is not None:
        FileSystemGraphRepository().save_plan(outcome.plan, output)
        console.print(f"[green]Wrote[/] {output}")
        return
    _print_plan(outcome.plan)


@app.command("validate")
def validate(graph_path: Path = typer.Argument(..., help="Graph JSON file to validate.")) -> None:
    graph = _load_graph(graph_path)
    try:
        forest = decompose_forest(graph)
    except LayoutError as exc:
        console.print(f"[red]Validation failed:[/] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(
        f"[green]Valid graph:[/] {len(forest.main_tree_nodes)} main-tree nodes, "
        f"{len(forest.sink_subtree_nodes)} sink-subtree nodes"
    )


if __name__ == "__main__":
    app()
