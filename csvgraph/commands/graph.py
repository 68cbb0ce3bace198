"""``csvgraph graph ...`` commands."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.config import Project, Settings, read_project_config, write_project_config
from ..core.fs import atomic_write_text, display_relative_path
from ..data.join import JoinExecutor
from ..data.loader import CsvLoader, write_csv
from ..schema.join_graph import minimum_spanning_forest, path_tables, shortest_path
from ..schema.render import format_forest, format_path, render_graph
from .common import load_graph

logger = logging.getLogger(__name__)


def _stored_path(project: Project, path: Path) -> str:
    """Paths inside the project are remembered relative to its root."""
    try:
        return str(path.resolve().relative_to(project.root))
    except ValueError:
        return str(path.resolve())


def create_graph(project: Project, settings: Settings, schema: str | None = None) -> None:
    resolution = load_graph(project, settings, schema=schema, regenerate=True)
    graph = resolution.graph

    config = read_project_config(project)
    stored = _stored_path(project, resolution.schema_path)
    if stored != config.schema_path:
        write_project_config(project, config.with_schema(stored))

    print(
        f"Graph with {len(graph.tables)} tables and {len(graph.relationships)} relationships "
        f"cached in {display_relative_path(project.cache_dir / 'graph.json')}"
    )


def print_shortest_path(
    project: Project,
    settings: Settings,
    source: str,
    target: str,
    regenerate: bool = False,
) -> None:
    graph = load_graph(project, settings, regenerate=regenerate).graph
    source, target = source.lower(), target.lower()
    print(format_path(shortest_path(graph, source, target), source))


def print_spanning_forest(project: Project, settings: Settings, regenerate: bool = False) -> None:
    graph = load_graph(project, settings, regenerate=regenerate).graph
    print(format_forest(minimum_spanning_forest(graph)))


def join_tables(
    project: Project,
    settings: Settings,
    left_table: str,
    right_table: str,
    output: str | None = None,
    regenerate: bool = False,
) -> None:
    """Join the CSV files of two tables along their shortest path.

    ``output`` overrides the configured ``output_file``; ``-`` writes to stdout.
    """
    graph = load_graph(project, settings, regenerate=regenerate).graph
    source, target = left_table.lower(), right_table.lower()
    path = shortest_path(graph, source, target)

    config = read_project_config(project)
    loader = CsvLoader(project.resolve(config.source_path))
    result = JoinExecutor(loader).execute(path, source=source)

    route = " -> ".join(path_tables(path, source))
    destination = output or config.output_file
    if destination == "-":
        write_csv(result)
        logger.info(f"Joined {route}: {len(result)} rows written to stdout")
        return
    target_path = project.resolve(destination)
    write_csv(result, target_path)
    print(f"Joined {route}: {len(result)} rows written to {display_relative_path(target_path)}")


def display_graph(project: Project, settings: Settings, fmt: str = "text", regenerate: bool = False) -> None:
    graph = load_graph(project, settings, regenerate=regenerate).graph
    content = render_graph(graph, fmt)
    if fmt == "dot":
        config = read_project_config(project)
        dot_file = project.resolve(config.output_path) / "graph.dot"
        atomic_write_text(dot_file, content)
        logger.info(f"DOT file saved to {dot_file}")
    print(content.rstrip("\n"))
