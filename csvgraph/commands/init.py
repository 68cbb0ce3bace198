"""``csvgraph init`` and ``csvgraph path``."""

from __future__ import annotations

import logging

from ..core.config import Project, ProjectConfig, Settings, find_sql_schema, write_project_config
from ..core.fs import display_relative_path
from .graph import create_graph

logger = logging.getLogger(__name__)


def init_project(project: Project, settings: Settings, force: bool = False) -> None:
    """Write a default config.json and, when a schema is present, cache its graph."""
    if project.config_file.exists() and not force:
        print(
            f"Config file already exists at {display_relative_path(project.config_file)}. "
            "Use --force to overwrite."
        )
        return

    write_project_config(project, ProjectConfig())
    print(f"Configuration file created at {display_relative_path(project.config_file)}")

    schema_path = find_sql_schema(project.root)
    if schema_path is None:
        print("No SQL schema found in the current directory.")
        return
    print(f"Found SQL schema: {display_relative_path(schema_path)}")
    create_graph(project, settings, schema=str(schema_path))


def show_path(project: Project) -> None:
    print(project.home)
