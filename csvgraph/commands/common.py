from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Iterable

from ..core.config import Project, ProjectConfig, Settings, find_sql_schema, read_project_config
from ..core.exceptions import SourceFileError
from ..schema.cache import GraphCache, GraphResolution, resolve_graph

logger = logging.getLogger(__name__)


def report_warnings(warnings: Iterable[Warning]) -> None:
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)


def locate_schema(project: Project, config: ProjectConfig, explicit: str | None = None) -> Path:
    """Explicit argument, then the configured schema, then the first ``*.sql`` in the project root."""
    if explicit:
        return project.resolve(explicit)
    if config.schema_path:
        return project.resolve(config.schema_path)
    found = find_sql_schema(project.root)
    if found is None:
        raise SourceFileError(str(project.root / "*.sql"), "no SQL schema found in the project directory")
    return found


def load_graph(
    project: Project,
    settings: Settings,
    schema: str | None = None,
    regenerate: bool = False,
) -> GraphResolution:
    config = read_project_config(project)
    schema_path = locate_schema(project, config, schema)
    rules_path = project.resolve(config.weights_path) if config.weights_path else None
    resolution = resolve_graph(
        schema_path,
        GraphCache(project.cache_dir),
        rules_path=rules_path,
        default_weight=settings.default_weight,
        force=regenerate,
    )
    if resolution.rebuilt:
        logger.info(f"Graph rebuilt from {schema_path}")
    report_warnings(resolution.warnings)
    return resolution
