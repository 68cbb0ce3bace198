"""csvgraph: SQL schema analysis and CSV joining along foreign-key paths.

Reads CREATE TABLE statements, builds a weighted graph of the foreign-key
relationships between tables, caches it per project, answers shortest-path
and spanning-tree queries and joins table CSV files along a path.

Package Structure:
    core/       - Core infrastructure (config, exceptions, filesystem helpers)
    schema/     - Schema parsing, graph building, cache, path finding, rendering
    data/       - Table data (DataFrame), CSV loading, join execution
    commands/   - Command implementations behind the CLI
    cli.py      - argparse entry point
"""

__version__ = "0.1.0"

from .core.config import Settings, get_cached_settings, get_settings
from .core.exceptions import (
    CsvGraphError,
    JoinColumnError,
    JoinTypeMismatchError,
    PathNotFoundError,
    SchemaParseError,
    SourceFileError,
)
from .data.frame import DataFrame
from .data.join import JoinExecutor, hash_join
from .schema.builder import build_graph
from .schema.cache import GraphCache, resolve_graph
from .schema.join_graph import JoinEdge, minimum_spanning_forest, shortest_path
from .schema.models import ColumnInfo, ForeignKeyInfo, Relationship, SchemaGraph, TableInfo
from .schema.parser import parse_schema

__all__ = [
    "__version__",
    # Config
    "Settings",
    "get_settings",
    "get_cached_settings",
    # Errors
    "CsvGraphError",
    "JoinColumnError",
    "JoinTypeMismatchError",
    "PathNotFoundError",
    "SchemaParseError",
    "SourceFileError",
    # Schema
    "ColumnInfo",
    "ForeignKeyInfo",
    "Relationship",
    "SchemaGraph",
    "TableInfo",
    "parse_schema",
    "build_graph",
    "GraphCache",
    "resolve_graph",
    "JoinEdge",
    "shortest_path",
    "minimum_spanning_forest",
    # Data
    "DataFrame",
    "JoinExecutor",
    "hash_join",
]
