"""Schema graph module.

Contains the DDL parser, graph construction, the fingerprinted graph cache,
join rules and the path/spanning-tree algorithms.
"""

from .builder import BuildResult, build_graph
from .cache import GraphCache, GraphResolution, fingerprint, graph_from_payload, graph_to_payload, resolve_graph
from .join_graph import (
    INFINITY,
    JoinEdge,
    SpanningTree,
    build_adjacency,
    connected_components,
    minimum_spanning_forest,
    path_tables,
    path_weight,
    shortest_path,
)
from .join_rules import JoinColumnRule, JoinRule, JoinRules, load_join_rules
from .models import ColumnInfo, ForeignKeyInfo, Relationship, SchemaGraph, TableInfo
from .parser import ParsedSchema, parse_schema

__all__ = [
    "BuildResult",
    "build_graph",
    "GraphCache",
    "GraphResolution",
    "fingerprint",
    "graph_from_payload",
    "graph_to_payload",
    "resolve_graph",
    "INFINITY",
    "JoinEdge",
    "SpanningTree",
    "build_adjacency",
    "connected_components",
    "minimum_spanning_forest",
    "path_tables",
    "path_weight",
    "shortest_path",
    "JoinColumnRule",
    "JoinRule",
    "JoinRules",
    "load_join_rules",
    "ColumnInfo",
    "ForeignKeyInfo",
    "Relationship",
    "SchemaGraph",
    "TableInfo",
    "ParsedSchema",
    "parse_schema",
]
