"""Persistent graph cache keyed by a schema fingerprint.

``graph.json`` holds the serialized graph together with the SHA-256 of the
schema text it was built from. A stored graph is only returned while that
fingerprint matches; anything else (missing file, other fingerprint,
unreadable content) is a cache miss and the caller rebuilds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from ..core.exceptions import CacheCorruptionWarning
from ..core.fs import atomic_write_text, read_text
from .builder import build_graph
from .join_rules import load_join_rules
from .models import ColumnInfo, Relationship, SchemaGraph, TableInfo
from .parser import parse_schema

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "graph.json"
CACHE_VERSION = 1


def fingerprint(schema_text: str, rules_text: str | None = None) -> str:
    """SHA-256 of the schema text, with the weights file folded in when there is one."""
    digest = hashlib.sha256(schema_text.encode("utf-8"))
    if rules_text is not None:
        digest.update(b"\x00")
        digest.update(rules_text.encode("utf-8"))
    return digest.hexdigest()


def graph_to_payload(graph: SchemaGraph) -> dict[str, Any]:
    return {
        "tables": [
            {
                "name": table.name,
                "columns": [
                    {
                        "name": column.name,
                        "declared_type": column.declared_type,
                        "is_primary_key": column.is_primary_key,
                    }
                    for column in table.columns
                ],
            }
            for table in graph.tables.values()
        ],
        "relationships": [
            {
                "from_table": rel.from_table,
                "from_column": rel.from_column,
                "to_table": rel.to_table,
                "to_column": rel.to_column,
                "weight": rel.weight,
            }
            for rel in graph.relationships
        ],
    }


def _string(item: dict[str, Any], key: str) -> str:
    value = item[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def graph_from_payload(payload: dict[str, Any]) -> SchemaGraph:
    """Rebuild a graph; raises ValueError/KeyError/TypeError on malformed input."""
    tables = []
    for item in payload["tables"]:
        columns = tuple(
            ColumnInfo(
                name=_string(column, "name"),
                declared_type=_string(column, "declared_type"),
                is_primary_key=bool(column["is_primary_key"]),
            )
            for column in item["columns"]
        )
        tables.append(TableInfo(name=_string(item, "name"), columns=columns))

    relationships = []
    for item in payload["relationships"]:
        weight = item["weight"]
        if not isinstance(weight, int) or isinstance(weight, bool):
            raise ValueError(f"relationship weight must be an integer, got {weight!r}")
        relationships.append(
            Relationship(
                from_table=_string(item, "from_table"),
                from_column=_string(item, "from_column"),
                to_table=_string(item, "to_table"),
                to_column=_string(item, "to_column"),
                weight=weight,
            )
        )
    if len({table.name for table in tables}) != len(tables):
        raise ValueError("duplicate table names")
    return SchemaGraph.from_parts(tables, relationships)


class GraphCache:
    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / CACHE_FILE_NAME
        self.warnings: list[CacheCorruptionWarning] = []

    def save(self, graph: SchemaGraph, schema_fingerprint: str, schema_path: str | None = None) -> Path:
        payload = {
            "version": CACHE_VERSION,
            "fingerprint": schema_fingerprint,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "schema_path": schema_path,
            **graph_to_payload(graph),
        }
        atomic_write_text(self.path, json.dumps(payload, indent=2) + "\n")
        logger.info(f"Cached graph in {self.path}")
        return self.path

    def _corrupt(self, reason: str) -> None:
        warning = CacheCorruptionWarning(f"Ignoring unreadable graph cache {self.path}: {reason}")
        logger.warning(str(warning))
        self.warnings.append(warning)

    def load(self, schema_fingerprint: str) -> SchemaGraph | None:
        """Return the cached graph, or None on a miss (absent, stale or corrupted)."""
        self.warnings = []
        if not self.path.exists():
            logger.debug(f"No graph cache at {self.path}")
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            self._corrupt(str(exc))
            return None
        if not isinstance(payload, dict):
            self._corrupt("top level is not an object")
            return None
        if payload.get("fingerprint") != schema_fingerprint:
            logger.info("Graph cache is stale (schema fingerprint changed)")
            return None
        try:
            return graph_from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            self._corrupt(f"{type(exc).__name__}: {exc}")
            return None


@dataclass
class GraphResolution:
    graph: SchemaGraph
    schema_path: Path
    fingerprint: str
    rebuilt: bool
    warnings: list[UserWarning] = field(default_factory=list)


def resolve_graph(
    schema_path: Path,
    cache: GraphCache,
    rules_path: Path | None = None,
    default_weight: int = 1,
    force: bool = False,
) -> GraphResolution:
    """Load the graph for ``schema_path`` from cache, rebuilding it when stale.

    Raises:
        SourceFileError: If the schema (or weights) file cannot be read.
        SchemaParseError: If a rebuild is needed and the schema has no tables.
    """
    schema_text = read_text(schema_path)
    rules_text = read_text(rules_path) if rules_path is not None else None
    current = fingerprint(schema_text, rules_text)

    cache_warnings: list[UserWarning] = []
    if not force:
        cached = cache.load(current)
        cache_warnings = list(cache.warnings)
        if cached is not None:
            logger.info(f"Using cached graph for {schema_path}")
            return GraphResolution(
                graph=cached,
                schema_path=schema_path,
                fingerprint=current,
                rebuilt=False,
                warnings=cache_warnings,
            )

    parsed = parse_schema(schema_text)
    rules = load_join_rules(str(rules_path) if rules_path is not None else None)
    result = build_graph(parsed, rules=rules, default_weight=default_weight)
    cache.save(result.graph, current, schema_path=str(schema_path))
    return GraphResolution(
        graph=result.graph,
        schema_path=schema_path,
        fingerprint=current,
        rebuilt=True,
        warnings=cache_warnings + result.warnings,
    )
