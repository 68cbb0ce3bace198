"""Turn parsed schema facts into a ``SchemaGraph``."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging

from ..core.exceptions import DanglingReferenceWarning, ParseWarning
from .join_rules import JoinRules
from .models import ForeignKeyInfo, Relationship, SchemaGraph, TableInfo
from .parser import ParsedSchema

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    graph: SchemaGraph
    warnings: list[UserWarning] = field(default_factory=list)


def _describe(fk: ForeignKeyInfo) -> str:
    target = fk.references_table if fk.references_column is None else f"{fk.references_table}.{fk.references_column}"
    return f"{fk.table}.{fk.column} -> {target}"


def _resolve(fk: ForeignKeyInfo, tables: dict[str, TableInfo], weight: int) -> Relationship | str:
    """Resolve both endpoints of a foreign key; a string explains why it dangles."""
    source = tables.get(fk.table)
    if source is None:
        return f"table '{fk.table}' is not declared"
    source_column = source.column(fk.column)
    if source_column is None:
        return f"column '{fk.column}' is not declared in '{fk.table}'"

    target = tables.get(fk.references_table)
    if target is None:
        return f"referenced table '{fk.references_table}' is not declared"
    if fk.references_column is None:
        primary_key = target.primary_key
        if len(primary_key) != 1:
            return f"'{target.name}' has no single-column primary key to reference"
        target_column = target.column(primary_key[0])
    else:
        target_column = target.column(fk.references_column)
        if target_column is None:
            return f"column '{fk.references_column}' is not declared in '{target.name}'"

    return Relationship(
        from_table=source.name,
        from_column=source_column.name,
        to_table=target.name,
        to_column=target_column.name,
        weight=weight,
    )


def build_graph(parsed: ParsedSchema, rules: JoinRules | None = None, default_weight: int = 1) -> BuildResult:
    """Build the relationship graph.

    Foreign keys whose endpoints cannot be resolved are dropped with a
    ``DanglingReferenceWarning``. Identical relationships are collapsed;
    distinct column pairs between the same tables are all kept.
    """
    warnings: list[UserWarning] = list(parsed.warnings)
    rules = rules or JoinRules()

    tables: dict[str, TableInfo] = {}
    for table in parsed.tables:
        if table.name in tables:
            warning = ParseWarning(f"Table '{table.name}' is declared more than once; keeping the first declaration")
            logger.warning(str(warning))
            warnings.append(warning)
            continue
        tables[table.name] = table

    relationships: dict[tuple[str, str, str, str], Relationship] = {}
    for fk in parsed.foreign_keys:
        resolved = _resolve(fk, tables, default_weight)
        if isinstance(resolved, str):
            warning = DanglingReferenceWarning(f"Dropped foreign key {_describe(fk)}: {resolved}")
            logger.warning(str(warning))
            warnings.append(warning)
            continue
        if resolved.key in relationships:
            logger.debug(f"Duplicate relationship {resolved} collapsed")
            continue

        rule = rules.rule_for(resolved)
        if rule is not None:
            if not rule.enabled:
                logger.info(f"Relationship {resolved} disabled by join rule '{rule.name}'")
                continue
            resolved = replace(resolved, weight=rule.weight)
        relationships[resolved.key] = resolved

    graph = SchemaGraph.from_parts(
        tables.values(),
        (relationships[key] for key in sorted(relationships)),
    )
    logger.info(f"Built graph: {len(graph.tables)} tables, {len(graph.relationships)} relationships")
    return BuildResult(graph=graph, warnings=warnings)
