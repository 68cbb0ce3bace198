"""Plain-text, JSON and DOT renderings of graphs, paths and forests."""

from __future__ import annotations

import json

from .cache import graph_to_payload
from .join_graph import JoinEdge, SpanningTree, path_tables, path_weight
from .models import SchemaGraph, TableInfo

DISPLAY_FORMATS = ("text", "json", "dot")


def _format_columns(table: TableInfo) -> str:
    parts = []
    for column in table.columns:
        label = f"{column.name}*" if column.is_primary_key else column.name
        if column.declared_type:
            label += f" {column.declared_type}"
        parts.append(label)
    return ", ".join(parts)


def format_graph_text(graph: SchemaGraph) -> str:
    lines = [f"Tables ({len(graph.tables)}):"]
    for name in graph.table_keys():
        lines.append(f"  {name}: {_format_columns(graph.tables[name])}")
    lines.append(f"Relationships ({len(graph.relationships)}):")
    for rel in graph.relationships:
        lines.append(f"  {rel} (weight {rel.weight})")
    return "\n".join(lines)


def format_graph_json(graph: SchemaGraph) -> str:
    return json.dumps(graph_to_payload(graph), indent=2)


_DOT_ENTITIES = {"&": "&amp;", "<": "&lt;", ">": "&gt;", "|": "&#124;", "{": "&#123;", "}": "&#125;", '"': "&quot;"}


def _dot_escape(text: str) -> str:
    """Escape a name for the HTML-like record label, including record field separators."""
    return "".join(_DOT_ENTITIES.get(char, char) for char in text)


def _dot_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def format_graph_dot(graph: SchemaGraph) -> str:
    """Graphviz source: one record node per table, one labelled edge per relationship."""
    names = graph.table_keys()
    index = {name: number for number, name in enumerate(names)}
    lines = [
        "graph G {",
        '  node [shape=record, fontname="Arial"];',
        "  edge [fontsize=12];",
        "  nodesep=1.0;",
        "  edgesep=0.75;",
        "  rankdir=TB;",
    ]
    for name in names:
        columns = "|".join(_dot_escape(column) for column in graph.tables[name].column_names)
        lines.append(
            f"  {index[name]} [label=<{{<b><font point-size='16' color='red'>{_dot_escape(name)}</font></b>|{columns}}}>];"
        )
    for rel in graph.relationships:
        lines.append(
            f'  {index[rel.from_table]} -- {index[rel.to_table]} [label="({_dot_quote(rel.from_column)}, {_dot_quote(rel.to_column)})"];'
        )
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_graph(graph: SchemaGraph, fmt: str) -> str:
    if fmt == "json":
        return format_graph_json(graph)
    if fmt == "dot":
        return format_graph_dot(graph)
    return format_graph_text(graph)


def format_path(path: list[JoinEdge], source: str) -> str:
    lines = [f"Shortest path: {' -> '.join(path_tables(path, source))}"]
    for edge in path:
        lines.append(f"  {edge} (weight {edge.weight})")
    lines.append(f"Total weight: {path_weight(path)}")
    return "\n".join(lines)


def format_forest(forest: list[SpanningTree]) -> str:
    total = sum(tree.total_weight for tree in forest)
    noun = "tree" if len(forest) == 1 else "trees"
    lines = [f"Minimum spanning forest: {len(forest)} {noun}, total weight {total}"]
    for number, tree in enumerate(forest, start=1):
        header = f"Tree {number} ({', '.join(tree.tables)})"
        if not tree.relationships:
            lines.append(f"{header}: no relationships")
            continue
        lines.append(f"{header}: weight {tree.total_weight}")
        for rel in tree.relationships:
            lines.append(f"  {rel} (weight {rel.weight})")
    return "\n".join(lines)
