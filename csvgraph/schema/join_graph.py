"""Shortest join paths and minimum spanning forests over a ``SchemaGraph``.

Relationships are treated as undirected edges. All tie-breaks follow one
fixed order so repeated runs on the same graph give the same answer:
neighbours are visited sorted by (table name, left column, right column,
weight) and Kruskal considers edges sorted by weight, then by the
lexicographically smaller endpoint, then by the relationship's own fields.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import heapq
from typing import Iterable

from ..core.exceptions import PathNotFoundError
from .models import Relationship, SchemaGraph

# Infinity constant for Dijkstra's algorithm (unreachable nodes)
INFINITY = 1_000_000_000


@dataclass(frozen=True)
class JoinEdge:
    """A relationship oriented in the direction it is walked."""
    left_table: str
    left_column: str
    right_table: str
    right_column: str
    weight: int
    relationship: Relationship

    def __str__(self) -> str:
        return f"{self.left_table}.{self.left_column} = {self.right_table}.{self.right_column}"


def _oriented(rel: Relationship, start: str) -> JoinEdge:
    if rel.from_table == start:
        return JoinEdge(rel.from_table, rel.from_column, rel.to_table, rel.to_column, rel.weight, rel)
    return JoinEdge(rel.to_table, rel.to_column, rel.from_table, rel.from_column, rel.weight, rel)


def _neighbour_order(edge: JoinEdge) -> tuple[str, str, str, int]:
    return (edge.right_table, edge.left_column, edge.right_column, edge.weight)


def build_adjacency(graph: SchemaGraph) -> dict[str, list[JoinEdge]]:
    """Both directions of every relationship, per table, in visiting order.

    Self references are left out; they never shorten a path.
    """
    adjacency: dict[str, list[JoinEdge]] = {name: [] for name in graph.tables}
    for rel in graph.relationships:
        if rel.is_self_reference:
            continue
        adjacency[rel.from_table].append(_oriented(rel, rel.from_table))
        adjacency[rel.to_table].append(_oriented(rel, rel.to_table))
    for edges in adjacency.values():
        edges.sort(key=_neighbour_order)
    return adjacency


def _has_uniform_weights(graph: SchemaGraph) -> bool:
    return len({rel.weight for rel in graph.relationships}) <= 1


def _walk_back(prev_edge: dict[str, JoinEdge], start: str, goal: str) -> list[JoinEdge]:
    path: list[JoinEdge] = []
    cursor = goal
    while cursor != start:
        edge = prev_edge[cursor]
        path.append(edge)
        cursor = edge.left_table
    path.reverse()
    return path


def _bfs_path(adjacency: dict[str, list[JoinEdge]], start: str, goal: str) -> list[JoinEdge] | None:
    prev_edge: dict[str, JoinEdge] = {}
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current == goal:
            return _walk_back(prev_edge, start, goal)
        for edge in adjacency.get(current, []):
            if edge.right_table in visited:
                continue
            visited.add(edge.right_table)
            prev_edge[edge.right_table] = edge
            queue.append(edge.right_table)
    return None


def _dijkstra_path(adjacency: dict[str, list[JoinEdge]], start: str, goal: str) -> list[JoinEdge] | None:
    distances: dict[str, int] = {start: 0}
    prev_edge: dict[str, JoinEdge] = {}
    heap: list[tuple[int, str]] = [(0, start)]
    settled: set[str] = set()

    while heap:
        cost, current = heapq.heappop(heap)
        if current in settled:
            continue
        settled.add(current)
        if current == goal:
            return _walk_back(prev_edge, start, goal)
        for edge in adjacency.get(current, []):
            next_table = edge.right_table
            if next_table in settled:
                continue
            next_cost = cost + edge.weight
            # strict improvement only: the first edge found in visiting order wins ties
            if next_cost < distances.get(next_table, INFINITY):
                distances[next_table] = next_cost
                prev_edge[next_table] = edge
                heapq.heappush(heap, (next_cost, next_table))
    return None


def shortest_path(graph: SchemaGraph, source: str, target: str) -> list[JoinEdge]:
    """Minimum-weight walk from ``source`` to ``target``.

    Uses breadth-first search when every relationship has the same weight and
    Dijkstra otherwise. Returns an empty list when ``source == target``.

    Raises:
        PathNotFoundError: If a table is unknown or the tables are not connected.
    """
    for table in (source, target):
        if table not in graph.tables:
            raise PathNotFoundError(source, target, f"table '{table}' is not in the graph")
    if source == target:
        return []

    adjacency = build_adjacency(graph)
    if _has_uniform_weights(graph):
        path = _bfs_path(adjacency, source, target)
    else:
        path = _dijkstra_path(adjacency, source, target)
    if path is None:
        raise PathNotFoundError(source, target, "the tables are not connected")
    return path


def path_weight(path: Iterable[JoinEdge]) -> int:
    return sum(edge.weight for edge in path)


def path_tables(path: list[JoinEdge], source: str | None = None) -> list[str]:
    """Tables visited by ``path`` in order."""
    if not path:
        return [source] if source else []
    return [path[0].left_table] + [edge.right_table for edge in path]


class _UnionFind:
    def __init__(self, items: Iterable[str]) -> None:
        self.parent = {item: item for item in items}
        self.rank = {item: 0 for item in self.parent}

    def find(self, item: str) -> str:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, left: str, right: str) -> bool:
        """Merge two sets; False when they were already one (the edge would close a cycle)."""
        left_root, right_root = self.find(left), self.find(right)
        if left_root == right_root:
            return False
        if self.rank[left_root] < self.rank[right_root]:
            left_root, right_root = right_root, left_root
        self.parent[right_root] = left_root
        if self.rank[left_root] == self.rank[right_root]:
            self.rank[left_root] += 1
        return True


@dataclass(frozen=True)
class SpanningTree:
    tables: tuple[str, ...]
    relationships: tuple[Relationship, ...]

    @property
    def total_weight(self) -> int:
        return sum(rel.weight for rel in self.relationships)


def _edge_order(rel: Relationship) -> tuple:
    low, high = sorted((rel.from_table, rel.to_table))
    return (rel.weight, low, high, rel.from_table, rel.from_column, rel.to_table, rel.to_column)


def _group(graph: SchemaGraph, sets: _UnionFind) -> list[tuple[str, ...]]:
    groups: dict[str, list[str]] = {}
    for name in graph.table_keys():
        groups.setdefault(sets.find(name), []).append(name)
    return sorted(tuple(members) for members in groups.values())


def connected_components(graph: SchemaGraph) -> list[tuple[str, ...]]:
    """Table names per component, each sorted, ordered by their first name."""
    sets = _UnionFind(graph.tables)
    for rel in graph.relationships:
        sets.union(rel.from_table, rel.to_table)
    return _group(graph, sets)


def minimum_spanning_forest(graph: SchemaGraph) -> list[SpanningTree]:
    """Kruskal's algorithm; one tree per connected component.

    An isolated table forms a tree without relationships.
    """
    sets = _UnionFind(graph.tables)
    accepted: list[Relationship] = []
    for rel in sorted(graph.relationships, key=_edge_order):
        if sets.union(rel.from_table, rel.to_table):
            accepted.append(rel)

    trees = []
    for members in _group(graph, sets):
        member_set = set(members)
        trees.append(
            SpanningTree(
                tables=members,
                relationships=tuple(rel for rel in accepted if rel.from_table in member_set),
            )
        )
    return trees
