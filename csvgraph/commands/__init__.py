"""Command implementations behind the ``csvgraph`` CLI.

Each command takes the ``Project`` it operates on explicitly and raises
``CsvGraphError`` subclasses on failure.
"""

from . import csv
from .graph import create_graph, display_graph, join_tables, print_shortest_path, print_spanning_forest
from .init import init_project, show_path

__all__ = [
    "csv",
    "create_graph",
    "display_graph",
    "join_tables",
    "print_shortest_path",
    "print_spanning_forest",
    "init_project",
    "show_path",
]
