"""Command line entry point.

Usage:
    csvgraph init [--force]
    csvgraph graph create [schema.sql]
    csvgraph graph shortest-path customers items
    csvgraph graph mst
    csvgraph graph join customers items [-o joined.csv]
    csvgraph graph display [-f text|json|dot]
    csvgraph csv head orders -n 5
    csvgraph csv join orders customers customer_id id [-t left]

Exit codes: 0 success, 1 operation failure, 2 invalid usage.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import __version__
from .commands import csv as csv_commands
from .commands import (
    create_graph,
    display_graph,
    init_project,
    join_tables,
    print_shortest_path,
    print_spanning_forest,
    show_path,
)
from .core.config import Settings, get_cached_settings, open_project
from .core.exceptions import CsvGraphError
from .data.join import JOIN_TYPES
from .schema.render import DISPLAY_FORMATS

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings, verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("csvgraph").setLevel(level)


def _add_graph_parser(subparsers: argparse._SubParsersAction) -> None:
    graph = subparsers.add_parser("graph", aliases=["G"], help="Perform graph operations on SQL schemas")
    graph.add_argument("-r", "--regenerate", "--regen", action="store_true", help="Force regeneration of the graph")
    actions = graph.add_subparsers(dest="graph_command", required=True, metavar="COMMAND")

    create = actions.add_parser("create", help="Create a graph from a SQL schema")
    create.add_argument("schema", nargs="?", help="Path to the SQL schema (default: configured or first *.sql)")
    create.set_defaults(handler=lambda project, settings, args: create_graph(project, settings, args.schema))

    path = actions.add_parser("shortest-path", aliases=["sp", "shortest"], help="Shortest path between two tables")
    path.add_argument("source", help="Source table")
    path.add_argument("target", help="Destination table")
    path.set_defaults(
        handler=lambda project, settings, args: print_shortest_path(
            project, settings, args.source, args.target, regenerate=args.regenerate
        )
    )

    mst = actions.add_parser("mst", help="Minimum spanning forest of all relationships")
    mst.set_defaults(
        handler=lambda project, settings, args: print_spanning_forest(project, settings, regenerate=args.regenerate)
    )

    join = actions.add_parser("join", help="Join the CSV files of two tables along their shortest path")
    join.add_argument("left_table", help="First table")
    join.add_argument("right_table", help="Second table")
    join.add_argument("-o", "--output", help="Output CSV file ('-' for stdout; default: configured output_file)")
    join.set_defaults(
        handler=lambda project, settings, args: join_tables(
            project, settings, args.left_table, args.right_table, output=args.output, regenerate=args.regenerate
        )
    )

    display = actions.add_parser("display", help="Print the graph structure")
    display.add_argument("-f", "--format", choices=DISPLAY_FORMATS, default="text", help="Output format")
    display.set_defaults(
        handler=lambda project, settings, args: display_graph(
            project, settings, args.format, regenerate=args.regenerate
        )
    )


def _add_csv_parser(subparsers: argparse._SubParsersAction) -> None:
    csv = subparsers.add_parser("csv", help="Slice and join table CSV files")
    actions = csv.add_subparsers(dest="csv_command", required=True, metavar="COMMAND")

    for name, command in (("head", csv_commands.head), ("tail", csv_commands.tail)):
        parser = actions.add_parser(name, help=f"Print the {name} rows of a table file")
        parser.add_argument("table", help="Table name (reads <source_path>/<table>.csv)")
        parser.add_argument("-n", "--lines", type=int, default=10, help="Number of rows")
        parser.set_defaults(handler=lambda project, settings, args, command=command: command(project, args.table, args.lines))

    for name, command in (("select", csv_commands.select), ("drop", csv_commands.drop)):
        parser = actions.add_parser(name, help=f"{name.capitalize()} columns of a table file")
        parser.add_argument("table", help="Table name")
        parser.add_argument("columns", nargs="+", help="Column names")
        parser.set_defaults(
            handler=lambda project, settings, args, command=command: command(project, args.table, args.columns)
        )

    concat = actions.add_parser("concat", help="Concatenate table files with identical columns")
    concat.add_argument("tables", nargs="+", help="Table names")
    concat.set_defaults(handler=lambda project, settings, args: csv_commands.concat(project, args.tables))

    join = actions.add_parser("join", help="Join two table files on one column each")
    join.add_argument("left_table", help="Left table name")
    join.add_argument("right_table", help="Right table name")
    join.add_argument("left_column", help="Join column of the left table")
    join.add_argument("right_column", help="Join column of the right table")
    join.add_argument("-t", "--type", choices=JOIN_TYPES, default="inner", help="Join type")
    join.set_defaults(
        handler=lambda project, settings, args: csv_commands.join(
            project, args.left_table, args.right_table, args.left_column, args.right_column, how=args.type
        )
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvgraph",
        description="SQL schema analysis and CSV joining along foreign-key paths",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    init = subparsers.add_parser("init", aliases=["I", "initialize"], help="Initialize csvgraph configuration")
    init.add_argument("-f", "--force", action="store_true", help="Overwrite existing config")
    init.set_defaults(handler=lambda project, settings, args: init_project(project, settings, force=args.force))

    path = subparsers.add_parser("path", help="Show the path of the project directory")
    path.set_defaults(handler=lambda project, settings, args: show_path(project))

    _add_graph_parser(subparsers)
    _add_csv_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_cached_settings()
        configure_logging(settings, args.verbose)
        project = open_project(settings, create=args.command != "path")
        args.handler(project, settings, args)
    except (CsvGraphError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
