"""``csvgraph csv ...`` commands on table files, printed as CSV."""

from __future__ import annotations

import logging

from ..core.config import Project, read_project_config
from ..core.exceptions import JoinColumnError
from ..data.frame import DataFrame
from ..data.join import hash_join
from ..data.loader import CsvLoader, write_csv

logger = logging.getLogger(__name__)


def _loader(project: Project) -> CsvLoader:
    config = read_project_config(project)
    return CsvLoader(project.resolve(config.source_path))


def _columns_or_fail(frame: DataFrame, columns: list[str]) -> None:
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise JoinColumnError(f"Columns {missing} not found in '{frame.name}' (has {list(frame.columns)})")


def head(project: Project, table: str, lines: int = 10) -> None:
    write_csv(_loader(project).load(table).head(lines))


def tail(project: Project, table: str, lines: int = 10) -> None:
    write_csv(_loader(project).load(table).tail(lines))


def select(project: Project, table: str, columns: list[str]) -> None:
    frame = _loader(project).load(table)
    _columns_or_fail(frame, columns)
    write_csv(frame.select(columns))


def drop(project: Project, table: str, columns: list[str]) -> None:
    frame = _loader(project).load(table)
    _columns_or_fail(frame, columns)
    write_csv(frame.drop(columns))


def concat(project: Project, tables: list[str]) -> None:
    loader = _loader(project)
    frames = [loader.load(table) for table in tables]
    try:
        combined = DataFrame.concat(frames)
    except ValueError as exc:
        raise JoinColumnError(str(exc)) from exc
    write_csv(combined)
    logger.info(f"Concatenated {len(frames)} files into {len(combined)} rows")


def join(
    project: Project,
    left_table: str,
    right_table: str,
    left_column: str,
    right_column: str,
    how: str = "inner",
) -> None:
    """Join two table files on one column each; columns come out as ``table.column``."""
    loader = _loader(project)
    left = loader.load(left_table)
    right = loader.load(right_table)
    _columns_or_fail(left, [left_column])
    _columns_or_fail(right, [right_column])
    result = hash_join(
        left.qualified(left_table),
        right.qualified(right_table),
        f"{left_table}.{left_column}",
        f"{right_table}.{right_column}",
        how=how,
    )
    write_csv(result)
    logger.info(f"{how.capitalize()} join of {left_table} and {right_table}: {len(result)} rows")
