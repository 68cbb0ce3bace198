"""Hash joins along a path of relationships."""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Sequence

from ..core.exceptions import JoinColumnError, JoinTypeMismatchError
from ..schema.join_graph import JoinEdge
from .frame import DataFrame
from .loader import TableLoader

logger = logging.getLogger(__name__)

EMPTY = "empty"
BOOLEAN = "boolean"
NUMBER = "number"
TEXT = "text"

_BOOLEAN_WORDS = {"true": "true", "t": "true", "yes": "true", "false": "false", "f": "false", "no": "false"}

JOIN_TYPES = ("inner", "left", "right", "full")


def _value_kind(value: Any) -> str:
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, numbers.Real):
        return NUMBER
    return TEXT


def _canonical_number(value: numbers.Real) -> str | None:
    if isinstance(value, numbers.Integral):
        return str(int(value))
    number = float(value)
    if math.isnan(number):
        return None
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _parse_number(text: str) -> str | None:
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isinf(number):
        return None
    return _canonical_number(number)


def _canonical(value: Any) -> str | None:
    if value is None:
        return None
    kind = _value_kind(value)
    if kind == BOOLEAN:
        return "true" if value else "false"
    if kind == NUMBER:
        return _canonical_number(value)
    return str(value).strip()


def column_kind(values: Sequence[Any]) -> str:
    """``empty``, ``boolean``, ``number`` or ``text`` for a column's non-null values."""
    kinds = {_value_kind(value) for value in values if value is not None}
    if not kinds:
        return EMPTY
    if len(kinds) == 1:
        return kinds.pop()
    return TEXT


def _coerce_text(keys: list[str | None], kind: str) -> list[str | None] | None:
    """Re-read text keys as ``kind``; None when some value does not fit."""
    converted: list[str | None] = []
    for key in keys:
        if key is None:
            converted.append(None)
            continue
        if kind == NUMBER:
            value = _parse_number(key)
        else:
            value = _BOOLEAN_WORDS.get(key.lower())
        if value is None:
            return None
        converted.append(value)
    return converted


def comparable_keys(
    left_values: Sequence[Any],
    right_values: Sequence[Any],
    left_column: str,
    right_column: str,
) -> tuple[list[str | None], list[str | None]]:
    """Normalize both join columns to strings that compare by exact equality.

    Numbers compare by value (``3`` equals ``3.0``), booleans as
    ``true``/``false``, text stripped. Text is re-read as numbers or booleans
    when it faces such a column and every value parses.

    Raises:
        JoinTypeMismatchError: If the two columns cannot be made comparable.
    """
    left_kind = column_kind(left_values)
    right_kind = column_kind(right_values)
    left_keys = [_canonical(value) for value in left_values]
    right_keys = [_canonical(value) for value in right_values]

    if left_kind == right_kind or EMPTY in (left_kind, right_kind):
        return left_keys, right_keys

    if left_kind == TEXT and right_kind in (NUMBER, BOOLEAN):
        converted = _coerce_text(left_keys, right_kind)
        if converted is not None:
            return converted, right_keys
    elif right_kind == TEXT and left_kind in (NUMBER, BOOLEAN):
        converted = _coerce_text(right_keys, left_kind)
        if converted is not None:
            return left_keys, converted

    raise JoinTypeMismatchError(left_column, left_kind, right_column, right_kind)


def hash_join(
    left: DataFrame,
    right: DataFrame,
    left_column: str,
    right_column: str,
    how: str = "inner",
) -> DataFrame:
    """Equi-join of two frames.

    The lookup is built on the smaller frame and scanned with the larger one.
    None never matches. Output columns are ``left.columns + right.columns``
    and rows come out ordered by left row, then right row.

    ``how`` is one of ``JOIN_TYPES``. ``left`` and ``full`` keep unmatched left
    rows in place, padded with None. ``right`` and ``full`` append unmatched
    right rows, in right order, after the others.
    """
    if how not in JOIN_TYPES:
        raise ValueError(f"Unknown join type '{how}' (expected one of {', '.join(JOIN_TYPES)})")
    for frame, column in ((left, left_column), (right, right_column)):
        if column not in frame.columns:
            label = f" for '{frame.name}'" if frame.name else ""
            raise JoinColumnError(f"Column '{column}' not found in data{label}")
    collisions = sorted(set(left.columns) & set(right.columns))
    if collisions:
        raise JoinColumnError(f"Column names {collisions} appear on both sides of the join")

    left_keys, right_keys = comparable_keys(
        left.column_values(left_column),
        right.column_values(right_column),
        left_column,
        right_column,
    )

    build_on_left = len(left) <= len(right)
    build_keys, scan_keys = (left_keys, right_keys) if build_on_left else (right_keys, left_keys)
    lookup: dict[str, list[int]] = {}
    for index, key in enumerate(build_keys):
        if key is not None:
            lookup.setdefault(key, []).append(index)

    pairs: list[tuple[int, int]] = []
    for scan_index, key in enumerate(scan_keys):
        if key is None:
            continue
        for build_index in lookup.get(key, ()):
            pairs.append((build_index, scan_index) if build_on_left else (scan_index, build_index))
    if how in ("left", "full"):
        matched_left = {i for i, _ in pairs}
        pairs.extend((i, -1) for i in range(len(left)) if i not in matched_left)
    pairs.sort()

    right_pad = (None,) * right.width
    rows = [left.rows[i] + (right.rows[j] if j >= 0 else right_pad) for i, j in pairs]
    if how in ("right", "full"):
        matched_right = {j for _, j in pairs}
        left_pad = (None,) * left.width
        rows.extend(left_pad + right.rows[j] for j in range(len(right)) if j not in matched_right)

    return DataFrame(columns=left.columns + right.columns, rows=tuple(rows))


class JoinExecutor:
    """Join the tables of a path one hop at a time.

    Every table is loaded fresh through ``loader`` and its columns qualified
    as ``table.column``. Each hop joins the running result with the next
    table on exactly the columns recorded in the path edge.
    """

    def __init__(self, loader: TableLoader) -> None:
        self.loader = loader

    def _load(self, table: str) -> DataFrame:
        return self.loader(table).qualified(table)

    def execute(self, path: Sequence[JoinEdge], source: str | None = None) -> DataFrame:
        if not path:
            if source is None:
                raise ValueError("An empty path needs a source table")
            return self._load(source)
        if source is not None and path[0].left_table != source:
            raise ValueError(f"Path starts at '{path[0].left_table}', not '{source}'")

        running = self._load(path[0].left_table)
        joined = {path[0].left_table}
        for hop, edge in enumerate(path, start=1):
            if edge.left_table not in joined:
                raise ValueError(f"Hop {hop} starts at '{edge.left_table}', which is not joined yet")
            right = self._load(edge.right_table)
            logger.info(f"Hop {hop}/{len(path)}: joining {edge}")
            running = hash_join(
                running,
                right,
                f"{edge.left_table}.{edge.left_column}",
                f"{edge.right_table}.{edge.right_column}",
            )
            joined.add(edge.right_table)
            logger.info(f"Hop {hop}/{len(path)}: {len(running)} rows")
            if not running.rows:
                logger.warning(f"Join on {edge} produced no rows")
        return running
