"""In-memory tabular data shared by the join executor and the csv commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import pandas as pd


@dataclass(frozen=True)
class DataFrame:
    """Ordered, uniquely named columns and rows of values aligned to them.

    Values may be None. Instances are immutable; every operation returns a
    new frame.
    """
    columns: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...] = ()
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        columns = tuple(self.columns)
        rows = tuple(tuple(row) for row in self.rows)
        seen: set[str] = set()
        for column in columns:
            if column in seen:
                raise ValueError(f"Duplicate column name '{column}'")
            seen.add(column)
        for number, row in enumerate(rows):
            if len(row) != len(columns):
                raise ValueError(f"Row {number} has {len(row)} values, expected {len(columns)}")
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "rows", rows)

    @classmethod
    def from_pandas(cls, frame: pd.DataFrame, name: str | None = None) -> "DataFrame":
        cleaned = frame.astype(object).where(frame.notna(), None)
        return cls(
            columns=tuple(str(column) for column in frame.columns),
            rows=tuple(cleaned.itertuples(index=False, name=None)),
            name=name,
        )

    def to_pandas(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows), columns=list(self.columns), dtype=object)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return len(self.columns)

    def column_index(self, column: str) -> int:
        try:
            return self.columns.index(column)
        except ValueError:
            raise KeyError(column) from None

    def column_values(self, column: str) -> list[Any]:
        index = self.column_index(column)
        return [row[index] for row in self.rows]

    def qualified(self, prefix: str) -> "DataFrame":
        """Rename every column to ``prefix.column``."""
        return DataFrame(
            columns=tuple(f"{prefix}.{column}" for column in self.columns),
            rows=self.rows,
            name=self.name or prefix,
        )

    def head(self, count: int = 10) -> "DataFrame":
        return DataFrame(self.columns, self.rows[: max(count, 0)], name=self.name)

    def tail(self, count: int = 10) -> "DataFrame":
        start = max(len(self.rows) - max(count, 0), 0)
        return DataFrame(self.columns, self.rows[start:], name=self.name)

    def select(self, columns: Sequence[str]) -> "DataFrame":
        indices = [self.column_index(column) for column in columns]
        return DataFrame(
            columns=tuple(self.columns[i] for i in indices),
            rows=tuple(tuple(row[i] for i in indices) for row in self.rows),
            name=self.name,
        )

    def drop(self, columns: Iterable[str]) -> "DataFrame":
        dropped = set(columns)
        for column in dropped:
            self.column_index(column)
        return self.select([column for column in self.columns if column not in dropped])

    @classmethod
    def concat(cls, frames: Sequence["DataFrame"]) -> "DataFrame":
        """Stack frames vertically; all of them must share the same columns."""
        if not frames:
            raise ValueError("Nothing to concatenate")
        columns = frames[0].columns
        rows: list[tuple[Any, ...]] = []
        for frame in frames:
            if frame.columns != columns:
                raise ValueError(
                    f"Cannot concatenate '{frame.name}': columns {list(frame.columns)} differ from {list(columns)}"
                )
            rows.extend(frame.rows)
        return cls(columns=columns, rows=tuple(rows), name=frames[0].name)
