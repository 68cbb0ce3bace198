"""Tabular data: the DataFrame core, CSV loading and the join executor."""

from .frame import DataFrame
from .join import JoinExecutor, column_kind, comparable_keys, hash_join
from .loader import CsvLoader, TableLoader, read_csv, write_csv

__all__ = [
    "DataFrame",
    "JoinExecutor",
    "column_kind",
    "comparable_keys",
    "hash_join",
    "CsvLoader",
    "TableLoader",
    "read_csv",
    "write_csv",
]
