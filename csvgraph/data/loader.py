"""CSV input and output for per-table data files."""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Callable, TextIO

import pandas as pd

from ..core.exceptions import SourceFileError
from .frame import DataFrame

logger = logging.getLogger(__name__)

TableLoader = Callable[[str], DataFrame]


class CsvLoader:
    """Load ``<source_dir>/<table>.csv`` into a ``DataFrame``.

    Column types are inferred by pandas and narrowed with
    ``convert_dtypes`` so integer columns with blanks stay integers; blank
    cells become None.
    """

    def __init__(self, source_dir: Path) -> None:
        self.source_dir = Path(source_dir)

    def path_for(self, table: str) -> Path:
        return self.source_dir / f"{table}.csv"

    def load(self, table: str) -> DataFrame:
        return read_csv(self.path_for(table), name=table)

    __call__ = load


def read_csv(path: Path, name: str | None = None) -> DataFrame:
    if not path.is_file():
        raise SourceFileError(str(path), "file not found")
    try:
        frame = pd.read_csv(path, skipinitialspace=True).convert_dtypes()
    except pd.errors.EmptyDataError as exc:
        raise SourceFileError(str(path), "file is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise SourceFileError(str(path), f"not a readable CSV file ({exc})") from exc
    except OSError as exc:
        raise SourceFileError(str(path), exc.strerror or str(exc)) from exc
    logger.debug(f"Loaded {len(frame)} rows from {path}")
    return DataFrame.from_pandas(frame, name=name or path.stem)


def write_csv(frame: DataFrame, target: Path | TextIO | None = None) -> None:
    """Write ``frame`` as CSV to a file path, an open stream, or stdout."""
    output = frame.to_pandas()
    if target is None:
        output.to_csv(sys.stdout, index=False)
        return
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
    output.to_csv(target, index=False)
