"""Filesystem helpers shared by the cache and the project config."""

from __future__ import annotations

import os
from pathlib import Path
import tempfile

from .exceptions import SourceFileError


def atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` so readers see either the old or the new file.

    The data goes to a temporary file in the same directory which then
    replaces the target in one ``os.replace`` call.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


def read_text(path: Path) -> str:
    """Read a UTF-8 text file, turning OS errors into ``SourceFileError``."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise SourceFileError(str(path), "file not found") from exc
    except OSError as exc:
        raise SourceFileError(str(path), exc.strerror or str(exc)) from exc


def display_relative_path(path: Path) -> str:
    """Render ``path`` relative to the working directory when possible."""
    try:
        return str(path.resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)
