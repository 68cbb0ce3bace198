"""Custom exceptions and warnings for csvgraph."""

from __future__ import annotations


class CsvGraphError(Exception):
    """Base class for failures that abort the current command."""

    pass


class SchemaParseError(CsvGraphError):
    """Raised when a schema is empty or declares no table at all."""

    pass


class PathNotFoundError(CsvGraphError):
    """Raised when a table is unknown or two tables are not connected."""

    def __init__(self, source: str, target: str, reason: str) -> None:
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"No path from '{source}' to '{target}': {reason}")


class JoinTypeMismatchError(CsvGraphError):
    """Raised when two join columns hold values of incompatible kinds."""

    def __init__(self, left_column: str, left_kind: str, right_column: str, right_kind: str) -> None:
        self.left_column = left_column
        self.left_kind = left_kind
        self.right_column = right_column
        self.right_kind = right_kind
        super().__init__(
            f"Cannot join {left_column} ({left_kind}) with {right_column} ({right_kind}): "
            "values are not comparable"
        )


class JoinColumnError(CsvGraphError):
    """Raised when a join column is missing from the loaded data."""

    pass


class SourceFileError(CsvGraphError):
    """Raised when a schema or CSV file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read '{path}': {reason}")


class ConfigError(CsvGraphError):
    """Raised when config.json or a weights file is malformed."""

    pass


class ParseWarning(UserWarning):
    """A schema statement was skipped because it could not be parsed."""

    pass


class DanglingReferenceWarning(UserWarning):
    """A foreign key points at a table or column that does not exist."""

    pass


class CacheCorruptionWarning(UserWarning):
    """The cached graph could not be read back and will be rebuilt."""

    pass
