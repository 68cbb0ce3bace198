"""Core infrastructure module.

Contains configuration, filesystem helpers and exceptions.
"""

from .config import (
    Project,
    ProjectConfig,
    Settings,
    clear_settings_cache,
    find_sql_schema,
    get_cached_settings,
    get_settings,
    open_project,
    read_project_config,
    write_project_config,
)
from .exceptions import (
    CacheCorruptionWarning,
    ConfigError,
    CsvGraphError,
    DanglingReferenceWarning,
    JoinColumnError,
    JoinTypeMismatchError,
    ParseWarning,
    PathNotFoundError,
    SchemaParseError,
    SourceFileError,
)
from .fs import atomic_write_text, display_relative_path, read_text

__all__ = [
    # Config
    "Project",
    "ProjectConfig",
    "Settings",
    "clear_settings_cache",
    "find_sql_schema",
    "get_cached_settings",
    "get_settings",
    "open_project",
    "read_project_config",
    "write_project_config",
    # Exceptions
    "CacheCorruptionWarning",
    "ConfigError",
    "CsvGraphError",
    "DanglingReferenceWarning",
    "JoinColumnError",
    "JoinTypeMismatchError",
    "ParseWarning",
    "PathNotFoundError",
    "SchemaParseError",
    "SourceFileError",
    # Filesystem
    "atomic_write_text",
    "display_relative_path",
    "read_text",
]
