"""Application configuration.

Two layers:
    Settings       - process settings from environment variables (and .env)
    ProjectConfig  - per-project options persisted in <project>/config.json
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError
from .fs import atomic_write_text

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".csvgraph"
CONFIG_FILE_NAME = "config.json"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings."""
    project_home: str
    log_level: str
    default_weight: int


def get_settings() -> Settings:
    """Load settings from environment variables."""
    raw_weight = os.getenv("CSVGRAPH_DEFAULT_WEIGHT", "1")
    try:
        default_weight = int(raw_weight)
    except ValueError as exc:
        raise ConfigError(f"CSVGRAPH_DEFAULT_WEIGHT must be a positive integer, got {raw_weight!r}") from exc
    if default_weight < 1:
        raise ConfigError(f"CSVGRAPH_DEFAULT_WEIGHT must be a positive integer, got {default_weight}")
    return Settings(
        project_home=os.getenv("CSVGRAPH_HOME", PROJECT_DIR_NAME),
        log_level=os.getenv("CSVGRAPH_LOG_LEVEL", "WARNING").upper(),
        default_weight=default_weight,
    )


# Singleton for caching settings
_settings_cache: Optional[Settings] = None


def get_cached_settings() -> Settings:
    """Get cached settings (loads once)."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = get_settings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    global _settings_cache
    _settings_cache = None


@dataclass(frozen=True)
class ProjectConfig:
    """Options stored in config.json. Relative paths resolve against the project root."""
    output_file: str = "output.csv"
    output_path: str = f"{PROJECT_DIR_NAME}/generated-files"
    source_path: str = "./"
    schema_path: Optional[str] = None
    weights_path: Optional[str] = None

    def with_schema(self, schema_path: str) -> "ProjectConfig":
        return replace(self, schema_path=schema_path)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ProjectConfig":
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in payload.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
            values[key] = value
        return cls(**values)


@dataclass(frozen=True)
class Project:
    """A csvgraph project: the working directory plus its state directory.

    Passed explicitly to every command; nothing here is global.
    """
    root: Path
    home: Path

    @property
    def config_file(self) -> Path:
        return self.home / CONFIG_FILE_NAME

    @property
    def cache_dir(self) -> Path:
        return self.home

    def resolve(self, path: str | Path) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.root / candidate


def open_project(settings: Settings, root: Path | None = None, create: bool = True) -> Project:
    """Locate (and by default create) the project directory under ``root``."""
    root = (root or Path.cwd()).resolve()
    home = Path(settings.project_home)
    if not home.is_absolute():
        home = root / home
    if create:
        try:
            home.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Failed to create project directory {home}: {exc}") from exc
    return Project(root=root, home=home)


def read_project_config(project: Project) -> ProjectConfig:
    """Read config.json, falling back to defaults when it does not exist."""
    if not project.config_file.exists():
        return ProjectConfig()
    try:
        with open(project.config_file, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed config file {project.config_file}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {project.config_file} must contain a JSON object")
    return ProjectConfig.from_payload(payload)


def write_project_config(project: Project, config: ProjectConfig) -> Path:
    atomic_write_text(project.config_file, json.dumps(asdict(config), indent=2) + "\n")
    return project.config_file


def find_sql_schema(directory: Path) -> Path | None:
    """Return the first ``*.sql`` file in ``directory`` (sorted by name)."""
    candidates = sorted(path for path in directory.glob("*.sql") if path.is_file())
    return candidates[0] if candidates else None
