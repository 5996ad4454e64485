"""Configuration management for tscatalog.

Settings are merged from several sources, processed in priority order
(higher priority overrides lower):

    CatalogSettings defaults
         |
         +---> FileConfigSource (YAML, JSON, TOML)   priority 50
         +---> EnvConfigSource (TSCATALOG_* vars)    priority 100
         +---> explicit overrides
         |
         v
    CatalogSettings

Usage:
    >>> from tscatalog.infrastructure.config import load_settings
    >>>
    >>> settings = load_settings("tscatalog.yaml")
    >>> settings.translations_dir
    PosixPath('translations')
    >>>
    >>> # Environment variables override the file
    >>> # TSCATALOG_DEFAULT_LOCALE=de_DE
"""

from __future__ import annotations

import json
import logging
import os
import threading
import tomllib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "TSCATALOG"
# Section name used when settings live in a shared configuration file
SECTION = "tscatalog"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(Exception):
    """Base configuration error."""

    pass


class ConfigValidationError(ConfigError):
    """Configuration validation error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Configuration validation failed: {', '.join(errors)}")


class ConfigSourceError(ConfigError):
    """Configuration source error."""

    pass


# =============================================================================
# Configuration Sources
# =============================================================================


class ConfigSource(ABC):
    """Abstract base class for configuration sources.

    Sources are processed in priority order, later ones override earlier.
    """

    def __init__(self, priority: int = 0) -> None:
        self._priority = priority

    @property
    def priority(self) -> int:
        return self._priority

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration from source.

        Returns:
            Dictionary of configuration values.
        """
        pass


class EnvConfigSource(ConfigSource):
    """Environment variable configuration source.

    Example:
        TSCATALOG_DEFAULT_LOCALE=de_DE
        TSCATALOG_LAZY=false

        Will produce:
        {"default_locale": "de_DE", "lazy": False}
    """

    def __init__(self, prefix: str = ENV_PREFIX, priority: int = 100) -> None:
        super().__init__(priority)
        self._prefix = f"{prefix}_"

    def load(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in os.environ.items():
            if key.startswith(self._prefix):
                result[key[len(self._prefix):].lower()] = self._parse_value(value)
        return result

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False
        if value.lower() in ("null", "none", ""):
            return None
        return value


class FileConfigSource(ConfigSource):
    """File-based configuration source.

    Supports YAML, JSON and TOML, detected from the file extension.
    Settings may sit at the top level or in a ``tscatalog`` section.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        required: bool = False,
        priority: int = 50,
    ) -> None:
        super().__init__(priority)
        self._path = Path(path)
        self._required = required

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            if self._required:
                raise ConfigSourceError(f"Configuration file not found: {self._path}")
            return {}

        content = self._path.read_text(encoding="utf-8")
        suffix = self._path.suffix.lower()
        try:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            elif suffix == ".toml":
                data = tomllib.loads(content)
            else:
                raise ConfigSourceError(f"Unsupported file format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigSourceError(f"Failed to load config {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigSourceError(f"Configuration in {self._path} is not a mapping")
        section = data.get(SECTION)
        if isinstance(section, dict):
            data = section

        base = self._path.parent
        directory = data.get("translations_dir")
        if directory and not Path(directory).is_absolute():
            data = {**data, "translations_dir": str(base / directory)}
        return data


# =============================================================================
# Settings
# =============================================================================


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")


@dataclass
class CatalogSettings:
    """Settings of catalog loading and lookup.

    Attributes:
        translations_dir: Directory holding the ``.ts`` files.
        default_locale: Locale used when no locale is set for a thread.
        fallback_locale: Last locale tried before the empty catalog.
        file_pattern: Glob pattern of catalog files.
        lazy: Load catalogs on first use instead of at startup.
        track_misses: Count lookups that find no message.
        log_level: Level of the ``tscatalog`` logger.
        log_format: ``console`` or ``json``.
    """

    translations_dir: Path | None = None
    default_locale: str = "en_US"
    fallback_locale: str = "en_US"
    file_pattern: str = "*.ts"
    lazy: bool = True
    track_misses: bool = True
    log_level: str = "WARNING"
    log_format: str = "console"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CatalogSettings":
        """Build settings from merged source values.

        Unknown keys are ignored. Values are coerced to the field types.

        Raises:
            ConfigValidationError: If a value is invalid.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        errors: list[str] = []

        if "translations_dir" in values:
            values["translations_dir"] = Path(values["translations_dir"])

        for key in ("lazy", "track_misses"):
            if key in values and not isinstance(values[key], bool):
                value = str(values[key]).lower()
                if value in ("1", "true", "yes", "on"):
                    values[key] = True
                elif value in ("0", "false", "no", "off"):
                    values[key] = False
                else:
                    errors.append(f"{key} must be a boolean, got {values[key]!r}")

        for key in ("default_locale", "fallback_locale", "file_pattern"):
            if key in values:
                values[key] = str(values[key])

        if "log_level" in values:
            values["log_level"] = str(values["log_level"]).upper()
            if values["log_level"] not in LOG_LEVELS:
                errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if "log_format" in values:
            values["log_format"] = str(values["log_format"]).lower()
            if values["log_format"] not in LOG_FORMATS:
                errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if errors:
            raise ConfigValidationError(errors)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.translations_dir is not None:
            data["translations_dir"] = str(self.translations_dir)
        return data


# =============================================================================
# Global Settings
# =============================================================================

_settings: CatalogSettings | None = None
_lock = threading.Lock()


def load_settings(
    config_file: str | Path | None = None,
    *,
    env_prefix: str = ENV_PREFIX,
    **overrides: Any,
) -> CatalogSettings:
    """Load settings and make them the process-wide settings.

    Args:
        config_file: Optional configuration file. Defaults to the file
            named by ``TSCATALOG_CONFIG``, if set.
        env_prefix: Environment variable prefix.
        **overrides: Values taking precedence over every source.

    Returns:
        Loaded settings.
    """
    global _settings

    sources: list[ConfigSource] = [EnvConfigSource(prefix=env_prefix)]
    config_file = config_file or os.environ.get(f"{env_prefix}_CONFIG")
    if config_file:
        sources.append(FileConfigSource(config_file, required=True))

    merged: dict[str, Any] = {}
    for source in sorted(sources, key=lambda s: s.priority):
        merged.update(source.load())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    settings = CatalogSettings.from_dict(merged)
    with _lock:
        _settings = settings
    logger.debug("Settings loaded: %s", settings.to_dict())
    return settings


def get_settings() -> CatalogSettings:
    """Get the process-wide settings, loading them on first use."""
    with _lock:
        settings = _settings
    if settings is None:
        return load_settings()
    return settings


def reset_settings() -> None:
    """Forget loaded settings."""
    global _settings

    with _lock:
        _settings = None
