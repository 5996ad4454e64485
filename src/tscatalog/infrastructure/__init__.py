"""Configuration and logging shared by the library and the CLI."""

from tscatalog.infrastructure.config import (
    CatalogSettings,
    ConfigError,
    ConfigSourceError,
    ConfigValidationError,
    get_settings,
    load_settings,
    reset_settings,
)
from tscatalog.infrastructure.logging import (
    LogConfig,
    configure_logging,
    reset_logging,
)

__all__ = [
    "CatalogSettings",
    "ConfigError",
    "ConfigSourceError",
    "ConfigValidationError",
    "get_settings",
    "load_settings",
    "reset_settings",
    "LogConfig",
    "configure_logging",
    "reset_logging",
]
