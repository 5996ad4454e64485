"""Logging setup for tscatalog.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. Applications and the CLI call
:func:`configure_logging` once to attach a console or JSON handler to
the ``tscatalog`` logger.

Usage:
    >>> from tscatalog.infrastructure.logging import configure_logging
    >>>
    >>> configure_logging(level="INFO", format="json")
    >>>
    >>> # Or from TSCATALOG_LOG_LEVEL / TSCATALOG_LOG_FORMAT
    >>> configure_logging(LogConfig.from_environment())
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TextIO

ROOT_LOGGER = "tscatalog"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Minimum level name.
        format: ``console`` or ``json``.
        color: Use ANSI colors in console output.
        stream: Output stream, stderr by default.
    """

    level: str = "WARNING"
    format: str = "console"
    color: bool = True
    stream: TextIO | None = None

    @classmethod
    def from_environment(cls, prefix: str = "TSCATALOG") -> "LogConfig":
        """Create config from environment variables."""
        return cls(
            level=os.getenv(f"{prefix}_LOG_LEVEL", "WARNING").upper(),
            format=os.getenv(f"{prefix}_LOG_FORMAT", "console").lower(),
            color=os.getenv("NO_COLOR") is None,
        )

    @classmethod
    def development(cls) -> "LogConfig":
        return cls(level="DEBUG", format="console", color=True)


# =============================================================================
# Formatters
# =============================================================================


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter.

    Example output:
        2024-01-15 10:30:00 WARNING [tscatalog.loader] Context 'awattar' appears more than once
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        *,
        color: bool = True,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        super().__init__()
        self._color = color
        self._timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime(self._timestamp_format)
        level = record.levelname.ljust(7)
        if self._color:
            color = self.COLORS.get(record.levelno, "")
            level = f"{color}{level}{self.RESET}"

        parts = [ts, level, f"[{record.name}]", record.getMessage()]
        fields = _extra_fields(record)
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))

        result = " ".join(parts)
        if record.exc_info:
            result = f"{result}\n{self.formatException(record.exc_info)}"
        return result


class JSONFormatter(logging.Formatter):
    """JSON log formatter, one object per line.

    Example output:
        {"timestamp":"2024-01-15T10:30:00+00:00","level":"warning","logger":"tscatalog.loader",...}
    """

    def __init__(self, *, sort_keys: bool = False) -> None:
        super().__init__()
        self._sort_keys = sort_keys

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_extra_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(
            data,
            sort_keys=self._sort_keys,
            ensure_ascii=False,
            default=str,
        )


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


# =============================================================================
# Global Configuration
# =============================================================================

_handler: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    config: LogConfig | None = None,
    *,
    level: str | None = None,
    format: str | None = None,
) -> logging.Logger:
    """Attach a handler to the ``tscatalog`` logger.

    Calling this again replaces the handler installed before.

    Args:
        config: Full configuration. Defaults to :class:`LogConfig`.
        level: Override of ``config.level``.
        format: Override of ``config.format``.

    Returns:
        The configured ``tscatalog`` logger.
    """
    global _handler

    config = config or LogConfig()
    level = (level or config.level).upper()
    format = (format or config.format).lower()

    if format == "json":
        formatter: logging.Formatter = JSONFormatter()
    elif format == "console":
        formatter = ConsoleFormatter(color=config.color)
    else:
        raise ValueError(f"Unknown log format: {format!r}")

    handler = logging.StreamHandler(config.stream or sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    with _lock:
        if _handler is not None:
            logger.removeHandler(_handler)
        logger.addHandler(handler)
        logger.setLevel(level)
        _handler = handler
    return logger


def reset_logging() -> None:
    """Remove the installed handler and restore the default level."""
    global _handler

    logger = logging.getLogger(ROOT_LOGGER)
    with _lock:
        if _handler is not None:
            logger.removeHandler(_handler)
            _handler = None
        logger.setLevel(logging.NOTSET)
