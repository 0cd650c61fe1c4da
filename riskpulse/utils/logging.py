"""
Structured logging utilities for riskpulse.

Centralizes logging configuration so the CLI, ingestion pipeline and
gateways log consistently. Standard library logging with a human-readable
formatter by default and an optional JSON formatter for structured logs
(useful when the service runs under a log collector).

Usage:
    from riskpulse.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("batch stored", extra={"kind": "risk", "rows": 12})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes present on every LogRecord; anything else arrived via `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Serialize one record, promoting `extra=` fields to top-level keys."""
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "thread": record.threadName,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    # Older call sites pass a nested dict as `extra={"extra": {...}}`.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log collectors."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(threadName)s | %(name)s | %(message)s"

# Third-party loggers that are noisy at the root level.
_QUIET_LOGGERS = {
    "psycopg.pool": "WARNING",
}


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging for the CLI and library users.

    Parameters
    ----------
    level : str
        Logging level name, case-insensitive (e.g., "debug", "INFO").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    force : bool
        Replace an existing root configuration. With False, a process that
        already configured logging (e.g., a host application) is left alone.
    """
    if not force and logging.getLogger().handlers:
        return
    level = level.upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": _CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {name: {"level": lvl} for name, lvl in _QUIET_LOGGERS.items()},
            "root": {"handlers": ["stderr"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
