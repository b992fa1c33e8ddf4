"""Logging setup for retrycase loggers.

Every engine module logs through the standard library under the
"retrycase" namespace (retrycase.retry, retrycase.retry.bucket, ...).
configure_logging() attaches one handler to that namespace with either a
human-readable text format or JSON Lines for log aggregation.

Quick Start:
    >>> from retrycase.runtime.observability import configure_logging
    >>> configure_logging(format="text", level="INFO")
    >>> # Or from environment (RETRYCASE_LOG_LEVEL, RETRYCASE_LOG_FORMAT)
    >>> configure_logging(get_settings())
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal, TextIO

import orjson

if TYPE_CHECKING:
    from retrycase.foundation.config import RetrycaseSettings

ROOT_LOGGER = "retrycase"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LogFormat = Literal["json", "text"]

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """JSON Lines formatter: one object per record, extras included."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        data.update({k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS})
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(data, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(
    settings: RetrycaseSettings | None = None,
    *,
    format: LogFormat | None = None,  # noqa: A002 - matches settings field name
    level: str | None = None,
    output: TextIO | None = None,
) -> logging.Logger:
    """Configure the retrycase logger namespace.

    Explicit arguments win over settings. Calling again replaces the handler
    installed by the previous call.

    Args:
        settings: Source of level/format defaults (RetrycaseSettings.logging)
        format: "text" (human) or "json" (machine)
        level: Minimum level name - DEBUG, INFO, WARNING, ERROR
        output: Stream to write to (default: stderr)

    Returns:
        The configured "retrycase" logger
    """
    fmt = format or (settings.logging.format if settings else "text")
    lvl = (level or (settings.logging.level if settings else "WARNING")).upper()
    if fmt not in ("json", "text"):
        raise ValueError(f"Unknown format: {fmt}. Use 'text' or 'json'")

    handler = logging.StreamHandler(output or sys.stderr)
    handler.setFormatter(JsonFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    handler.set_name("retrycase")

    logger = logging.getLogger(ROOT_LOGGER)
    for existing in [h for h in logger.handlers if h.get_name() == "retrycase"]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, lvl, logging.WARNING))
    return logger
