"""
Structured logging utilities.

Thin layer over the standard ``logging`` module that adds:
- a JSON formatter (one object per line) and a plain text formatter
- bound context fields (``with_field``, ``with_fields``, ``with_error``)

Example:
    configure_logging(level="info", fmt="json")
    log = get_logger(__name__, component="beacon")
    log.with_field("count", 3).info("Generated beacons")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional, TextIO

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

FORMATS = ("json", "text")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord has; anything else was passed through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "fields"}


class JSONFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "fields", {}))
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Classic text lines with bound fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "fields", {})
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def parse_level(level: str) -> int:
    """
    Map a level name to a logging level.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"invalid log level: {level}") from None


def build_formatter(fmt: str) -> logging.Formatter:
    """
    Build a formatter by name ("json" or "text").

    Raises:
        ValueError: If the name is unknown
    """
    name = fmt.strip().lower()
    if name == "json":
        return JSONFormatter()
    if name == "text":
        return TextFormatter()
    raise ValueError(f"invalid log format: {fmt}")


def configure_logging(
    level: str = "info",
    fmt: str = "json",
    stream: Optional[TextIO] = None,
    logger_name: str = "accesslog_libs",
) -> logging.Logger:
    """
    Configure the package logger.

    Replaces any handlers previously installed by this function, so it is
    safe to call more than once.

    Args:
        level: debug, info, warn, error or fatal
        fmt: json or text
        stream: Output stream (default stderr)
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    log_level = parse_level(level)
    formatter = build_formatter(fmt)

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if getattr(handler, "_accesslog_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler._accesslog_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False
    return logger


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying bound fields.

    ``with_*`` methods return a new adapter; the original is unchanged.
    """

    def __init__(self, logger: logging.Logger, fields: Optional[dict[str, Any]] = None) -> None:
        super().__init__(logger, {})
        self.fields: dict[str, Any] = dict(fields or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = {**self.fields, **extra.get("fields", {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def with_field(self, key: str, value: Any) -> StructuredLogger:
        return StructuredLogger(self.logger, {**self.fields, key: value})

    def with_fields(self, **fields: Any) -> StructuredLogger:
        return StructuredLogger(self.logger, {**self.fields, **fields})

    def with_error(self, error: BaseException) -> StructuredLogger:
        return self.with_field("error", f"{type(error).__name__}: {error}")

    def set_level(self, level: str) -> None:
        """Set the level of the underlying logger."""
        self.logger.setLevel(parse_level(level))


def get_logger(name: str, **fields: Any) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name, usually ``__name__``
        **fields: Fields bound to every record

    Returns:
        StructuredLogger
    """
    return StructuredLogger(logging.getLogger(name), fields)
