"""Central logging utilities for the crawler.

- One place to configure logging for the CLI, the crawl run and ad-hoc scripts.
- Human-readable console output (colored on a TTY) or one JSON object per record
  (LOG_FORMAT=json).
- Environment variables:
    LOG_LEVEL=INFO|DEBUG|... (default: INFO, or the level passed in)
    LOG_FORMAT=console|json (default: console)
    LOG_NO_COLOR=1 disables colors on the console format
    LOG_TIMEZONE=utc|local (default: local)

Usage:
    from ptcg_crawler.common.logging_utils import configure_logging, get_logger
    configure_logging(service="crawler")  # idempotent
    logger = get_logger(__name__)
    logger.info("Crawling rosters")

Repeated configure_logging() calls are no-ops unless `force=True` is passed.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

_STANDARD_ATTRS = {
    "args", "name", "msg", "levelno", "levelname", "pathname", "filename", "module",
    "exc_info", "exc_text", "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "stack_info", "taskName",
}

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def _timestamp(record: logging.LogRecord, tz_local: bool) -> datetime:
    ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return ts.astimezone() if tz_local else ts


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts_str = _timestamp(record, self.tz_local).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{ts_str} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname)
        return f"{color}{line}{self.RESET}" if color else line


class JsonFormatter(logging.Formatter):
    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": _timestamp(record, self.tz_local).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # extra=... fields
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in payload or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    service: str | None = None, *, level: str | None = None, force: bool = False
) -> None:
    """Configure root logging once.

    Parameters
    ----------
    service: Optional logical service name, attached as the 'service' field.
    level: Fallback level when LOG_LEVEL is not set (e.g. settings.log_level).
    force: Reconfigure even if logging was already configured.
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = os.getenv("LOG_LEVEL", level or "INFO").upper()
        log_format = os.getenv("LOG_FORMAT", "console").lower()
        tz_local = os.getenv("LOG_TIMEZONE", "local").lower() != "utc"
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)

        if log_format == "json":
            formatter: logging.Formatter = JsonFormatter(tz_local=tz_local)
        elif sys.stderr.isatty() and not no_color:
            formatter = ColorFormatter(tz_local=tz_local)
        else:
            formatter = logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(getattr(logging, log_level, logging.INFO))

        _ServiceLoggerAdapter.BASE_SERVICE = service
        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> LoggerLike:
    base = logging.getLogger(name)
    if _ServiceLoggerAdapter.BASE_SERVICE:
        return _ServiceLoggerAdapter(base, {"service": _ServiceLoggerAdapter.BASE_SERVICE})
    return base


class _ServiceLoggerAdapter(logging.LoggerAdapter):
    BASE_SERVICE: Optional[str] = None

    def process(self, msg: Any, kwargs: Dict[str, Any]):  # noqa: D401
        extra = kwargs.get("extra") or {}
        if "service" not in extra and self.extra.get("service"):
            extra["service"] = self.extra["service"]
        kwargs["extra"] = extra
        return msg, kwargs


def format_progress(message: str, current: int, total: int) -> str:
    percent = round(current / total * 100) if total > 0 else 0
    return f"{message} [{current}/{total}] ({percent}%)"


def log_progress(logger: LoggerLike, message: str, current: int, total: int) -> None:
    """Log a progress line such as 'Crawling rosters [3/10] (30%)'."""
    logger.info(format_progress(message, current, total))


def log_stats(logger: LoggerLike, stats: Mapping[str, Any]) -> None:
    """Log a 'Statistics:' header followed by one 'key: value' line per entry."""
    logger.info("Statistics:")
    for key, value in stats.items():
        logger.info(f"  {key}: {value}")


__all__ = [
    "configure_logging",
    "get_logger",
    "format_progress",
    "log_progress",
    "log_stats",
]
