"""Structured logging configuration with structlog.

Environment variables (read through ``LoggingSettings``):
- LOG_FORMAT: "json" for log aggregation, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".

Events are routed through stdlib logging so third-party loggers (uvicorn,
sqlite warnings) and pytest's caplog see the same stream.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, date, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from collections.abc import Callable, MutableMapping
    from typing import Any

    Processor = Callable[[object, str, MutableMapping[str, Any]], MutableMapping[str, Any]]

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("json", "console", "")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Access lines duplicate the submission and approval events.
_QUIET_LOGGERS = ("uvicorn.access",)


class LoggingSettings(BaseSettings):
    log_format: str = ""
    log_level: str = "INFO"

    @field_validator("log_format", mode="before")
    @classmethod
    def _check_format(cls, v: str) -> str:
        value = str(v).strip().lower()
        if value not in _LOG_FORMATS:
            raise ValueError(f"Invalid LOG_FORMAT={value!r}. Must be 'json', 'console', or unset.")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _check_level(cls, v: str) -> str:
        value = str(v).strip().upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL={value!r}. Must be one of {', '.join(_LOG_LEVELS)}.")
        return value

    @property
    def json_mode(self) -> bool:
        return self.log_format == "json"

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


def _serialize_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render Enums as their value and dates as ISO strings, one level deep."""

    def plain(value: object) -> object:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, date):
            return value.isoformat()
        return value

    for key, value in event_dict.items():
        if isinstance(value, dict):
            event_dict[key] = {k: plain(v) for k, v in value.items()}
        else:
            event_dict[key] = plain(value)
    return event_dict


def _add_service(service: str) -> Processor:
    def processor(_logger: object, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def _is_test() -> bool:
    return "pytest" in sys.modules


def shared_processors(service: str) -> list[Any]:
    """structlog processors applied before an event is handed to stdlib logging.

    ``format_exc_info`` runs in the handler formatter instead, once per output.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service(service),
        _serialize_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _formatter(*, json_mode: bool, colors: bool) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
    *,
    service: str = "ranking",
) -> Path | None:
    """Configure structlog with stdout and optional file output.

    Every event carries a ``service`` key. When log_dir is given (and we are
    not under pytest), events are also written to
    ``<log_dir>/<service>_<timestamp>.log``; that path is returned.
    """
    settings = LoggingSettings()
    if level is None:
        level = settings.level

    structlog.configure(
        processors=shared_processors(service),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_formatter(json_mode=settings.json_mode, colors=sys.stdout.isatty()))
    root_logger.addHandler(stdout_handler)

    if log_dir is None or _is_test():
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{service}_{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(_formatter(json_mode=settings.json_mode, colors=False))
    root_logger.addHandler(file_handler)
    return file_path
