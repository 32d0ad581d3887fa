"""Structured logging configuration with structlog.

structlog renders through stdlib logging so uvicorn, starlette and our own
modules share one set of handlers. Format and level come from the server
settings; when a caller passes neither, the LOG_FORMAT and LOG_LEVEL
environment variables are used:
- LOG_FORMAT: "json" for log aggregation, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

VALID_LOG_FORMATS = ("console", "json")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

SHARED_PROCESSORS = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace Enum instances (outcomes, phases, error codes) with their .value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def resolve_log_format(value: str | None = None) -> str:
    """Normalize a log format, reading LOG_FORMAT when none is given. Unset means console."""
    if value is None:
        value = os.environ.get("LOG_FORMAT", "")
    value = value.strip().lower() or "console"
    if value not in VALID_LOG_FORMATS:
        msg = f"Invalid log format {value!r}. Must be one of {', '.join(VALID_LOG_FORMATS)}."
        raise ValueError(msg)
    return value


def resolve_log_level(value: str | int | None = None) -> int:
    """Turn a level name (or LOG_LEVEL when none is given) into a stdlib level."""
    if isinstance(value, int):
        return value
    if value is None:
        value = os.environ.get("LOG_LEVEL", "INFO")
    name = value.strip().upper()
    if name not in VALID_LOG_LEVELS:
        msg = f"Invalid log level {value!r}. Must be one of {', '.join(VALID_LOG_LEVELS)}."
        raise ValueError(msg)
    return getattr(logging, name)


def _build_formatter(*, json_output: bool, colors: bool = False) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_log_level, structlog.processors.TimeStamper(fmt="iso")],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(
    log_dir: Path | str | None = None,
    *,
    level: str | int | None = None,
    log_format: str | None = None,
) -> Path | None:
    """Configure structlog with stdout and an optional file handler.

    When log_dir is given a timestamped log file is created inside it
    (except under pytest). Returns the log file path, or None.
    """
    json_output = resolve_log_format(log_format) == "json"
    stdlib_level = resolve_log_level(level)

    # format_exc_info runs in the formatter so tracebacks are rendered once per handler.
    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(stdlib_level)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_build_formatter(json_output=json_output, colors=sys.stdout.isatty()))
    root_logger.addHandler(stdout_handler)

    if log_dir is None or _is_test():
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    file_path = dir_path / f"{timestamp}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(_build_formatter(json_output=json_output))
    root_logger.addHandler(file_handler)
    return file_path
