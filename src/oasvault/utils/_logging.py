"""structlog logger factories.

Every factory returns a self-contained ``FilteringBoundLogger``; none of them
touch structlog's global configuration, so services built in the same process
(tests, the CLI) can log to different sinks at different levels.

The effective level is, in order: ``OASVAULT_DEBUG`` (forces DEBUG), the
level passed in, ``OASVAULT_LOG_LEVEL``, then INFO.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

    from oasvault.config import LoggingConfig

LogFormatType = Literal["json", "text"]

DEBUG_ENV = "OASVAULT_DEBUG"
LEVEL_ENV = "OASVAULT_LOG_LEVEL"


def _resolve_level(level: str | None) -> int:
    if getenv(DEBUG_ENV):
        return logging.DEBUG
    name = level if level is not None else getenv(LEVEL_ENV, "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _processors(log_format: LogFormatType) -> "list[Processor]":  # noqa: UP037
    chain: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "json":
        chain += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # "timestamp [level] event key=value ..."
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    return chain


def _wrap(
    stream: TextIO, level: int, log_format: LogFormatType
) -> "FilteringBoundLogger":  # noqa: UP037
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.WriteLogger(stream),
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
        ),
    )


def create_file_logger(
    log_file_path: str | Path,
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger appending to ``log_file_path``, creating its directory.

    Args:
        log_file_path: Log file, opened in append mode.
        level: Level name (debug, info, warning, error).
        log_format: ``json`` lines or plain ``text``.
    """
    log_path = Path(log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    stream = log_path.open("a", encoding="utf-8")
    return _wrap(stream, _resolve_level(level), log_format)


def create_stderr_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger writing to stderr."""
    return _wrap(sys.stderr, _resolve_level(level), log_format)


def create_logger(
    config: "LoggingConfig",  # noqa: UP037
    *,
    component: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the service logger described by a ``[logging]`` config section.

    Writes to ``config.file`` when set, otherwise to stderr.

    Args:
        config: The logging configuration section.
        component: Bound to every entry as ``component`` when non-empty.

    Returns:
        A FilteringBoundLogger instance.
    """
    log_format = cast("LogFormatType", config.format.value)
    if config.file:
        logger = create_file_logger(
            config.file, level=config.level.value, log_format=log_format
        )
    else:
        logger = create_stderr_logger(level=config.level.value, log_format=log_format)
    return logger.bind(component=component) if component else logger


def create_null_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger that drops everything below CRITICAL.

    The default for services built without a context logger.
    """
    return _wrap(sys.stderr, logging.CRITICAL, "json")
