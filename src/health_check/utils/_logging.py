"""Structlog loggers for the supervisor.

Loggers built here are wrapped directly with ``structlog.wrap_logger`` and
never touch structlog's global configuration, so tests and the CLI can hold
several of them at once. Entries are rendered as JSON or as plain
``key=value`` text and go to stderr or to an appended log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "HEALTH_CHECK_DEBUG"


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Map a level name such as ``"warning"`` to its numeric value.

    Unknown names fall back to INFO. With ``respect_env`` set, a non-empty
    HEALTH_CHECK_DEBUG forces DEBUG whatever the name says.
    """
    if respect_env and getenv(DEBUG_ENV_VAR, None):
        return logging.DEBUG

    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _rotating_stdlib_logger(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Logger:
    # One private stdlib logger per call; structlog renders, the handler writes.
    target = logging.getLogger(f"health_check.{path.stem}.{id(path)}")
    target.handlers.clear()
    target.propagate = False
    target.setLevel(level)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    target.addHandler(handler)
    return target


def _renderers(log_format: LogFormatType) -> list[structlog.typing.Processor]:
    if log_format == "json":
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=False)]


def _create_logger(
    log_file_path: str = "",
    *,
    log_level: int = logging.INFO,
    log_format: LogFormatType = "text",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Build a self-contained structlog logger.

    Args:
        log_file_path: File to append entries to. Empty means stderr.
        log_level: Entries below this level are dropped.
        log_format: ``"json"`` or ``"text"``.
        max_bytes: Size at which the file is rotated. Rotation only happens
            when ``backup_count`` is given too.
        backup_count: How many rotated files to keep, paired with
            ``max_bytes``.

    Returns:
        A filtering bound logger writing to the chosen destination.
    """
    sink: Any
    if not log_file_path:
        sink = structlog.WriteLoggerFactory(file=sys.stderr)()
    else:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if max_bytes is not None and backup_count is not None:
            sink = _rotating_stdlib_logger(path, log_level, max_bytes, backup_count)
        else:
            sink = structlog.WriteLoggerFactory(file=path.open("a"))()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        *_renderers(log_format),
    ]

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            sink,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "text",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
    command: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Return the logger a supervised run reports through.

    Setting HEALTH_CHECK_DEBUG in the environment turns on DEBUG output no
    matter what ``level`` says. When ``command`` is given it is bound to
    every entry so that logs from several supervisors can be told apart.
    """
    logger = _create_logger(
        log_file,
        log_level=_log_level_from_string(level, respect_env=True),
        log_format=log_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    return logger.bind(command=command) if command else logger
