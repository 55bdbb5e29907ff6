"""Logging utilities for repodocs builds.

Component loggers live under the ``repodocs`` hierarchy. Work done on behalf
of one documentation repository goes through a :class:`RepositoryLogAdapter`,
which tags every record with the repository name so interleaved output from
parallel builds stays attributable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "repodocs"
_CONSOLE_FORMAT = "[repodocs] %(levelname)s %(repository)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(repository)s%(message)s"


class RepositoryLogAdapter(logging.LoggerAdapter):
    """Attach the repository being processed to each record."""

    def __init__(self, logger: logging.Logger, repository: str) -> None:
        super().__init__(logger, {"repository": repository})

    @property
    def repository(self) -> str:
        return self.extra["repository"]

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), "repository": f"{self.repository}: "}
        return msg, kwargs


class _RepositoryFieldFilter(logging.Filter):
    """Give records logged outside a repository an empty ``repository`` field."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "repository"):
            record.repository = ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repodocs hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def repository_logger(name: str, repository: str) -> RepositoryLogAdapter:
    """Return the component logger `name` bound to one repository."""
    return RepositoryLogAdapter(get_logger(name), repository)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the repodocs logger with console output and an optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process don't duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(_RepositoryFieldFilter())
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(_RepositoryFieldFilter())
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["RepositoryLogAdapter", "configure_logging", "get_logger", "repository_logger"]
