"""Logging setup for the tab manager and its CLI.

Saves fire on debounce timer threads and restore may run on its own thread,
so every record carries the thread name next to the logger name.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
PACKAGE_LOGGER = "forgetabs"
DEFAULT_LOG_PATH = Path("~/.config/forgetabs/logs/forgetabs.log")
_FALLBACK_LOG_PATH = Path(".forgetabs/logs/forgetabs.log")
_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s:%(lineno)d %(message)s"


def normalize_level(value: str) -> str | None:
    """Map a user supplied level name onto a ``LOG_LEVELS`` key, or ``None``."""
    normalized = value.strip().upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in LOG_LEVELS:
        return None
    return normalized


def default_log_path() -> Path:
    try:
        resolved = DEFAULT_LOG_PATH.expanduser()
    except RuntimeError:
        resolved = (Path.cwd() / _FALLBACK_LOG_PATH).resolve()
    return resolved


def resolve_log_path(log_file: str | Path | None) -> Path:
    """Expand a configured log file; an empty setting means the default path."""
    if not log_file or not str(log_file).strip():
        return default_log_path()
    try:
        path = Path(log_file).expanduser()
    except RuntimeError:
        path = Path(log_file)
    return path if path.is_absolute() else path.resolve()


def _file_handler(path: Path, formatter: py_logging.Formatter) -> py_logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    resolved = LOG_LEVELS[normalize_level(level) or "INFO"]

    logger = py_logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = py_logging.Formatter(_FORMAT)

    stream_handler = py_logging.StreamHandler(stream or sys.stderr)
    stream_handler.setLevel(resolved)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    file_handler = _file_handler(resolve_log_path(log_file), formatter) if log_file else None
    if file_handler is not None:
        logger.addHandler(file_handler)
        # The file keeps DEBUG detail even when the console is quieter.
        logger.setLevel(py_logging.DEBUG)
    else:
        logger.setLevel(resolved)

    logger.propagate = False
    return logger
