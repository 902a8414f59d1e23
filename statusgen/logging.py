"""Logging utilities for statusgen commands."""

from __future__ import annotations

import logging
import os
from pathlib import Path

_LOGGER_NAME = "statusgen"
DEBUG_ENV_VAR = "STATUSGEN_DEBUG"
LOG_FILE_ENV_VAR = "STATUSGEN_LOG_FILE"
_TRUTHY = {"1", "true", "yes", "on"}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the statusgen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def debug_requested() -> bool:
    """True when ``STATUSGEN_DEBUG`` asks for debug output without ``--verbose``."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the statusgen logger.

    Console output is always attached. A file sink is added for ``log_file``, or
    for ``STATUSGEN_LOG_FILE`` when no path is passed. ``STATUSGEN_DEBUG=1``
    behaves like ``verbose=True``.
    """
    level = logging.DEBUG if verbose or debug_requested() else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[statusgen] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is None and os.environ.get(LOG_FILE_ENV_VAR):
        log_file = Path(os.environ[LOG_FILE_ENV_VAR]).expanduser()
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    logger.debug("Logging configured at %s", logging.getLevelName(level))
    return logger


__all__ = [
    "DEBUG_ENV_VAR",
    "LOG_FILE_ENV_VAR",
    "configure_logging",
    "debug_requested",
    "get_logger",
]
