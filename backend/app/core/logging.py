"""
Logging for Pocket Ledger.

Everything logs under the ``pocketledger`` logger tree to stdout. The level
comes from the LOG_LEVEL env var. ``LogContext`` brackets a unit of work
(such as a sync run) with start/finish lines that carry its
context and elapsed time.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any

ROOT_LOGGER = "pocketledger"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

# Per-request INFO lines from the HTTP and cloud clients drown out sync logs
NOISY_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Attach the stdout handler to the ``pocketledger`` logger once."""
    logger = logging.getLogger(ROOT_LOGGER)
    if logger.handlers:
        return logger

    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Log the start, end and duration of an operation.

    Usage:
        with LogContext(logger, "transactions sync", pending=3):
            ...

    Exceptions are logged and re-raised.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: Any) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context
        self.elapsed: float | None = None
        self._started = 0.0

    def _describe(self) -> str:
        if not self.context:
            return self.operation
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.operation} ({details})"

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.info(f"Starting {self._describe()}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        self.elapsed = time.perf_counter() - self._started
        if exc_type is not None:
            self.logger.error(
                f"Failed {self._describe()} after {self.elapsed:.2f}s: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"Finished {self._describe()} in {self.elapsed:.2f}s")
        return False


setup_logging()
