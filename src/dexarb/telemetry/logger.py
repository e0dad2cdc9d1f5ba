"""
Queue-based logging setup.

Log records are handed to a background thread so that slow terminals
or log files never stall the event loop while upstream requests are
in flight.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from dexarb.config.constants import (
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    MAX_LOG_QUEUE_SIZE,
    QUIET_LOGGERS,
)


class MillisecondFormatter(logging.Formatter):
    """Formatter with millisecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or LOG_DATE_FORMAT)
        return f"{stamp}.{int(record.msecs):03d}"


def build_handlers(level: int, log_file: Path | None = None) -> list[logging.Handler]:
    """Console handler at `level`, plus a DEBUG file handler when `log_file` is set."""
    formatter = MillisecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


class AsyncLogger:
    """
    Routes one logger hierarchy through a QueueListener thread.

    Calls on the logger only enqueue the record; the listener thread
    runs the real handlers.
    """

    def __init__(self, name: str, level: int, handlers: list[logging.Handler]) -> None:
        self._logger = logging.getLogger(name)
        self._level = level
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler = QueueHandler(self._queue)
        self._listener = QueueListener(self._queue, *handlers, respect_handler_level=True)
        self._running = False

    def start(self) -> None:
        """Attach the queue handler and start the listener thread."""
        if self._running:
            return
        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(self._level)
        self._listener.start()
        self._running = True

    def stop(self) -> None:
        """Flush pending records and detach the queue handler."""
        if not self._running:
            return
        self._listener.stop()
        self._logger.removeHandler(self._queue_handler)
        self._running = False


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> AsyncLogger:
    """
    Set up logging for the `dexarb` package.

    Root handlers are removed and noisy third-party loggers are raised
    to WARNING.

    Returns:
        Started AsyncLogger. Call `stop()` on shutdown to flush queued
        records.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    async_logger = AsyncLogger("dexarb", numeric_level, build_handlers(numeric_level, log_file))
    async_logger.start()
    return async_logger
