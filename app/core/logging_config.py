# -*- coding: utf-8 -*-
"""
Logging configuration for the scheduler process.

Routes logs by severity for correct container/platform classification:
- DEBUG, INFO, WARNING → STDOUT
- ERROR, CRITICAL → STDERR

Uses QueueHandler + QueueListener so the event loop never blocks on
stdout/stderr; only the listener thread does.

Each record carries the correlation id of the job run that emitted it
("-" outside a run). The id is captured in the emitting task, before the
record crosses into the listener thread.
"""

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Optional

from app.utils.logging_helpers import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


class MaxLevelFilter(logging.Filter):
    """Allows only records up to a specified level (inclusive)."""

    def __init__(self, max_level):
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno <= self.max_level


class CorrelationIdFilter(logging.Filter):
    """Stamps record.correlation_id from the current job-run context."""

    def filter(self, record):
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "-"
        return True


_log_listener: Optional[QueueListener] = None


def setup_logging(level: str = "INFO") -> None:
    """
    Install the QueueHandler on the root logger and start the listener.

    Must be called before any logger is used. Calling it again replaces the
    previous listener.
    """
    global _log_listener

    if _log_listener is not None:
        _stop_log_listener()

    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(numeric_level)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    log_queue = queue.Queue()
    queue_handler = QueueHandler(log_queue)
    queue_handler.addFilter(CorrelationIdFilter())
    root_logger.addHandler(queue_handler)

    # Chatty third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)

    _log_listener = QueueListener(
        log_queue,
        stdout_handler,
        stderr_handler,
        respect_handler_level=True,
    )
    _log_listener.start()
    atexit.register(_stop_log_listener)


def _stop_log_listener():
    global _log_listener
    if _log_listener is not None:
        _log_listener.stop()
        _log_listener = None
