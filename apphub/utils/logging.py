"""structlog setup: JSON events in production, console lines in debug."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import structlog


def _file_handler(log_dir: str, max_bytes: int, backup_count: int):
    """Rotating apphub.log handler, or None when the directory is unusable."""
    if not log_dir:
        return None
    try:
        os.makedirs(log_dir, exist_ok=True)
        return RotatingFileHandler(
            os.path.join(log_dir, "apphub.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError:
        return None


def setup_logging(
    debug: bool = False,
    log_dir: str = "logs",
    log_max_bytes: int = 10_000_000,
    log_backup_count: int = 5,
) -> None:
    """Configure structlog and the stdlib root logger.

    Events go to stdout and, when ``log_dir`` is set and writable, to a
    rotating file. An empty ``log_dir`` disables file logging.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers = [logging.StreamHandler(sys.stdout)]
    file_handler = _file_handler(log_dir, log_max_bytes, log_backup_count)
    if file_handler is not None:
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name)
