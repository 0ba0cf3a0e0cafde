"""Tests for structlog setup and the optional rotating log file."""

import logging
from logging.handlers import RotatingFileHandler

import pytest
import structlog

from apphub.utils.logging import setup_logging


@pytest.fixture
def root_handlers():
    """Restore the root logger and structlog after each test."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    structlog.reset_defaults()


def test_empty_log_dir_logs_to_stdout_only(root_handlers):
    setup_logging(debug=True, log_dir="")

    assert len(root_handlers.handlers) == 1
    assert not isinstance(root_handlers.handlers[0], RotatingFileHandler)
    assert root_handlers.level == logging.DEBUG


def test_log_dir_adds_rotating_file(root_handlers, tmp_path):
    setup_logging(log_dir=str(tmp_path / "logs"), log_max_bytes=1024, log_backup_count=2)

    (file_handler,) = [h for h in root_handlers.handlers if isinstance(h, RotatingFileHandler)]
    assert file_handler.baseFilename == str(tmp_path / "logs" / "apphub.log")
    assert file_handler.maxBytes == 1024
    assert file_handler.backupCount == 2
    assert root_handlers.level == logging.INFO
    file_handler.close()
