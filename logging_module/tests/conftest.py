"""Pytest configuration and fixtures for logging_module tests."""

import logging
from pathlib import Path

import pytest

from logging_module.config import LoggingConfig


@pytest.fixture
def test_config(tmp_path: Path) -> LoggingConfig:
    """Create a test configuration writing JSON logs to a temp directory."""
    return LoggingConfig(
        log_level="DEBUG",
        log_format="text",
        log_path=str(tmp_path / "logs"),
        log_file_max_bytes=1024 * 1024,
        log_file_backup_count=2,
    )


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after a test reconfigures them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def make_record():
    """Factory for log records."""

    def _make(msg, *args, level=logging.INFO, exc_info=None, **extra):
        record = logging.LogRecord(
            name="test",
            level=level,
            pathname=__file__,
            lineno=1,
            msg=msg,
            args=args,
            exc_info=exc_info,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    return _make
