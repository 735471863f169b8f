"""Logging-specific test configuration and fixtures."""

import logging
import tempfile
from pathlib import Path

import pytest
import structlog

from dbhub.logging.factory import LoggerFactory


@pytest.fixture
def temp_log_file():
    """Create temporary log file for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir) / "logs" / "dbhub.log"


@pytest.fixture
def logger_factory():
    """Create clean logger factory for testing."""
    factory = LoggerFactory()
    yield factory
    factory.shutdown()


@pytest.fixture(autouse=True)
def cleanup_global_logging():
    """Restore structlog capture and the root logger after each test."""
    saved = structlog.get_config()
    yield

    from dbhub.logging.factory import _global_factory
    _global_factory.shutdown()

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.WARNING)

    structlog.configure(**saved)
