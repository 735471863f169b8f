"""Tests for logging factory module."""

import logging
import sys
from unittest.mock import patch

import pytest

from dbhub.config.models import LoggingConfig
from dbhub.core.exceptions import ValidationError
from dbhub.logging.factory import (
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
)
from dbhub.logging.handlers import ConsoleHandler, RotatingFileHandler
from dbhub.logging.performance import PerformanceLogger
from dbhub.logging.structured import StructuredLogger


class TestLoggerFactory:
    """Test cases for LoggerFactory class."""

    def test_factory_initialization(self):
        """Test a new factory starts unconfigured with default settings."""
        factory = LoggerFactory()

        assert factory.settings.level == "INFO"
        assert factory.settings.format == "text"
        assert factory.initialized is False

    def test_get_logger_is_cached(self, logger_factory):
        """Test the same name returns the same logger."""
        first = logger_factory.get_logger("dbhub.test")

        assert isinstance(first, StructuredLogger)
        assert first is logger_factory.get_logger("dbhub.test")

    def test_get_logger_respects_preconfigured_structlog(self, logger_factory):
        """Test an already configured structlog is left alone."""
        logger_factory.get_logger("dbhub.test")

        assert logger_factory.initialized is False

    def test_get_performance_logger(self, logger_factory):
        """Test performance loggers are cached and wired to a structured logger."""
        perf = logger_factory.get_performance_logger("executor")

        assert isinstance(perf, PerformanceLogger)
        assert perf is logger_factory.get_performance_logger("executor")
        assert perf.logger.name == "perf.executor"

    def test_console_goes_to_stderr(self, logger_factory):
        """Test console output is attached to stderr only."""
        logger_factory.configure(LoggingConfig(level="debug", format="json"))

        console = [h for h in logging.getLogger().handlers if isinstance(h, ConsoleHandler)]
        assert len(console) == 1
        assert console[0].stream is sys.stderr
        assert console[0].colors is False
        assert logging.getLogger().level == logging.DEBUG
        assert logger_factory.initialized is True

    def test_configure_with_file(self, logger_factory, temp_log_file):
        """Test a file path adds a rotating file handler."""
        logger_factory.configure(LoggingConfig(level="WARNING", file_path=temp_log_file))

        handlers = logging.getLogger().handlers
        assert any(isinstance(h, RotatingFileHandler) for h in handlers)
        assert temp_log_file.parent.is_dir()
        assert logging.getLogger().level == logging.WARNING

    def test_configure_updates_cached_loggers(self, logger_factory):
        """Test loggers handed out earlier follow the new level."""
        logger = logger_factory.get_logger("dbhub.early")

        logger_factory.configure(LoggingConfig(level="ERROR"))

        assert logger.get_level() == "ERROR"

    def test_set_level(self, logger_factory):
        """Test set_level propagates to cached loggers and settings."""
        logger = logger_factory.get_logger("dbhub.level")

        logger_factory.set_level("error")

        assert logger.get_level() == "ERROR"
        assert logger_factory.settings.level == "ERROR"

    def test_set_level_invalid(self, logger_factory):
        """Test invalid level is rejected."""
        with pytest.raises(ValidationError):
            logger_factory.set_level("verbose")

    def test_shutdown_clears_state(self, logger_factory):
        """Test shutdown drops cached loggers."""
        logger_factory.get_logger("dbhub.shutdown")
        logger_factory.shutdown()

        assert logger_factory._loggers == {}
        assert logger_factory.initialized is False


class TestGlobalFunctions:
    """Test module-level convenience functions."""

    def test_get_logger_uses_global_factory(self):
        """Test get_logger returns loggers from the global factory."""
        assert get_logger("dbhub.global") is get_factory().get_logger("dbhub.global")

    def test_get_performance_logger_uses_global_factory(self):
        """Test get_performance_logger returns a cached instance."""
        assert get_performance_logger("global") is get_performance_logger("global")

    def test_configure_logging_builds_settings(self):
        """Test configure_logging validates into a LoggingConfig."""
        with patch.object(get_factory(), "configure") as configure:
            configure_logging(level="debug", format="json")

        settings = configure.call_args.args[0]
        assert settings.level == "DEBUG"
        assert settings.format == "json"
        assert settings.file_path is None
