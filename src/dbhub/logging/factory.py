"""Logger factory and global logging setup.

``configure_logging`` installs the stdlib handlers (stderr, plus an optional
rotating file) and the structlog processor chain for text or JSON output.
Loggers handed out before configuration keep working; their level follows
later ``configure``/``set_level`` calls.

Example:
    >>> from dbhub.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", format="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Server started", transport="stdio")
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog

from ..config.models import LoggingConfig
from ..core.exceptions import ValidationError
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import PerformanceLogger
from .structured import StructuredLogger

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggerFactory:
    """Creates cached loggers and owns the process logging setup.

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure(LoggingConfig(level="DEBUG"))
        >>> logger = factory.get_logger("dbhub.server")
    """

    def __init__(self, settings: Optional[LoggingConfig] = None) -> None:
        self.settings = settings or LoggingConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}

    def configure(self, settings: LoggingConfig) -> None:
        """Apply ``settings``, replacing any earlier setup."""
        self.settings = settings
        self._install_handlers()
        self._install_structlog()
        for logger in self._loggers.values():
            logger.set_level(settings.level)
        self.initialized = True

    def _install_handlers(self) -> None:
        level = getattr(logging, self.settings.level)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        handlers: List[logging.Handler] = [ConsoleHandler(colors=self.settings.format == "text")]
        if self.settings.file_path:
            handlers.append(RotatingFileHandler(
                self.settings.file_path,
                max_bytes=self.settings.max_file_size,
                backup_count=self.settings.backup_count,
            ))

        # structlog renders the final line; stdlib only routes it.
        formatter = logging.Formatter("%(message)s")
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

    def _install_structlog(self) -> None:
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]
        if self.settings.format == "json":
            processors.append(structlog.processors.JSONRenderer(default=str))
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def _ensure_configured(self) -> None:
        # Leave an externally configured structlog (e.g. test capture) alone.
        if not self.initialized and not structlog.is_configured():
            self.configure(self.settings)

    def get_logger(self, name: str) -> StructuredLogger:
        self._ensure_configured()
        if name not in self._loggers:
            self._loggers[name] = StructuredLogger(name, level=self.settings.level)
        return self._loggers[name]

    def get_performance_logger(self, name: str) -> PerformanceLogger:
        """Performance logger reporting through ``perf.<name>``."""
        if name not in self._performance_loggers:
            self._performance_loggers[name] = PerformanceLogger(
                name,
                logger=self.get_logger(f"perf.{name}"),
            )
        return self._performance_loggers[name]

    def set_level(self, level: str) -> None:
        """Change the level of the root logger and every cached logger."""
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValidationError(f"Invalid log level: {level}", context={"level": level})

        self.settings.level = level
        logging.getLogger().setLevel(getattr(logging, level))
        for logger in self._loggers.values():
            logger.set_level(level)

    def shutdown(self) -> None:
        """Drop cached loggers and return to the unconfigured state."""
        self._loggers.clear()
        self._performance_loggers.clear()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory(level={self.settings.level!r}, "
            f"format={self.settings.format!r}, initialized={self.initialized})"
        )


_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "text",
    file_path: Optional[Union[str, Path]] = None,
) -> None:
    """Configure DBHub logging globally.

    Example:
        >>> configure_logging(level="DEBUG", format="json")
    """
    _global_factory.configure(LoggingConfig(level=level, format=format, file_path=file_path))


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger from the global factory.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Connected", connector="postgres")
    """
    return _global_factory.get_logger(name)


def get_performance_logger(name: str) -> PerformanceLogger:
    """Get or create a performance logger from the global factory.

    Example:
        >>> perf_logger = get_performance_logger("connectors.mysql")
        >>> with perf_logger.measure("get_table_indexes", table="orders"):
        ...     ...
    """
    return _global_factory.get_performance_logger(name)


def get_factory() -> LoggerFactory:
    return _global_factory
