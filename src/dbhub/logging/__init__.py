"""DBHub structured logging.

All output goes to stderr (and optionally a rotating file); stdout is
reserved for the stdio protocol stream.

Example:
    >>> from dbhub.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Connector ready", connector="mysql")
    >>>
    >>> perf_logger = get_performance_logger("connectors.mysql")
    >>> with perf_logger.measure("get_tables"):
    ...     pass
"""

from .factory import (
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
)
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import OperationStats, PerformanceLogger, TimingContext
from .structured import StructuredLogger, current_context, new_request_id

__all__ = [
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "ConsoleHandler",
    "RotatingFileHandler",
    "PerformanceLogger",
    "OperationStats",
    "TimingContext",
    "current_context",
    "new_request_id",
    "StructuredLogger",
]
