"""DBHub core infrastructure.

Base classes, the exception hierarchy, protocols and small utilities shared
by every other DBHub package.

Modules:
    base: Component base classes with an async lifecycle
    exceptions: Exception hierarchy and error codes
    protocols: Connector and execution backend contracts
    utils: Utility functions

Example:
    >>> from dbhub.core import AsyncComponent, ErrorCodes
    >>> from dbhub.core.exceptions import ConnectionError
"""

from .base import AsyncComponent, BaseComponent, ConfigurableComponent
from .exceptions import (
    ConfigurationError,
    ConnectionError,
    DBHubException,
    DSNFormatError,
    ErrorCodes,
    ExecutionError,
    IntrospectionError,
    ReadOnlyViolationError,
    RoutineNotFoundError,
    ValidationError,
    create_error_from_exception,
)
from .protocols import Connector, ExecutionBackend, Row, StatementSession
from .utils import FormatUtils, QuoteUtils, StringUtils, ValidationUtils

__all__ = [
    # Base classes
    "BaseComponent",
    "ConfigurableComponent",
    "AsyncComponent",

    # Exceptions
    "DBHubException",
    "ConfigurationError",
    "ValidationError",
    "DSNFormatError",
    "ConnectionError",
    "IntrospectionError",
    "RoutineNotFoundError",
    "ExecutionError",
    "ReadOnlyViolationError",
    "ErrorCodes",
    "create_error_from_exception",

    # Protocols
    "Connector",
    "ExecutionBackend",
    "StatementSession",
    "Row",

    # Utilities
    "ValidationUtils",
    "StringUtils",
    "QuoteUtils",
    "FormatUtils",
]
