"""DBHub exception hierarchy.

Every failure that crosses a component boundary is raised as one of the
classes below, carrying an error code and optional context so the resource
and tool layers can turn it into a structured response.

Classes:
    DBHubException: Base exception for all DBHub operations
    ConfigurationError: Configuration and startup parameter errors
    DSNFormatError: Malformed or unroutable connection strings
    ConnectionError: Connect, disconnect and liveness probe failures
    IntrospectionError: Metadata query failures
    ExecutionError: Submitted SQL statement failures
    ReadOnlyViolationError: Statements rejected by read-only mode

Example:
    >>> try:
    ...     await connector.connect()
    ... except ConnectionError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

from typing import Any, Dict, Optional


class DBHubException(Exception):
    """Base exception for all DBHub operations.

    Attributes:
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise DBHubException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"operation": "get_tables", "schema": "public"}
        ... )
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Initialize DBHub exception.

        Args:
            message: Human-readable error description
            code: Unique error code (defaults to the class default or class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.code: str = code or self.default_code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[BaseException] = cause

    @property
    def message(self) -> str:
        """The raw message, without the error code prefix."""
        return super().__str__()

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


# Error code constants for common scenarios
class ErrorCodes:
    """Error codes for DBHub exceptions and response envelopes."""

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    DSN_MISSING = "DSN_MISSING"
    DSN_INVALID = "DSN_INVALID"
    DSN_UNSUPPORTED = "DSN_UNSUPPORTED"
    CONNECTOR_ALREADY_REGISTERED = "CONNECTOR_ALREADY_REGISTERED"
    CONNECTOR_NOT_FOUND = "CONNECTOR_NOT_FOUND"

    # Connection errors
    CONNECTION_FAILED = "CONNECTION_FAILED"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    AUTH_FAILED = "AUTH_FAILED"
    NOT_CONNECTED = "NOT_CONNECTED"
    ALREADY_CONNECTED = "ALREADY_CONNECTED"
    DISCONNECT_FAILED = "DISCONNECT_FAILED"

    # Introspection errors
    INTROSPECTION_FAILED = "INTROSPECTION_FAILED"
    ROUTINE_NOT_FOUND = "ROUTINE_NOT_FOUND"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"

    # Execution errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    READONLY_VIOLATION = "READONLY_VIOLATION"

    # Resource and tool envelope codes
    SCHEMAS_ERROR = "SCHEMAS_ERROR"
    TABLES_ERROR = "TABLES_ERROR"
    TABLE_STRUCTURE_ERROR = "TABLE_STRUCTURE_ERROR"
    TABLE_INDEXES_ERROR = "TABLE_INDEXES_ERROR"
    PROCEDURES_ERROR = "PROCEDURES_ERROR"
    PROCEDURE_DETAIL_ERROR = "PROCEDURE_DETAIL_ERROR"
    EXECUTION_ERROR = "EXECUTION_ERROR"

    # Lifecycle
    INIT_FAILED = "INIT_FAILED"
    CLEANUP_FAILED = "CLEANUP_FAILED"


class ConfigurationError(DBHubException):
    """Configuration related errors.

    Raised when configuration is invalid, missing, or cannot be processed.
    """

    default_code = ErrorCodes.CONFIG_INVALID


class ValidationError(ConfigurationError):
    """Data validation errors."""

    default_code = ErrorCodes.CONFIG_VALIDATION_FAILED


class DSNFormatError(ConfigurationError):
    """Malformed or unroutable connection string.

    The message never contains the raw DSN; callers pass a redacted echo.
    """

    default_code = ErrorCodes.DSN_INVALID


class ConnectionError(DBHubException):
    """Connect, disconnect and liveness probe failures."""

    default_code = ErrorCodes.CONNECTION_FAILED


class IntrospectionError(DBHubException):
    """A metadata query against the backend catalog failed."""

    default_code = ErrorCodes.INTROSPECTION_FAILED


class RoutineNotFoundError(IntrospectionError):
    """The named stored procedure or function does not exist."""

    default_code = ErrorCodes.ROUTINE_NOT_FOUND


class ExecutionError(DBHubException):
    """A submitted SQL statement failed.

    ``context["statement_index"]`` holds the zero-based position of the
    failing statement within its batch.
    """

    default_code = ErrorCodes.QUERY_EXECUTION_FAILED


class ReadOnlyViolationError(ExecutionError):
    """A statement's leading keyword is outside the read-only allow-list."""

    default_code = ErrorCodes.READONLY_VIOLATION


def create_error_from_exception(
    exc: BaseException,
    error_class: type = DBHubException,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> DBHubException:
    """Create a DBHub exception from a driver or library exception.

    DBHub exceptions pass through untouched so that their original code
    and context survive re-raising.

    Args:
        exc: Original exception to convert
        error_class: DBHub exception type to produce
        message: Override message (uses original if not provided)
        code: Error code to assign
        context: Additional context information

    Returns:
        A DBHub exception wrapping ``exc``

    Example:
        >>> try:
        ...     await pool.fetch(sql)
        ... except Exception as e:
        ...     raise create_error_from_exception(
        ...         e, IntrospectionError, context={"operation": "get_tables"}
        ...     ) from e
    """
    if isinstance(exc, DBHubException):
        return exc

    return error_class(
        message or str(exc),
        code=code,
        context=context or {},
        cause=exc,
    )
