"""Structured logger used throughout DBHub.

Every event carries the logger name, the logger's bound fields and the
task-local context. The context lives in a ``ContextVar`` shared by all
loggers, so fields set for one HTTP request (``request_id``) appear on every
event logged while that request is handled, whichever module logs it.

Example:
    >>> logger = StructuredLogger("dbhub.connectors.postgres")
    >>> with logger.context(schema="public"):
    ...     logger.info("Listing tables", table_count=12)
"""

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import ValidationError

_log_context: ContextVar[Dict[str, Any]] = ContextVar("dbhub_log_context", default={})


def current_context() -> Dict[str, Any]:
    """Fields attached to every event logged from the current task."""
    return dict(_log_context.get())


def push_context(**fields: Any) -> Token:
    return _log_context.set({**_log_context.get(), **fields})


def pop_context(token: Token) -> None:
    _log_context.reset(token)


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class StructuredLogger:
    """structlog-backed logger with bound fields and task-local context.

    Example:
        >>> logger = StructuredLogger("dbhub.executor").bind(connector="mysql")
        >>> with logger.operation("execute_sql", statement_count=3):
        ...     ...
    """

    def __init__(self, name: str, *, level: str = "INFO") -> None:
        self.name = name
        self._logger = structlog.get_logger(name)
        self._bound: Dict[str, Any] = {}
        self._stdlib_logger = logging.getLogger(name)
        self.set_level(level)

    def _event(self, **kwargs: Any) -> Dict[str, Any]:
        return {"logger": self.name, **self._bound, **_log_context.get(), **kwargs}

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Copy of this logger that adds ``fields`` to every event."""
        bound = StructuredLogger(self.name, level=self.get_level())
        bound._bound = {**self._bound, **fields}
        return bound

    @contextmanager
    def context(self, **fields: Any) -> Generator[None, None, None]:
        """Add ``fields`` to the task-local context for the enclosed block."""
        token = push_context(**fields)
        try:
            yield
        finally:
            pop_context(token)

    @contextmanager
    def request_scope(self, request_id: Optional[str] = None) -> Generator[str, None, None]:
        """Tag every event of the enclosed block with a request id."""
        request_id = request_id or new_request_id()
        with self.context(request_id=request_id):
            yield request_id

    @contextmanager
    def operation(self, operation: str, **fields: Any) -> Generator[None, None, None]:
        """Log the start, the outcome and the duration of a block.

        Failures are logged at error level and re-raised.
        """
        started = time.perf_counter()
        self.debug("Operation started", operation=operation, **fields)
        try:
            yield
        except Exception as e:
            self.error(
                "Operation failed",
                operation=operation,
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                error=getattr(e, "message", str(e)),
                error_type=type(e).__name__,
                **fields,
            )
            raise
        self.info(
            "Operation completed",
            operation=operation,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            **fields,
        )

    def set_level(self, level: str) -> None:
        """Raises ValidationError for unknown level names."""
        log_level = getattr(logging, str(level).upper(), None)
        if not isinstance(log_level, int):
            raise ValidationError(f"Unknown log level: {level}", code="UNKNOWN_LOG_LEVEL")
        self._stdlib_logger.setLevel(log_level)

    def get_level(self) -> str:
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **self._event(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **self._event(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **self._event(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **self._event(**kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **self._event(**kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Error-level event with the active exception's traceback."""
        self._logger.error(message, exc_info=True, **self._event(**kwargs))

    def __repr__(self) -> str:
        return f"StructuredLogger(name={self.name!r}, level={self.get_level()!r})"
