"""Timing for connector introspection calls and SQL batches.

Every ``measure`` block is logged when it ends and folded into per-operation
statistics. Blocks slower than the logger's threshold are logged as
warnings so slow catalog queries stand out in stderr.

Example:
    >>> perf_logger = PerformanceLogger("connectors.postgres")
    >>> with perf_logger.measure("get_tables", schema="public") as timer:
    ...     tables = await connector.get_tables("public")
    >>> timer.duration_ms
    3.1
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Generator, Optional

from ..core.utils import FormatUtils
from .structured import StructuredLogger

DEFAULT_SLOW_THRESHOLD = 1.0


@dataclass
class OperationStats:
    """Aggregated timings of one operation name."""

    operation: str
    calls: int = 0
    failures: int = 0
    total_seconds: float = 0.0
    slowest_seconds: float = 0.0
    last_error: Optional[str] = None

    def record(self, seconds: float, error: Optional[str] = None) -> None:
        self.calls += 1
        self.total_seconds += seconds
        self.slowest_seconds = max(self.slowest_seconds, seconds)
        if error is not None:
            self.failures += 1
            self.last_error = error

    @property
    def average_ms(self) -> float:
        return self.total_seconds / self.calls * 1000 if self.calls else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "calls": self.calls,
            "failures": self.failures,
            "average_ms": round(self.average_ms, 3),
            "slowest_ms": round(self.slowest_seconds * 1000, 3),
            "last_error": self.last_error,
        }


class TimingContext:
    """Times one block and logs its outcome.

    Failures are logged at error level with the exception message and the
    exception propagates.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
        slow_threshold: float = DEFAULT_SLOW_THRESHOLD,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self.slow_threshold = slow_threshold
        self.duration: Optional[float] = None
        self.error: Optional[str] = None
        self._started: Optional[float] = None

    @property
    def duration_ms(self) -> Optional[float]:
        return self.duration * 1000 if self.duration is not None else None

    def __enter__(self) -> "TimingContext":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.duration = time.perf_counter() - (self._started or time.perf_counter())
        if exc_type is not None:
            self.error = getattr(exc_val, "message", None) or str(exc_val) or exc_type.__name__

        if self.logger is None:
            return

        duration = FormatUtils.format_duration(self.duration)
        if self.error is not None:
            self.logger.error(
                "Operation failed",
                operation=self.operation,
                duration=duration,
                error=self.error,
                **self.metadata,
            )
        elif self.duration >= self.slow_threshold:
            self.logger.warning(
                "Slow operation",
                operation=self.operation,
                duration=duration,
                **self.metadata,
            )
        else:
            self.logger.debug(
                "Operation completed",
                operation=self.operation,
                duration=duration,
                **self.metadata,
            )


class PerformanceLogger:
    """Measures named operations and keeps their statistics.

    Example:
        >>> perf_logger = PerformanceLogger("executor")
        >>> with perf_logger.measure("execute_sql", statement_count=3):
        ...     await executor.execute(sql)
        >>> perf_logger.stats("execute_sql").calls
        1
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        slow_threshold: float = DEFAULT_SLOW_THRESHOLD,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.slow_threshold = slow_threshold
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._stats: Dict[str, OperationStats] = {}

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Time the enclosed block under ``operation``.

        Args:
            operation: Operation name, e.g. ``get_tables``
            **metadata: Logged with the outcome (schema, table, ...)
        """
        timer = TimingContext(
            operation,
            logger=self.logger if self.auto_log else None,
            metadata=metadata,
            slow_threshold=self.slow_threshold,
        )
        try:
            with timer:
                yield timer
        finally:
            if timer.duration is not None:
                self._stats.setdefault(operation, OperationStats(operation)).record(
                    timer.duration, timer.error
                )

    def stats(self, operation: str) -> OperationStats:
        """Statistics of ``operation``; empty if it was never measured."""
        return self._stats.get(operation, OperationStats(operation))

    def summary(self) -> Dict[str, Any]:
        return {name: stats.to_dict() for name, stats in sorted(self._stats.items())}

    def reset(self, operation: Optional[str] = None) -> None:
        if operation:
            self._stats.pop(operation, None)
        else:
            self._stats.clear()

    def __repr__(self) -> str:
        return f"PerformanceLogger(name={self.name!r}, operations={len(self._stats)})"
