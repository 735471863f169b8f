"""Pytest configuration and shared fixtures.

Connector tests run against in-memory fakes of the asyncpg, aiomysql and
aioodbc pool APIs; no database server is ever contacted.
"""

import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pytest
import structlog

# Route structlog events into a capture list so tests stay quiet and can
# assert on what was logged
LOG_CAPTURE = structlog.testing.LogCapture()

structlog.configure(
    processors=[LOG_CAPTURE],
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=False,
)

Rows = List[Dict[str, Any]]
Result = Union[Rows, None, BaseException, Callable[[str, Tuple[Any, ...]], Any]]


def _normalize(sql: str) -> str:
    return re.sub(r"\s+", " ", sql).strip().lower()


class Responder:
    """Scripted query results.

    Rules are ``(fragment, result)`` pairs; the first rule whose fragment
    appears in the whitespace-normalized, lower-cased SQL wins. ``result``
    may be a list of row dicts, None (no result set), an exception to raise
    or a callable ``(sql, args) -> result``. An unmatched ``SELECT 1`` probe
    returns one row, any other unmatched SQL returns ``[]``.
    Every call is recorded in ``calls``.
    """

    def __init__(self, rules: Optional[Sequence[Tuple[str, Result]]] = None) -> None:
        self.rules: List[Tuple[str, Result]] = list(rules or [])
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def add(self, fragment: str, result: Result) -> "Responder":
        self.rules.append((fragment, result))
        return self

    def __call__(self, sql: str, args: Tuple[Any, ...] = ()) -> Optional[Rows]:
        self.calls.append((sql, tuple(args)))
        normalized = _normalize(sql)
        for fragment, result in self.rules:
            if _normalize(fragment) in normalized:
                if callable(result) and not isinstance(result, BaseException):
                    result = result(sql, tuple(args))
                if isinstance(result, BaseException):
                    raise result
                return None if result is None else [dict(row) for row in result]
        if normalized == "select 1":
            return [{"?column?": 1}]
        return []

    def executed(self) -> List[str]:
        return [sql for sql, _ in self.calls]


# asyncpg

class FakeAsyncpgConnection:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder

    async def fetch(self, sql: str, *args: Any) -> Rows:
        return self.responder(sql, args) or []

    async def fetchrow(self, sql: str, *args: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *args)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *args: Any) -> Any:
        row = await self.fetchrow(sql, *args)
        return next(iter(row.values())) if row else None


class FakeAsyncpgPool(FakeAsyncpgConnection):
    def __init__(self, responder: Responder) -> None:
        super().__init__(responder)
        self.closed = False
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def _acquire(self):
        self.acquired += 1
        try:
            yield FakeAsyncpgConnection(self.responder)
        finally:
            self.released += 1

    def acquire(self):
        return self._acquire()

    async def close(self) -> None:
        self.closed = True


# aiomysql

class FakeMySQLCursor:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.description: Optional[Tuple[Any, ...]] = None
        self._rows: Rows = []

    async def __aenter__(self) -> "FakeMySQLCursor":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def execute(self, sql: str, args: Any = None) -> int:
        rows = self.responder(sql, tuple(args or ()))
        if rows is None:
            self.description, self._rows = None, []
        else:
            columns = list(rows[0]) if rows else []
            self.description = tuple((name,) for name in columns)
            self._rows = rows
        return len(self._rows)

    async def fetchall(self) -> Rows:
        return list(self._rows)


class FakeMySQLConnection:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.cursor_classes: List[Any] = []
        self.closed = False

    def cursor(self, cursor_class: Any = None) -> FakeMySQLCursor:
        self.cursor_classes.append(cursor_class)
        return FakeMySQLCursor(self.responder)

    def close(self) -> None:
        self.closed = True


class FakeMySQLPool:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.closed = False
        self.acquired = 0
        self.released = 0
        self.connections: List[FakeMySQLConnection] = []

    @asynccontextmanager
    async def _acquire(self):
        self.acquired += 1
        try:
            connection = FakeMySQLConnection(self.responder)
            self.connections.append(connection)
            yield connection
        finally:
            self.released += 1

    def acquire(self):
        return self._acquire()

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


# aioodbc

class FakeODBCCursor:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.description: Optional[Tuple[Any, ...]] = None
        self._rows: List[Tuple[Any, ...]] = []

    async def __aenter__(self) -> "FakeODBCCursor":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def execute(self, sql: str, *args: Any) -> "FakeODBCCursor":
        rows = self.responder(sql, args)
        if rows is None:
            self.description, self._rows = None, []
        else:
            columns = list(rows[0]) if rows else []
            self.description = tuple((name, None, None, None, None, None, True) for name in columns)
            self._rows = [tuple(row[c] for c in columns) for row in rows]
        return self

    async def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self._rows)


class FakeODBCConnection:
    def __init__(self, responder: Responder) -> None:
        self.responder = responder

    def cursor(self) -> FakeODBCCursor:
        return FakeODBCCursor(self.responder)


class FakeODBCPool(FakeMySQLPool):
    @asynccontextmanager
    async def _acquire(self):
        self.acquired += 1
        try:
            yield FakeODBCConnection(self.responder)
        finally:
            self.released += 1


@pytest.fixture
def log_output() -> List[Dict[str, Any]]:
    """Structlog events emitted during the test."""
    LOG_CAPTURE.entries.clear()
    return LOG_CAPTURE.entries


@pytest.fixture
def responder() -> Responder:
    """Empty query script; add rules per test."""
    return Responder()


@pytest.fixture
def fake_pools() -> Dict[str, type]:
    """Fake pool classes keyed by driver name."""
    return {
        "asyncpg": FakeAsyncpgPool,
        "aiomysql": FakeMySQLPool,
        "aioodbc": FakeODBCPool,
    }


@pytest.fixture
def connect_with_pool():
    """Connect a connector through its real lifecycle using a fake pool."""

    async def _connect(connector: Any, pool: Any) -> Any:
        async def create_pool() -> Any:
            return pool

        connector._create_pool = create_pool
        await connector.connect()
        return connector

    return _connect


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests exercising connector code against fake pools"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    tests_root = Path(config.rootdir) / "tests"
    for item in items:
        try:
            test_path = Path(item.fspath).relative_to(tests_root)
        except ValueError:
            continue

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)

        if "database" in test_path.parts or "connectors" in str(test_path):
            item.add_marker(pytest.mark.database)
