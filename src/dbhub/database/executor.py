"""SQL execution engine.

Splits a submitted SQL text into statements, applies the read-only policy
to the whole batch before anything runs, and executes the statements in
source order.

A single statement runs directly against the pool. A batch of several
statements runs on one acquired connection, so session state (temporary
tables, variables, open transactions) carries from one statement to the
next. The connection is released however the batch ends.

Statement splitting is a small lexical scan rather than a SQL parser: it
skips semicolons inside quoted strings, quoted identifiers, comments and
PostgreSQL dollar-quoted bodies, and nothing more.
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from ..core.exceptions import (
    ConfigurationError,
    DBHubException,
    ExecutionError,
    ReadOnlyViolationError,
)
from ..core.protocols import ExecutionBackend, Row
from ..core.utils import StringUtils
from ..logging import get_logger, get_performance_logger
from .models import SQLResult

logger = get_logger(__name__)
perf_logger = get_performance_logger("executor")

_DOLLAR_TAG_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")
_KEYWORD_RE = re.compile(r"[A-Za-z_]+")


@dataclass(frozen=True)
class Dialect:
    """Lexical features that change where a statement ends."""

    backslash_escapes: bool = False
    hash_comments: bool = False
    dollar_quotes: bool = False
    bracket_identifiers: bool = False


ANSI = Dialect()


def _skip_quoted(sql: str, start: int, quote: str, backslash_escapes: bool) -> int:
    """Return the index just past the quote closing the literal at ``start``."""
    i = start + 1
    n = len(sql)
    while i < n:
        ch = sql[i]
        if backslash_escapes and ch == "\\" and quote != "`":
            i += 2
            continue
        if ch == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def _skip_comment(sql: str, i: int, dialect: Dialect) -> int:
    """If a comment starts at ``i`` return the index after it, else ``i``."""
    if sql.startswith("--", i) or (dialect.hash_comments and sql.startswith("#", i)):
        end = sql.find("\n", i)
        return len(sql) if end < 0 else end + 1
    if sql.startswith("/*", i):
        end = sql.find("*/", i + 2)
        return len(sql) if end < 0 else end + 2
    return i


def split_statements(sql: str, dialect: Dialect = ANSI) -> List[str]:
    """Split ``sql`` on top-level semicolons.

    Segments are trimmed; segments that are empty or hold only comments
    are dropped.

    Example:
        >>> split_statements("SELECT ';'; SELECT 2;")
        ["SELECT ';'", 'SELECT 2']
    """
    segments = []
    start = 0
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        after_comment = _skip_comment(sql, i, dialect)
        if after_comment != i:
            i = after_comment
            continue

        if ch in ("'", '"', "`"):
            i = _skip_quoted(sql, i, ch, dialect.backslash_escapes)
            continue

        if ch == "[" and dialect.bracket_identifiers:
            end = sql.find("]", i + 1)
            i = n if end < 0 else end + 1
            continue

        if ch == "$" and dialect.dollar_quotes:
            tag = _DOLLAR_TAG_RE.match(sql, i)
            if tag:
                end = sql.find(tag.group(0), tag.end())
                i = n if end < 0 else end + len(tag.group(0))
                continue

        if ch == ";":
            segments.append(sql[start:i])
            start = i + 1

        i += 1

    segments.append(sql[start:])

    return [
        segment.strip()
        for segment in segments
        if leading_keyword(segment, dialect)
    ]


def leading_keyword(statement: str, dialect: Dialect = ANSI) -> str:
    """Return the lower-cased first keyword of ``statement``.

    Leading whitespace, comments and opening parentheses are skipped.
    Returns an empty string when the statement holds no keyword.
    """
    i = 0
    n = len(statement)
    while i < n:
        if statement[i].isspace() or statement[i] == "(":
            i += 1
            continue
        after_comment = _skip_comment(statement, i, dialect)
        if after_comment == i:
            break
        i = after_comment

    match = _KEYWORD_RE.match(statement, i)
    return match.group(0).lower() if match else ""


class ReadOnlyPolicy:
    """Allow-list of leading keywords permitted in read-only mode."""

    def __init__(self, keywords: Iterable[str], dialect: Dialect = ANSI) -> None:
        self.keywords = frozenset(keyword.lower() for keyword in keywords)
        self.dialect = dialect

    def is_allowed(self, statement: str) -> bool:
        return leading_keyword(statement, self.dialect) in self.keywords

    def check(self, statements: Sequence[str]) -> None:
        """Reject the whole batch if any statement is not read-only.

        Raises:
            ReadOnlyViolationError: Naming the first offending statement
        """
        for index, statement in enumerate(statements):
            keyword = leading_keyword(statement, self.dialect)
            if keyword not in self.keywords:
                raise ReadOnlyViolationError(
                    f"Read-only mode is enabled; statement {index + 1} "
                    f"('{keyword.upper()}') is not allowed. "
                    f"Allowed statements: {', '.join(sorted(k.upper() for k in self.keywords))}",
                    context={
                        "statement_index": index,
                        "keyword": keyword,
                        "statement": StringUtils.compact_sql(statement, 120),
                    },
                )


class SQLExecutor:
    """Runs SQL batches against an ``ExecutionBackend``.

    Args:
        backend: Pool-level runner with scoped sessions
        dialect: Lexical rules used for splitting and keyword detection
        policy: Read-only allow-list; required for ``readonly=True`` calls
    """

    def __init__(
        self,
        backend: ExecutionBackend,
        *,
        dialect: Dialect = ANSI,
        policy: Optional[ReadOnlyPolicy] = None,
    ) -> None:
        self.backend = backend
        self.dialect = dialect
        self.policy = policy

    def split(self, sql: str) -> List[str]:
        return split_statements(sql, self.dialect)

    async def execute(self, sql: str, *, readonly: bool = False) -> SQLResult:
        """Execute every statement in ``sql`` in source order.

        Raises:
            ReadOnlyViolationError: Before any execution, if ``readonly`` and a
                statement is outside the allow-list
            ExecutionError: When a statement fails; later statements do not run
        """
        statements = self.split(sql)

        if readonly:
            if self.policy is None:
                raise ConfigurationError("Read-only execution requested without a policy")
            try:
                self.policy.check(statements)
            except ReadOnlyViolationError as e:
                logger.warning(
                    "Rejected SQL batch in read-only mode",
                    statement_count=len(statements),
                    keyword=e.context.get("keyword"),
                )
                raise

        if not statements:
            return SQLResult(rows=[])

        logger.debug(
            "Executing SQL batch",
            statement_count=len(statements),
            readonly=readonly,
            sql=StringUtils.compact_sql(sql),
        )

        with perf_logger.measure("execute_sql", statement_count=len(statements)):
            if len(statements) == 1:
                rows = await self._run(self.backend.run, statements[0], 0)
                return SQLResult(rows=list(rows or []))

            return SQLResult(rows=await self._run_batch(statements))

    async def _run_batch(self, statements: Sequence[str]) -> List[Row]:
        collected: List[Row] = []
        try:
            async with self.backend.session() as session:
                for index, statement in enumerate(statements):
                    rows = await self._run(session.run, statement, index)
                    if rows is not None:
                        collected.extend(rows)
        except DBHubException:
            raise
        except Exception as e:
            # Acquire or release failed outside any single statement.
            raise ExecutionError(
                str(e),
                context={"statement_count": len(statements)},
                cause=e,
            ) from e
        return collected

    async def _run(
        self,
        runner: Callable[[str], Awaitable[Optional[List[Row]]]],
        statement: str,
        index: int,
    ) -> Optional[List[Row]]:
        try:
            return await runner(statement)
        except DBHubException:
            raise
        except Exception as e:
            logger.error(
                "SQL statement failed",
                statement_index=index,
                statement=StringUtils.compact_sql(statement),
                error=str(e),
            )
            raise ExecutionError(
                str(e),
                context={
                    "statement_index": index,
                    "statement": StringUtils.compact_sql(statement),
                },
                cause=e,
            ) from e
