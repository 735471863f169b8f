"""Connector base class and shared introspection helpers."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncGenerator,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)

from ..config.models import ConnectionConfig
from ..core.base import AsyncComponent
from ..core.exceptions import (
    ConnectionError,
    DBHubException,
    ErrorCodes,
    IntrospectionError,
)
from ..core.protocols import ExecutionBackend
from ..logging import StructuredLogger, get_logger, get_performance_logger
from .dsn import DSNParser
from .executor import ANSI, Dialect, ReadOnlyPolicy, SQLExecutor
from .models import SQLResult, StoredProcedure, TableColumn, TableIndex


class IndexRow(NamedTuple):
    """One catalog row describing a single column of an index."""
    index_name: str
    column_name: str
    seq: int
    is_unique: bool
    is_primary: bool


def group_index_rows(rows: Iterable[IndexRow]) -> List[TableIndex]:
    """Merge per-column catalog rows into one ``TableIndex`` per index name.

    Columns are ordered by key sequence. Uniqueness and primary-key flags
    come from the first row seen for each index. Indexes keep first-seen
    order.
    """
    indexes: Dict[str, TableIndex] = {}
    keys: Dict[str, List[Tuple[int, str]]] = {}

    for row in rows:
        if row.index_name not in indexes:
            indexes[row.index_name] = TableIndex(
                index_name=row.index_name,
                is_unique=bool(row.is_unique),
                is_primary=bool(row.is_primary),
            )
            keys[row.index_name] = []
        keys[row.index_name].append((int(row.seq), row.column_name))

    for name, index in indexes.items():
        index.column_names = [column for _, column in sorted(keys[name], key=lambda k: k[0])]

    return list(indexes.values())


class DefinitionStrategy(NamedTuple):
    """A named way of fetching a routine definition."""
    name: str
    fetch: Callable[[], Awaitable[Optional[str]]]


async def resolve_definition(
    initial: Optional[str],
    strategies: Sequence[DefinitionStrategy],
    logger: Optional[StructuredLogger] = None,
) -> Optional[str]:
    """Return the first non-empty definition from an ordered fallback chain.

    ``initial`` is the value already at hand (usually a catalog column). A
    strategy runs only when everything before it produced nothing. A failing
    strategy is logged and skipped. The result may be None.
    """
    if initial and initial.strip():
        return initial

    for strategy in strategies:
        try:
            definition = await strategy.fetch()
        except Exception as e:
            if logger:
                logger.warning(
                    "Routine definition lookup failed",
                    strategy=strategy.name,
                    error=str(e),
                )
            continue
        if definition and definition.strip():
            return definition

    return None


class BaseConnector(AsyncComponent[ConnectionConfig], ABC):
    """Base class for backend connectors.

    A connector owns one backend-native pool for its whole connected life.
    ``connect`` creates the pool and runs a ``SELECT 1`` probe before
    returning; there is no reconnect after ``disconnect``.

    Subclasses provide the pool lifecycle (``_create_pool``,
    ``_close_pool``), an ``ExecutionBackend`` over the pool, the current
    schema lookup and the catalog queries.

    Class attributes:
        id: Connector identifier, also the registry key
        name: Display name
        dsn_parser: Parser producing this connector's configuration
        readonly_keywords: Leading keywords allowed in read-only mode
        dialect: Lexical rules for statement splitting
    """

    component_name = "BaseConnector"

    id: ClassVar[str] = "base"
    name: ClassVar[str] = "Base"
    dsn_parser: ClassVar[DSNParser] = DSNParser()
    readonly_keywords: ClassVar[Tuple[str, ...]] = ("select",)
    dialect: ClassVar[Dialect] = ANSI

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config)
        self.logger = get_logger(f"dbhub.connectors.{self.id}")
        self.perf_logger = get_performance_logger(f"connectors.{self.id}")
        self._pool: Any = None
        self._executor: Optional[SQLExecutor] = None

    @classmethod
    def from_dsn(cls, dsn: str) -> "BaseConnector":
        """Build an unconnected connector from a DSN."""
        return cls(cls.dsn_parser.parse(dsn))

    @classmethod
    def schemes(cls) -> Tuple[str, ...]:
        return cls.dsn_parser.schemes

    @classmethod
    def sample_dsn(cls) -> str:
        return cls.dsn_parser.sample_dsn

    @property
    def is_connected(self) -> bool:
        return self.is_initialized and self._pool is not None

    def get_connection_info(self) -> Dict[str, Any]:
        return {
            "connector": self.id,
            "dsn": self.config.redacted_dsn,
            "host": self.config.host,
            "port": self.config.port,
            "database": self.config.database,
            "ssl": self.config.ssl_enabled,
            "connected": self.is_connected,
        }

    # Lifecycle

    async def connect(self, dsn: Optional[str] = None) -> None:
        """Create the pool and probe it.

        Args:
            dsn: Optional DSN replacing the configuration given at construction

        Raises:
            DSNFormatError: If ``dsn`` is malformed
            ConnectionError: If pool creation or the liveness probe fails
        """
        if dsn is not None:
            if self.is_connected:
                raise ConnectionError(
                    f"{self.name} connector is already connected",
                    code=ErrorCodes.ALREADY_CONNECTED,
                    context={"connector": self.id},
                )
            self.update_config(self.dsn_parser.parse(dsn))

        await self.initialize()

    async def disconnect(self) -> None:
        """Close the pool.

        Raises:
            ConnectionError: If the pool fails to close cleanly
        """
        try:
            await self.cleanup(suppress_errors=False)
        except Exception as e:
            raise ConnectionError(
                str(e),
                code=ErrorCodes.DISCONNECT_FAILED,
                context={"connector": self.id},
                cause=e,
            ) from e

    async def _async_initialize(self) -> None:
        self.logger.info(f"Connecting to {self.name} database", dsn=self.config.redacted_dsn)

        try:
            pool = await self._create_pool()
        except Exception as e:
            raise self._connection_error(e) from e

        try:
            await self._probe(pool)
        except Exception as e:
            await self._discard_pool(pool)
            raise self._connection_error(e) from e

        self._pool = pool
        self._executor = SQLExecutor(
            self._backend(pool),
            dialect=self.dialect,
            policy=ReadOnlyPolicy(self.readonly_keywords, self.dialect),
        )
        self.logger.info(f"Successfully connected to {self.name} database", connector=self.id)

    async def _async_cleanup(self) -> None:
        pool, self._pool, self._executor = self._pool, None, None
        if pool is not None:
            await self._close_pool(pool)
            self.logger.info(f"{self.name} connection pool closed", connector=self.id)

    async def _discard_pool(self, pool: Any) -> None:
        try:
            await self._close_pool(pool)
        except Exception as e:
            self.logger.warning("Failed to close pool after failed probe", error=str(e))

    async def _probe(self, pool: Any) -> None:
        await self._backend(pool).run("SELECT 1")

    def _connection_error(self, error: BaseException) -> ConnectionError:
        """Map a driver exception raised while connecting to ``ConnectionError``."""
        if isinstance(error, ConnectionError):
            return error
        return ConnectionError(
            f"Failed to connect to {self.name} database: {error}",
            code=ErrorCodes.CONNECTION_FAILED,
            context={
                "connector": self.id,
                "dsn": self.config.redacted_dsn,
            },
            cause=error,
        )

    @abstractmethod
    async def _create_pool(self) -> Any:
        """Create the backend-native pool."""

    @abstractmethod
    async def _close_pool(self, pool: Any) -> None:
        """Close the backend-native pool."""

    @abstractmethod
    def _backend(self, pool: Any) -> ExecutionBackend:
        """Wrap ``pool`` as an ``ExecutionBackend``."""

    # Shared plumbing

    def _require_pool(self) -> Any:
        if self._pool is None:
            raise ConnectionError(
                "Not connected to database",
                code=ErrorCodes.NOT_CONNECTED,
                context={"connector": self.id},
            )
        return self._pool

    @asynccontextmanager
    async def _introspection(self, operation: str, **context: Any) -> AsyncGenerator[Any, None]:
        """Run a catalog query block, typing driver failures as IntrospectionError.

        Yields the pool. The driver's message is kept unchanged.
        """
        pool = self._require_pool()
        with self.perf_logger.measure(operation, **context):
            try:
                yield pool
            except DBHubException:
                raise
            except Exception as e:
                raise IntrospectionError(
                    str(e),
                    context={"connector": self.id, "operation": operation, **context},
                    cause=e,
                ) from e

    async def _resolve_schema(self, schema: Optional[str]) -> str:
        """Return ``schema`` or the connection's current schema."""
        if schema:
            return schema
        return await self._current_schema()

    @abstractmethod
    async def _current_schema(self) -> str:
        """Ask the backend for its current schema/database."""

    # Capability set

    @abstractmethod
    async def get_schemas(self) -> List[str]:
        """List schema names."""

    @abstractmethod
    async def get_tables(self, schema: Optional[str] = None) -> List[str]:
        """List table and view names in ``schema`` (current schema by default)."""

    @abstractmethod
    async def table_exists(self, table_name: str, schema: Optional[str] = None) -> bool:
        """Check whether ``table_name`` exists in ``schema``."""

    @abstractmethod
    async def get_table_schema(
        self, table_name: str, schema: Optional[str] = None
    ) -> List[TableColumn]:
        """List columns of ``table_name`` in ordinal order."""

    @abstractmethod
    async def get_table_indexes(
        self, table_name: str, schema: Optional[str] = None
    ) -> List[TableIndex]:
        """List indexes of ``table_name`` with columns in key order."""

    @abstractmethod
    async def get_stored_procedures(self, schema: Optional[str] = None) -> List[str]:
        """List procedure and function names in ``schema``."""

    @abstractmethod
    async def get_stored_procedure_detail(
        self, procedure_name: str, schema: Optional[str] = None
    ) -> StoredProcedure:
        """Describe one routine.

        Raises:
            RoutineNotFoundError: If no routine has that name
        """

    async def execute_sql(self, sql: str, *, readonly: bool = False) -> SQLResult:
        """Execute one or more semicolon-separated statements.

        Raises:
            ReadOnlyViolationError: If ``readonly`` and any statement is not allowed
            ExecutionError: If a statement fails
        """
        self._require_pool()
        assert self._executor is not None
        return await self._executor.execute(sql, readonly=readonly)
