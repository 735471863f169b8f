"""Protocol definitions for DBHub components.

These protocols are the contracts between the resource/tool layers, the SQL
execution engine and the backend connectors. Resource handlers only ever see
a ``Connector``; the execution engine only ever sees an ``ExecutionBackend``.

Protocols:
    Connector: Uniform introspection and execution capability set
    ExecutionBackend: Pool-level statement runner with scoped sessions
    StatementSession: A single acquired backend connection

Example:
    >>> async def list_tables(connector: Connector) -> List[str]:
    ...     return await connector.get_tables()
"""

from typing import (
    Any,
    AsyncContextManager,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

Row = Dict[str, Any]


@runtime_checkable
class StatementSession(Protocol):
    """One dedicated backend connection held for the length of a batch."""

    async def run(self, statement: str) -> Optional[List[Row]]:
        """Run one statement.

        Returns:
            The rows produced, or None when the statement returns no rows
        """
        ...


@runtime_checkable
class ExecutionBackend(Protocol):
    """Statement runner bound to a backend-native pool."""

    async def run(self, statement: str) -> Optional[List[Row]]:
        """Run one statement on any pooled connection."""
        ...

    def session(self) -> AsyncContextManager[StatementSession]:
        """Acquire one connection; released when the context exits."""
        ...


@runtime_checkable
class Connector(Protocol):
    """Uniform capability set implemented by every backend connector."""

    id: str
    name: str

    @property
    def is_connected(self) -> bool:
        ...

    async def connect(self, dsn: Optional[str] = None) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def get_schemas(self) -> List[str]:
        ...

    async def get_tables(self, schema: Optional[str] = None) -> List[str]:
        ...

    async def table_exists(self, table_name: str, schema: Optional[str] = None) -> bool:
        ...

    async def get_table_schema(self, table_name: str, schema: Optional[str] = None) -> List[Any]:
        ...

    async def get_table_indexes(self, table_name: str, schema: Optional[str] = None) -> List[Any]:
        ...

    async def get_stored_procedures(self, schema: Optional[str] = None) -> List[str]:
        ...

    async def get_stored_procedure_detail(
        self, procedure_name: str, schema: Optional[str] = None
    ) -> Any:
        ...

    async def execute_sql(self, sql: str, *, readonly: bool = False) -> Any:
        ...
