"""Shared fixtures: an in-memory connector behind a real ConnectorManager."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from dbhub.core.exceptions import IntrospectionError, RoutineNotFoundError
from dbhub.database.manager import ConnectorManager
from dbhub.database.models import SQLResult, StoredProcedure, TableColumn, TableIndex
from dbhub.database.registry import ConnectorRegistry


class MemoryConnector:
    """Connector double holding a fixed catalog."""

    id = "memory"
    name = "Memory"

    def __init__(self) -> None:
        self.is_connected = True
        self.schemas: List[str] = ["public", "sales"]
        self.tables: Dict[str, List[str]] = {"public": ["users", "orders"], "sales": ["leads"]}
        self.columns: Dict[str, List[TableColumn]] = {
            "users": [
                TableColumn("id", "integer", False, None),
                TableColumn("email", "text", True, None),
            ],
        }
        self.indexes: Dict[str, List[TableIndex]] = {
            "users": [TableIndex("users_pkey", ["id"], True, True)],
        }
        self.procedures: Dict[str, List[str]] = {"public": ["refresh_stats"]}
        self.failures: Dict[str, Exception] = {}
        self.executed: List[Tuple[str, bool]] = []
        self.rows: List[Dict[str, Any]] = [{"n": 1}]

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    async def get_schemas(self) -> List[str]:
        self._maybe_fail("get_schemas")
        return list(self.schemas)

    async def get_tables(self, schema: Optional[str] = None) -> List[str]:
        self._maybe_fail("get_tables")
        return list(self.tables.get(schema or "public", []))

    async def table_exists(self, table_name: str, schema: Optional[str] = None) -> bool:
        return table_name in self.tables.get(schema or "public", [])

    async def get_table_schema(self, table_name: str, schema: Optional[str] = None) -> List[TableColumn]:
        self._maybe_fail("get_table_schema")
        return list(self.columns.get(table_name, []))

    async def get_table_indexes(self, table_name: str, schema: Optional[str] = None) -> List[TableIndex]:
        self._maybe_fail("get_table_indexes")
        return list(self.indexes.get(table_name, []))

    async def get_stored_procedures(self, schema: Optional[str] = None) -> List[str]:
        self._maybe_fail("get_stored_procedures")
        return list(self.procedures.get(schema or "public", []))

    async def get_stored_procedure_detail(
        self, procedure_name: str, schema: Optional[str] = None
    ) -> StoredProcedure:
        if procedure_name not in self.procedures.get(schema or "public", []):
            raise RoutineNotFoundError(
                f"Stored procedure '{procedure_name}' not found in {schema}"
            )
        return StoredProcedure(
            procedure_name=procedure_name,
            procedure_type="procedure",
            language="plpgsql",
            parameter_list="",
            definition="BEGIN END",
        )

    async def execute_sql(self, sql: str, *, readonly: bool = False) -> SQLResult:
        self._maybe_fail("execute_sql")
        self.executed.append((sql, readonly))
        return SQLResult(rows=list(self.rows))

    async def connect(self, dsn: Optional[str] = None) -> None:
        self.is_connected = True

    async def disconnect(self) -> None:
        self.is_connected = False


@pytest.fixture
def memory_connector() -> MemoryConnector:
    return MemoryConnector()


@pytest.fixture
def manager(memory_connector):
    """A ConnectorManager whose active connector is ``memory_connector``."""
    manager = ConnectorManager(ConnectorRegistry())
    manager._connector = memory_connector
    return manager


@pytest.fixture
def introspection_error():
    return IntrospectionError('relation "users" does not exist')
