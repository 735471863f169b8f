"""Resource handlers.

Each handler asks the active connector for one piece of metadata and wraps
the result in the uniform envelope. Failures never escape a handler: they
come back as an error envelope with a resource-specific code and the
underlying message.
"""

from typing import Any, Awaitable, Callable, Optional

from dbhub.core.exceptions import DBHubException, ErrorCodes, IntrospectionError
from dbhub.database.manager import ConnectorManager
from dbhub.logging import get_logger
from dbhub.resources.formatter import Envelope, error_response, success_response
from dbhub.resources.uris import (
    indexes_uri,
    procedure_uri,
    procedures_uri,
    schemas_uri,
    table_uri,
    tables_uri,
)

logger = get_logger("dbhub.resources")


def _error_message(error: BaseException) -> str:
    return error.message if isinstance(error, DBHubException) else str(error)


class ResourceHandlers:
    """Envelope-producing handlers bound to a ``ConnectorManager``."""

    def __init__(self, manager: ConnectorManager) -> None:
        self.manager = manager

    async def _respond(
        self,
        uri: str,
        produce: Callable[[], Awaitable[Any]],
        *,
        what: str,
        code: str,
    ) -> Envelope:
        try:
            return success_response(uri, await produce())
        except Exception as e:
            logger.warning(
                "Resource request failed",
                uri=uri,
                code=code,
                error_type=type(e).__name__,
                error=_error_message(e),
            )
            return error_response(uri, f"Error retrieving {what}: {_error_message(e)}", code)

    async def schemas(self) -> Envelope:
        async def produce() -> Any:
            schemas = await self.manager.connector.get_schemas()
            return {"schemas": schemas, "count": len(schemas)}

        return await self._respond(
            schemas_uri(), produce, what="schemas", code=ErrorCodes.SCHEMAS_ERROR
        )

    async def tables(self, schema: str) -> Envelope:
        async def produce() -> Any:
            tables = await self.manager.connector.get_tables(schema)
            return {"tables": tables, "schema": schema, "count": len(tables)}

        return await self._respond(
            tables_uri(schema), produce, what="tables", code=ErrorCodes.TABLES_ERROR
        )

    async def table_structure(self, schema: str, table: str) -> Envelope:
        async def produce() -> Any:
            connector = self.manager.connector
            if not await connector.table_exists(table, schema):
                raise IntrospectionError(
                    f"Table '{table}' does not exist in schema '{schema}'",
                    code=ErrorCodes.TABLE_NOT_FOUND,
                    context={"schema": schema, "table": table},
                )
            columns = await connector.get_table_schema(table, schema)
            return {
                "table": table,
                "schema": schema,
                "columns": [column.to_dict() for column in columns],
                "count": len(columns),
            }

        return await self._respond(
            table_uri(schema, table),
            produce,
            what="table structure",
            code=ErrorCodes.TABLE_STRUCTURE_ERROR,
        )

    async def table_indexes(self, schema: str, table: str) -> Envelope:
        async def produce() -> Any:
            indexes = await self.manager.connector.get_table_indexes(table, schema)
            return {
                "table": table,
                "schema": schema,
                "indexes": [index.to_dict() for index in indexes],
                "count": len(indexes),
            }

        return await self._respond(
            indexes_uri(schema, table),
            produce,
            what="table indexes",
            code=ErrorCodes.TABLE_INDEXES_ERROR,
        )

    async def procedures(self, schema: str) -> Envelope:
        async def produce() -> Any:
            procedures = await self.manager.connector.get_stored_procedures(schema)
            return {"procedures": procedures, "schema": schema, "count": len(procedures)}

        return await self._respond(
            procedures_uri(schema),
            produce,
            what="stored procedures",
            code=ErrorCodes.PROCEDURES_ERROR,
        )

    async def procedure_detail(self, schema: str, procedure: str) -> Envelope:
        async def produce() -> Any:
            details = await self.manager.connector.get_stored_procedure_detail(procedure, schema)
            return {"procedure": procedure, "schema": schema, "details": details.to_dict()}

        return await self._respond(
            procedure_uri(schema, procedure),
            produce,
            what="procedure details",
            code=ErrorCodes.PROCEDURE_DETAIL_ERROR,
        )

    @staticmethod
    def listing(uri: str, key: str, items: list, schema: Optional[str] = None) -> Envelope:
        """Envelope for a list captured ahead of time (eager resources)."""
        data: dict = {key: list(items)}
        if schema is not None:
            data["schema"] = schema
        data["count"] = len(items)
        return success_response(uri, data)
