"""Resource tree registration.

Two layers are registered on the FastMCP server:

* Parameterized templates covering every schema, resolved on each read.
* Concrete resources for the default schema, so clients that only list
  resources (without expanding templates) still see its tables and
  routines. The table and routine names are snapshotted once at startup and
  never refreshed; the structure, index and detail reads stay live.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from fastmcp import FastMCP

from dbhub.database.manager import ConnectorManager
from dbhub.logging import get_logger
from dbhub.resources.formatter import to_json
from dbhub.resources.handlers import ResourceHandlers
from dbhub.resources.uris import (
    INDEXES_TEMPLATE,
    PROCEDURE_TEMPLATE,
    PROCEDURES_TEMPLATE,
    SCHEMAS_TEMPLATE,
    TABLE_TEMPLATE,
    TABLES_TEMPLATE,
    indexes_uri,
    procedure_uri,
    procedures_uri,
    table_uri,
    tables_uri,
)

JSON_MIME_TYPE = "application/json"


@dataclass
class SchemaSnapshot:
    """Table and routine names of one schema, captured once."""
    schema: str
    tables: List[str] = field(default_factory=list)
    procedures: List[str] = field(default_factory=list)


class ResourceTreeBuilder:
    """Registers the resource tree of one server.

    Example:
        >>> builder = ResourceTreeBuilder(server, manager, "public")
        >>> builder.register_templates()
        >>> await builder.register_default_schema()
    """

    def __init__(self, server: FastMCP, manager: ConnectorManager, default_schema: str = "public") -> None:
        self.server = server
        self.manager = manager
        self.default_schema = default_schema
        self.handlers = ResourceHandlers(manager)
        self.logger = get_logger("dbhub.resources.tree")
        self.snapshot: Optional[SchemaSnapshot] = None
        self._templates_registered = False
        self._default_schema_registered = False

    def _add(self, uri: str, name: str, description: str, fn: Callable[..., Any]) -> None:
        self.server.resource(
            uri,
            name=name,
            description=description,
            mime_type=JSON_MIME_TYPE,
        )(fn)

    def register_templates(self) -> None:
        """Register ``db://schemas`` and the five per-schema templates."""
        if self._templates_registered:
            return
        handlers = self.handlers

        async def schemas() -> str:
            return to_json(await handlers.schemas())

        async def tables_in_schema(schema_name: str) -> str:
            return to_json(await handlers.tables(schema_name))

        async def table_structure_in_schema(schema_name: str, table_name: str) -> str:
            return to_json(await handlers.table_structure(schema_name, table_name))

        async def indexes_in_table(schema_name: str, table_name: str) -> str:
            return to_json(await handlers.table_indexes(schema_name, table_name))

        async def procedures_in_schema(schema_name: str) -> str:
            return to_json(await handlers.procedures(schema_name))

        async def procedure_detail_in_schema(schema_name: str, procedure_name: str) -> str:
            return to_json(await handlers.procedure_detail(schema_name, procedure_name))

        self._add(SCHEMAS_TEMPLATE, "schemas", "All schemas in the database", schemas)
        self._add(TABLES_TEMPLATE, "tables_in_schema", "Tables in a schema", tables_in_schema)
        self._add(
            TABLE_TEMPLATE,
            "table_structure_in_schema",
            "Column structure of a table",
            table_structure_in_schema,
        )
        self._add(INDEXES_TEMPLATE, "indexes_in_table", "Indexes of a table", indexes_in_table)
        self._add(
            PROCEDURES_TEMPLATE,
            "procedures_in_schema",
            "Stored procedures and functions in a schema",
            procedures_in_schema,
        )
        self._add(
            PROCEDURE_TEMPLATE,
            "procedure_detail_in_schema",
            "Details of a stored procedure or function",
            procedure_detail_in_schema,
        )
        self._templates_registered = True

    async def snapshot_default_schema(self) -> SchemaSnapshot:
        """List the default schema's tables and routines; cached after the first call."""
        if self.snapshot is None:
            connector = self.manager.connector
            schema = self.default_schema
            self.snapshot = SchemaSnapshot(
                schema=schema,
                tables=await connector.get_tables(schema),
                procedures=await connector.get_stored_procedures(schema),
            )
        return self.snapshot

    async def register_default_schema(self) -> int:
        """Register concrete resources for the default schema.

        Returns the number of resources registered. A failed snapshot is
        logged and leaves only the templates in place.
        """
        if self._default_schema_registered:
            return 0
        self._default_schema_registered = True

        try:
            snapshot = await self.snapshot_default_schema()
        except Exception as e:
            self.logger.warning(
                "Default schema snapshot failed; only templates are registered",
                schema=self.default_schema,
                error=str(e),
            )
            return 0

        schema = snapshot.schema
        handlers = self.handlers
        prefix = schema.replace(" ", "_")

        def table_list() -> str:
            return to_json(handlers.listing(tables_uri(schema), "tables", snapshot.tables, schema))

        def procedure_list() -> str:
            return to_json(
                handlers.listing(procedures_uri(schema), "procedures", snapshot.procedures, schema)
            )

        self._add(tables_uri(schema), f"{prefix}_tables", f"Tables in {schema}", table_list)
        self._add(
            procedures_uri(schema),
            f"{prefix}_procedures",
            f"Stored procedures and functions in {schema}",
            procedure_list,
        )
        registered = 2

        for table in snapshot.tables:
            self._register_table(schema, prefix, table)
            registered += 2

        for procedure in snapshot.procedures:
            self._register_procedure(schema, prefix, procedure)
            registered += 1

        self.logger.info(
            "Registered default schema resources",
            schema=schema,
            tables=len(snapshot.tables),
            procedures=len(snapshot.procedures),
            resources=registered,
        )
        return registered

    def _register_table(self, schema: str, prefix: str, table: str) -> None:
        handlers = self.handlers

        async def structure() -> str:
            return to_json(await handlers.table_structure(schema, table))

        async def indexes() -> str:
            return to_json(await handlers.table_indexes(schema, table))

        self._add(
            table_uri(schema, table),
            f"{prefix}_table_{table}_structure",
            f"Column structure of {schema}.{table}",
            structure,
        )
        self._add(
            indexes_uri(schema, table),
            f"{prefix}_table_{table}_indexes",
            f"Indexes of {schema}.{table}",
            indexes,
        )

    def _register_procedure(self, schema: str, prefix: str, procedure: str) -> None:
        handlers = self.handlers

        async def detail() -> str:
            return to_json(await handlers.procedure_detail(schema, procedure))

        self._add(
            procedure_uri(schema, procedure),
            f"{prefix}_procedure_{procedure}_detail",
            f"Details of {schema}.{procedure}",
            detail,
        )
