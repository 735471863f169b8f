"""Database layer for DBHub.

Connectors, DSN parsing, the connector registry and manager, and the SQL
execution engine.

Supported backends:
- PostgreSQL (asyncpg)
- MySQL (aiomysql)
- MariaDB (aiomysql)
- Microsoft SQL Server (aioodbc)
"""

from .base import BaseConnector, DefinitionStrategy, IndexRow, group_index_rows, resolve_definition
from .dsn import DSN, DSNParser, get_scheme, parse_dsn, redact_dsn
from .executor import ANSI, Dialect, ReadOnlyPolicy, SQLExecutor, leading_keyword, split_statements
from .manager import ConnectorManager
from .models import SQLResult, StoredProcedure, TableColumn, TableIndex
from .registry import ConnectorRegistry, create_default_registry

__all__ = [
    "ANSI",
    "BaseConnector",
    "ConnectorManager",
    "ConnectorRegistry",
    "DSN",
    "DSNParser",
    "DefinitionStrategy",
    "Dialect",
    "IndexRow",
    "ReadOnlyPolicy",
    "SQLExecutor",
    "SQLResult",
    "StoredProcedure",
    "TableColumn",
    "TableIndex",
    "create_default_registry",
    "get_scheme",
    "group_index_rows",
    "leading_keyword",
    "parse_dsn",
    "redact_dsn",
    "resolve_definition",
    "split_statements",
]
