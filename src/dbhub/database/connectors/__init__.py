"""Built-in backend connectors."""

from .mariadb import MariaDBConnector, MariaDBDSNParser
from .mysql import MySQLConnector, MySQLDSNParser, MySQLFamilyConnector
from .postgres import PostgresConnector, PostgresDSNParser
from .sqlserver import SQLServerConnector, SQLServerDSNParser

BUILTIN_CONNECTORS = (
    PostgresConnector,
    SQLServerConnector,
    MySQLConnector,
    MariaDBConnector,
)

__all__ = [
    "BUILTIN_CONNECTORS",
    "MariaDBConnector",
    "MariaDBDSNParser",
    "MySQLConnector",
    "MySQLDSNParser",
    "MySQLFamilyConnector",
    "PostgresConnector",
    "PostgresDSNParser",
    "SQLServerConnector",
    "SQLServerDSNParser",
]
