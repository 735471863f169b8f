"""DBHub - universal database gateway for the Model Context Protocol.

DBHub connects to one PostgreSQL, MySQL, MariaDB or SQL Server database and
exposes its schemas, tables, indexes and stored procedures as MCP resources,
plus an ``execute_sql`` tool with an optional read-only mode.

Modules:
    core: Base classes, exceptions and protocols
    config: Configuration models and environment loading
    logging: Structured logging framework
    database: Connectors, DSN parsing and SQL execution
    resources: MCP resource tree
    tools: MCP tools

Example:
    >>> from dbhub.database import ConnectorManager
    >>> manager = ConnectorManager(readonly=True)
    >>> await manager.connect_with_dsn("postgres://reader:pw@localhost:5432/app")
    >>> tables = await manager.connector.get_tables("public")
"""

__version__ = "0.1.0"
__title__ = "DBHub"
__description__ = "Universal database gateway for the Model Context Protocol"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
