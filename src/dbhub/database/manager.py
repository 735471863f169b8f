# src/dbhub/database/manager.py
"""Connector manager: owns the single active connector of a server process."""

from typing import Optional

from dbhub.core.exceptions import ConnectionError, ErrorCodes
from dbhub.core.protocols import Connector
from dbhub.database.base import BaseConnector
from dbhub.database.models import SQLResult
from dbhub.database.registry import ConnectorRegistry, create_default_registry
from dbhub.logging import get_logger


class ConnectorManager:
    """Holds the active connector and the process-wide read-only flag.

    The manager is passed explicitly to resource handlers and tools. A
    manager connects at most once; a second ``connect_with_dsn`` while a
    connector is active is refused rather than silently swapping backends.

    Example:
        >>> manager = ConnectorManager(create_default_registry(), readonly=True)
        >>> await manager.connect_with_dsn("postgres://reader:pw@localhost/app")
        >>> result = await manager.execute_sql("SELECT 1")
    """

    def __init__(
        self,
        registry: Optional[ConnectorRegistry] = None,
        *,
        readonly: bool = False,
    ) -> None:
        self.registry = registry if registry is not None else create_default_registry()
        self.readonly = readonly
        self.logger = get_logger("dbhub.database.manager")
        self._connector: Optional[Connector] = None

    @property
    def connector(self) -> Connector:
        """The active connector.

        Raises:
            ConnectionError: If no connector is active
        """
        if self._connector is None:
            raise ConnectionError(
                "No active connector. Call connect_with_dsn() first.",
                code=ErrorCodes.NOT_CONNECTED,
            )
        return self._connector

    @property
    def is_connected(self) -> bool:
        return self._connector is not None and self._connector.is_connected

    @property
    def connector_type(self) -> Optional[str]:
        return self._connector.id if self._connector is not None else None

    async def connect_with_dsn(self, dsn: str) -> BaseConnector:
        """Route ``dsn`` to a connector, connect it and make it active.

        Raises:
            DSNFormatError: If no connector claims the DSN or it is malformed
            ConnectionError: If a connector is already active or connecting fails
        """
        if self._connector is not None:
            raise ConnectionError(
                f"Already connected with connector '{self._connector.id}'",
                code=ErrorCodes.ALREADY_CONNECTED,
                context={"connector": self._connector.id},
            )

        connector = self.registry.create_connector(dsn)
        with self.logger.operation(
            "connect",
            connector=connector.id,
            dsn=connector.config.redacted_dsn,
            readonly=self.readonly,
        ):
            await connector.connect()
        self._connector = connector
        self.logger.info("Connector active", **connector.get_connection_info())
        return connector

    async def execute_sql(self, sql: str) -> SQLResult:
        """Run ``sql`` on the active connector under the manager's read-only flag."""
        return await self.connector.execute_sql(sql, readonly=self.readonly)

    async def disconnect(self) -> None:
        """Disconnect the active connector, if any."""
        connector, self._connector = self._connector, None
        if connector is None:
            return
        await connector.disconnect()
        self.logger.info("Connector disconnected", connector=connector.id)
