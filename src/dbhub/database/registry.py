# src/dbhub/database/registry.py
"""Connector registry: maps DSN schemes to connector classes."""

from typing import Dict, List, Optional, Tuple, Type

from dbhub.config.models import ConnectionConfig
from dbhub.core.exceptions import ConfigurationError, DSNFormatError, ErrorCodes
from dbhub.database.base import BaseConnector
from dbhub.database.dsn import get_scheme, redact_dsn
from dbhub.logging import get_logger


class ConnectorRegistry:
    """Registry of connector classes keyed by connector id.

    Every class claims one or more DSN schemes through its parser. A scheme
    can only be claimed once, and entries are never removed, so routing a
    DSN is deterministic for the life of the process.
    """

    def __init__(self) -> None:
        self.logger = get_logger("dbhub.database.registry")
        self._connectors: Dict[str, Type[BaseConnector]] = {}
        self._schemes: Dict[str, str] = {}

    def register(self, connector_class: Type[BaseConnector]) -> None:
        """Register a connector class.

        Raises:
            ConfigurationError: If the class is not a connector, or its id or
                one of its schemes is already registered
        """
        if not (isinstance(connector_class, type) and issubclass(connector_class, BaseConnector)):
            raise ConfigurationError(
                f"{connector_class!r} must extend BaseConnector",
                code=ErrorCodes.CONFIG_INVALID,
            )

        connector_id = connector_class.id
        if connector_id in self._connectors:
            raise ConfigurationError(
                f"Connector '{connector_id}' is already registered",
                code=ErrorCodes.CONNECTOR_ALREADY_REGISTERED,
                context={"connector": connector_id},
            )

        schemes = connector_class.schemes()
        for scheme in schemes:
            if scheme in self._schemes:
                raise ConfigurationError(
                    f"DSN scheme '{scheme}' is already claimed by connector "
                    f"'{self._schemes[scheme]}'",
                    code=ErrorCodes.CONNECTOR_ALREADY_REGISTERED,
                    context={"connector": connector_id, "scheme": scheme},
                )

        self._connectors[connector_id] = connector_class
        for scheme in schemes:
            self._schemes[scheme] = connector_id

        self.logger.debug(
            "Connector registered",
            connector=connector_id,
            schemes=list(schemes),
        )

    def get(self, connector_id: str) -> Type[BaseConnector]:
        """Return the class registered under ``connector_id``.

        Raises:
            ConfigurationError: If no such connector is registered
        """
        if connector_id not in self._connectors:
            raise ConfigurationError(
                f"No connector registered with id: {connector_id}",
                code=ErrorCodes.CONNECTOR_NOT_FOUND,
                context={
                    "connector": connector_id,
                    "available": self.connector_ids(),
                },
            )
        return self._connectors[connector_id]

    def find_for_dsn(self, dsn: str) -> Optional[Type[BaseConnector]]:
        """Return the connector class whose scheme matches ``dsn``, or None."""
        scheme = get_scheme(dsn)
        if scheme is None or scheme not in self._schemes:
            return None
        return self._connectors[self._schemes[scheme]]

    def connector_ids(self) -> List[str]:
        return list(self._connectors)

    def sample_dsns(self) -> Dict[str, str]:
        """Map every registered connector id to its sample DSN."""
        return {
            connector_id: connector_class.sample_dsn()
            for connector_id, connector_class in self._connectors.items()
        }

    def _supported_formats(self) -> str:
        return "Supported DSN formats:\n" + "\n".join(
            f"  - {connector_id}: {sample}"
            for connector_id, sample in self.sample_dsns().items()
        )

    def resolve(self, dsn: str) -> Tuple[Type[BaseConnector], ConnectionConfig]:
        """Route ``dsn`` to a connector class and parse it with that class's parser.

        Raises:
            DSNFormatError: If no connector claims the DSN or it is malformed
        """
        connector_class = self.find_for_dsn(dsn)
        if connector_class is None:
            redacted = redact_dsn(dsn)
            raise DSNFormatError(
                f"No connector found for DSN: {redacted}\n{self._supported_formats()}",
                code=ErrorCodes.DSN_UNSUPPORTED,
                context={"dsn": redacted, "supported": self.connector_ids()},
            )

        try:
            return connector_class, connector_class.dsn_parser.parse(dsn)
        except DSNFormatError as e:
            raise DSNFormatError(
                f"{e.message}\n{self._supported_formats()}",
                code=e.code,
                context={**e.context, "supported": self.connector_ids()},
                cause=e.cause,
            ) from e

    def create_connector(self, dsn: str) -> BaseConnector:
        """Build an unconnected connector for ``dsn``."""
        connector_class, config = self.resolve(dsn)
        connector = connector_class(config)
        self.logger.info(
            "Connector created",
            connector=connector_class.id,
            dsn=config.redacted_dsn,
        )
        return connector

    def __contains__(self, connector_id: object) -> bool:
        return connector_id in self._connectors

    def __len__(self) -> int:
        return len(self._connectors)


def create_default_registry() -> ConnectorRegistry:
    """Return a registry holding the built-in connectors."""
    from dbhub.database.connectors import BUILTIN_CONNECTORS

    registry = ConnectorRegistry()
    for connector_class in BUILTIN_CONNECTORS:
        registry.register(connector_class)
    return registry
