"""Component base classes with a configuration and an async lifecycle.

Connectors are the main users: a connector is built from a parsed
``ConnectionConfig``, may be re-pointed at another DSN before it connects,
and owns a pool that is opened once and closed once.

Example:
    >>> class PostgresConnector(AsyncComponent[ConnectionConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self._pool = await asyncpg.create_pool(...)
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Optional, TypeVar

import structlog

from .exceptions import DBHubException, ErrorCodes, ValidationError

T = TypeVar("T")  # Configuration type


class BaseComponent(Generic[T], ABC):
    """Holds a configuration object and the initialized flag.

    Attributes:
        component_name: Name used in log events and error context
    """

    component_name: ClassVar[str] = "BaseComponent"

    def __init__(self, config: T) -> None:
        if config is None:
            raise ValidationError(
                f"{self.component_name} requires a configuration",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )
        self._config: T = config
        self._initialized = False
        self._logger = structlog.get_logger(self.__class__.__name__)

    @property
    def config(self) -> T:
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(initialized={self._initialized})"


class ConfigurableComponent(BaseComponent[T]):
    """A component whose configuration may be replaced while it is idle."""

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._config_version = 1

    @property
    def config_version(self) -> int:
        """Starts at 1 and grows with every accepted ``update_config``."""
        return self._config_version

    def update_config(self, new_config: T, *, validate: bool = True) -> None:
        """Replace the configuration.

        Raises:
            ValidationError: If ``validate`` is set and the new configuration
                is rejected by ``_validate_config_update``
        """
        if validate and not self._validate_config_update(new_config):
            raise ValidationError(
                f"Rejected configuration update for {self.component_name}",
                code="CONFIG_UPDATE_INVALID",
                context={"component": self.component_name, "version": self._config_version},
            )
        self._config = new_config
        self._config_version += 1
        self._logger.debug(
            "Configuration updated",
            component=self.component_name,
            version=self._config_version,
        )

    def _validate_config_update(self, config: T) -> bool:
        return config is not None


class AsyncComponent(ConfigurableComponent[T]):
    """A configurable component with lock-guarded ``initialize``/``cleanup``.

    ``initialize`` runs ``_async_initialize`` at most once until the next
    ``cleanup``; concurrent callers wait for the first one.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._lifecycle_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Run ``_async_initialize`` unless already initialized.

        Raises:
            DBHubException: Typed errors from ``_async_initialize`` unchanged;
                anything else wrapped with ``INIT_FAILED``
        """
        async with self._lifecycle_lock:
            if self._initialized:
                return
            try:
                await self._async_initialize()
            except DBHubException as e:
                self._log_failure("initialize", e.message, e.code)
                raise
            except Exception as e:
                self._log_failure("initialize", str(e), ErrorCodes.INIT_FAILED)
                raise DBHubException(
                    f"Failed to initialize {self.component_name}",
                    code=ErrorCodes.INIT_FAILED,
                    context={"component": self.component_name},
                    cause=e,
                ) from e
            self._initialized = True

    async def cleanup(self, *, suppress_errors: bool = True) -> None:
        """Run ``_async_cleanup`` if initialized.

        The component counts as uninitialized afterwards even when the
        cleanup fails.

        Args:
            suppress_errors: Log a failing cleanup instead of re-raising it
        """
        async with self._lifecycle_lock:
            if not self._initialized:
                return
            try:
                await self._async_cleanup()
            except Exception as e:
                self._log_failure("cleanup", str(e), getattr(e, "code", None))
                if not suppress_errors:
                    raise
            finally:
                self._initialized = False

    def _log_failure(self, phase: str, error: str, code: Optional[str]) -> None:
        self._logger.error(
            f"Component {phase} failed",
            component=self.component_name,
            error=error,
            error_code=code,
        )

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Acquire resources."""

    async def _async_cleanup(self) -> None:
        """Release resources."""

    async def __aenter__(self) -> "AsyncComponent[T]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
