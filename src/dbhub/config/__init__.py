"""DBHub configuration management.

Classes:
    BaseConfig: Base configuration class
    ConnectionConfig: Parsed connection parameters for one backend
    ServerConfig: Process-wide server configuration
    LoggingConfig: Logging configuration

Example:
    >>> from dbhub.config import ServerConfig
    >>> config = ServerConfig(dsn="postgres://u:p@localhost/db", readonly=True)
"""

from .env import load_env_files
from .models import (
    REDACTED_PASSWORD,
    BaseConfig,
    ConnectionConfig,
    LoggingConfig,
    PoolConfig,
    ServerConfig,
    SQLServerConnectionConfig,
    SSLConfig,
)

__all__ = [
    "REDACTED_PASSWORD",
    "BaseConfig",
    "ConnectionConfig",
    "LoggingConfig",
    "PoolConfig",
    "ServerConfig",
    "SQLServerConnectionConfig",
    "SSLConfig",
    "load_env_files",
]
