"""``dbhub`` command line entry point.

Settings resolve in this order: command line flag, environment variable,
``.env.local`` / ``.env`` in the working directory, default.
"""

import asyncio
import sys
from typing import Dict, Optional

import click
from pydantic import ValidationError as PydanticValidationError

from dbhub import __version__
from dbhub.config import LoggingConfig, ServerConfig, load_env_files
from dbhub.core.exceptions import DBHubException
from dbhub.database.dsn import redact_dsn
from dbhub.database.manager import ConnectorManager
from dbhub.database.registry import ConnectorRegistry, create_default_registry
from dbhub.logging import configure_logging, get_logger
from dbhub.server import serve

_SOURCES = {
    "COMMANDLINE": "command line argument",
    "ENVIRONMENT": "environment variable",
    "DEFAULT": "default",
    "DEFAULT_MAP": "default",
    "PROMPT": "prompt",
}


def missing_dsn_message(samples: Dict[str, str]) -> str:
    formats = "\n".join(f"  - {connector_id}: {dsn}" for connector_id, dsn in samples.items())
    return (
        "ERROR: Database connection string (DSN) is required.\n"
        "Please provide the DSN in one of these ways (in order of priority):\n"
        "\n"
        '1. Command line argument: --dsn="your-connection-string"\n'
        '2. Environment variable: export DSN="your-connection-string"\n'
        "3. .env file: DSN=your-connection-string\n"
        "\n"
        "Example formats:\n"
        f"{formats}"
    )


def _source(ctx: click.Context, name: str) -> str:
    source = ctx.get_parameter_source(name)
    if source is None:
        return "default"
    return _SOURCES.get(source.name, source.name.lower())


async def _run(config: ServerConfig, manager: ConnectorManager) -> None:
    await manager.connect_with_dsn(config.dsn.get_secret_value())
    await serve(config, manager)


@click.command(name="dbhub", context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--dsn", envvar="DSN", default=None, help="Database connection string")
@click.option(
    "--transport",
    envvar="TRANSPORT",
    type=click.Choice(["stdio", "http"], case_sensitive=False),
    default="stdio",
    show_default=True,
    help="Client protocol transport",
)
@click.option("--port", envvar="PORT", type=int, default=8080, show_default=True, help="HTTP port")
@click.option(
    "--readonly",
    envvar="READONLY",
    is_flag=True,
    default=False,
    help="Only allow read-only statements in execute_sql",
)
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.option(
    "--log-format",
    envvar="LOG_FORMAT",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
)
@click.version_option(version=__version__, prog_name="dbhub")
@click.pass_context
def cli(
    ctx: click.Context,
    dsn: Optional[str],
    transport: str,
    port: int,
    readonly: bool,
    log_level: str,
    log_format: str,
) -> None:
    """DBHub - universal database gateway speaking the Model Context Protocol."""
    configure_logging(level=log_level.upper(), format=log_format.lower())
    logger = get_logger("dbhub.cli")

    registry: ConnectorRegistry = ctx.obj if ctx.obj is not None else create_default_registry()

    if not dsn:
        click.echo(missing_dsn_message(registry.sample_dsns()), err=True)
        sys.exit(1)

    try:
        config = ServerConfig(
            dsn=dsn,
            transport=transport,
            port=port,
            readonly=readonly,
            logging=LoggingConfig(level=log_level, format=log_format.lower()),
        )
    except (DBHubException, PydanticValidationError) as e:
        click.echo(f"ERROR: Invalid configuration: {e}", err=True)
        sys.exit(1)

    logger.info("Connecting with DSN", dsn=redact_dsn(dsn), source=_source(ctx, "dsn"))
    logger.info("Using transport", transport=config.transport, source=_source(ctx, "transport"))
    if config.transport == "http":
        logger.info("Using port", port=config.port, source=_source(ctx, "port"))

    manager = ConnectorManager(registry, readonly=config.readonly)

    try:
        asyncio.run(_run(config, manager))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except DBHubException as e:
        logger.error("Fatal error", code=e.code, error=e.message)
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Fatal error", error=str(e))
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)


def main() -> None:
    """Console script: load ``.env`` files, then run the command."""
    load_env_files()
    cli(prog_name="dbhub")
