"""MCP server wiring.

Builds the FastMCP server from a connected ``ConnectorManager`` and runs it
over stdio or streamable HTTP. The manager is shared by every request; the
HTTP transport is stateless, so each POST to ``/message`` is handled in
isolation.
"""

from typing import Any, Awaitable, Callable

import uvicorn
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from dbhub import __title__, __version__
from dbhub.config.models import ServerConfig
from dbhub.database.manager import ConnectorManager
from dbhub.logging import get_logger
from dbhub.resources.tree import ResourceTreeBuilder
from dbhub.tools.execute_sql import ExecuteSQLTool

logger = get_logger("dbhub.server")

MESSAGE_PATH = "/message"
ALLOWED_ORIGIN_PREFIXES = ("http://localhost", "https://localhost")
CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Mcp-Session-Id",
    "Access-Control-Allow-Credentials": "true",
}


def is_allowed_origin(origin: str) -> bool:
    return origin.startswith(ALLOWED_ORIGIN_PREFIXES)


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Rejects non-localhost browser origins and adds CORS headers.

    Requests without an ``Origin`` header (non-browser clients) pass. A
    failure inside the MCP app is reported as a 500 JSON error.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        origin = request.headers.get("origin")
        if origin and not is_allowed_origin(origin):
            logger.warning("Rejected request from forbidden origin", origin=origin)
            return JSONResponse({"error": "Forbidden origin"}, status_code=403)

        headers = {"Access-Control-Allow-Origin": origin or "http://localhost", **CORS_HEADERS}

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        with logger.request_scope() as request_id:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception("Error handling request", path=request.url.path, error=str(e))
                return JSONResponse(
                    {"error": "Internal server error"},
                    status_code=500,
                    headers={"X-Request-Id": request_id},
                )

        headers["X-Request-Id"] = request_id
        response.headers.update(headers)
        return response


async def create_server(manager: ConnectorManager, config: ServerConfig) -> FastMCP:
    """Build a FastMCP server with the resource tree and the ``execute_sql`` tool.

    ``manager`` must already be connected; the default schema is
    snapshotted here.
    """
    server = FastMCP(name=__title__, version=__version__)

    tree = ResourceTreeBuilder(server, manager, config.default_schema)
    tree.register_templates()
    await tree.register_default_schema()

    tool = ExecuteSQLTool(manager)
    server.tool(tool.execute_sql, name=tool.name, description=tool.description)

    return server


def create_http_app(server: FastMCP) -> Any:
    """Stateless streamable HTTP app serving MCP on POST ``/message``."""
    return server.http_app(
        path=MESSAGE_PATH,
        middleware=[Middleware(OriginGuardMiddleware)],
        transport="http",
        stateless_http=True,
    )


async def serve(config: ServerConfig, manager: ConnectorManager) -> None:
    """Run the server on the configured transport until it stops.

    The manager is disconnected after the transport has closed.
    """
    server = await create_server(manager, config)

    if manager.readonly:
        logger.info("Running in READ-ONLY mode - only read only queries allowed")

    try:
        if config.transport == "http":
            app = create_http_app(server)
            logger.info(
                "DBHub server listening",
                url=f"http://{config.host}:{config.port}",
                endpoint=f"http://{config.host}:{config.port}{MESSAGE_PATH}",
            )
            uvicorn_config = uvicorn.Config(
                app,
                host=config.host,
                port=config.port,
                log_config=None,
                log_level=config.logging.level.lower(),
            )
            await uvicorn.Server(uvicorn_config).serve()
        else:
            logger.info("Starting with STDIO transport")
            await server.run_async(transport="stdio")
    finally:
        logger.info("Shutting down")
        await manager.disconnect()
