"""The ``execute_sql`` tool."""

from dbhub.core.exceptions import DBHubException, ErrorCodes
from dbhub.database.manager import ConnectorManager
from dbhub.logging import get_logger
from dbhub.resources.formatter import Envelope, error_response, success_response, to_json

# Typed error codes passed through to the client; anything else is reported
# as EXECUTION_ERROR.
PASSTHROUGH_CODES = frozenset({
    ErrorCodes.READONLY_VIOLATION,
    ErrorCodes.QUERY_EXECUTION_FAILED,
})

DESCRIPTION = (
    "Execute SQL against the connected database. Multiple statements may be "
    "separated by semicolons. In read-only mode only read statements are allowed."
)


class ExecuteSQLTool:
    """Runs submitted SQL through the manager and returns a JSON envelope."""

    name = "execute_sql"
    description = DESCRIPTION

    def __init__(self, manager: ConnectorManager) -> None:
        self.manager = manager
        self.logger = get_logger("dbhub.tools.execute_sql")

    async def run(self, sql: str) -> Envelope:
        try:
            result = await self.manager.execute_sql(sql)
        except DBHubException as e:
            code = e.code if e.code in PASSTHROUGH_CODES else ErrorCodes.EXECUTION_ERROR
            self.logger.warning("execute_sql failed", code=e.code, error=e.message)
            return error_response(None, e.message, code)
        except Exception as e:
            self.logger.exception("execute_sql failed unexpectedly", error=str(e))
            return error_response(None, str(e), ErrorCodes.EXECUTION_ERROR)
        return success_response(None, result.to_dict())

    async def execute_sql(self, sql: str) -> str:
        """Execute SQL on the current database.

        Args:
            sql: SQL statement(s) to execute; separate multiple statements with semicolons
        """
        return to_json(await self.run(sql))

    async def __call__(self, sql: str) -> str:
        return await self.execute_sql(sql)
