"""MCP tools."""

from .execute_sql import ExecuteSQLTool

__all__ = ["ExecuteSQLTool"]
