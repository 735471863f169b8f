"""Database resources exposed over MCP."""

from .formatter import error_response, success_response, to_json
from .handlers import ResourceHandlers
from .tree import ResourceTreeBuilder, SchemaSnapshot
from .uris import (
    indexes_uri,
    procedure_uri,
    procedures_uri,
    schemas_uri,
    table_uri,
    tables_uri,
)

__all__ = [
    "ResourceHandlers",
    "ResourceTreeBuilder",
    "SchemaSnapshot",
    "error_response",
    "indexes_uri",
    "procedure_uri",
    "procedures_uri",
    "schemas_uri",
    "success_response",
    "table_uri",
    "tables_uri",
    "to_json",
]
