# src/dbhub/database/models.py
"""Unified introspection data model shared by every connector."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

ProcedureType = Literal["procedure", "function"]


@dataclass
class TableColumn:
    """One column of a table, in catalog ordinal order."""
    column_name: str
    data_type: str
    is_nullable: bool
    column_default: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TableIndex:
    """One index, with its columns in index key order."""
    index_name: str
    column_names: List[str] = field(default_factory=list)
    is_unique: bool = False
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StoredProcedure:
    """A stored procedure or function.

    ``return_type`` is only set for functions. ``definition`` is best-effort
    and may be None even for routines that exist.
    """
    procedure_name: str
    procedure_type: ProcedureType
    language: str = "sql"
    parameter_list: str = ""
    return_type: Optional[str] = None
    definition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SQLResult:
    """Rows returned by an executed batch, empty for non-row statements."""
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": self.rows, "count": self.row_count}
