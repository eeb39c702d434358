"""Plain data types shared by the library, CLI and TUI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TableDescriptor:
    """A table as reported by schema introspection."""

    schema: str
    name: str
    row_count: Optional[int] = None


@dataclass
class QueryResult:
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    execution_time_ms: int = 0
    truncated: bool = False

    def first_row(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": [dict(r) for r in self.rows],
            "row_count": self.row_count,
            "execution_time_ms": self.execution_time_ms,
            "truncated": self.truncated,
        }
