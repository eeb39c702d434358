"""Navigation state management for TUI."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class NavigationState:
    """Track current browsing context across TUI screens."""

    connection: Optional[str] = None   # Current connection
    table: Optional[str] = None        # Table or query being viewed
    drill_path: List[str] = field(default_factory=list)  # "table#id" per drill-down level

    def get_breadcrumb(self) -> str:
        """Generate breadcrumb string for current context."""
        parts = []
        if self.connection:
            parts.append(self.connection)
        if self.table:
            parts.append(self.table)
        parts.extend(self.drill_path)
        return " > ".join(parts) if parts else "relnav"

    def set_connection(self, connection: str) -> None:
        """Set connection and reset downstream context."""
        self.connection = connection
        self.table = None
        self.drill_path = []

    def set_table(self, table: str) -> None:
        """Set table and reset drill-down context."""
        self.table = table
        self.drill_path = []

    def set_drill_path(self, path: List[str]) -> None:
        self.drill_path = list(path)
