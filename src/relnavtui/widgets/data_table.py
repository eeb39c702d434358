"""Filterable data table widget for TUI."""

from typing import List, Dict, Any, Optional
from textual.widgets import DataTable
from textual.reactive import reactive


class FilterableDataTable(DataTable):
    """Data table with built-in filtering capability.

    Rows are dicts; keys starting with ``_`` are carried along for selection
    but never displayed.
    """

    filter_text: reactive[str] = reactive("")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._all_rows: List[Dict[str, Any]] = []
        self._filtered_rows: List[Dict[str, Any]] = []
        self._column_keys: List[str] = []
        self.cursor_type = "row"

    def set_data(
        self,
        columns: List[str],
        rows: List[Dict[str, Any]],
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        """Set the data for the table, optionally relabelling column headers."""
        labels = labels or {}
        self._all_rows = rows.copy()
        self._column_keys = list(columns)
        self.clear(columns=True)  # Clear both rows and columns

        for col in columns:
            self.add_column(labels.get(col, col), key=col)

        self.apply_filter()

    def apply_filter(self) -> None:
        """Apply current filter to the data."""
        if not self.filter_text:
            self._filtered_rows = self._all_rows.copy()
        else:
            # Case-insensitive search across all displayed values
            filter_lower = self.filter_text.lower()
            self._filtered_rows = []

            for row in self._all_rows:
                for key in self._column_keys:
                    value = row.get(key)
                    if value is not None and filter_lower in str(value).lower():
                        self._filtered_rows.append(row)
                        break

        self.clear(columns=False)  # Keep columns, clear rows

        for row in self._filtered_rows:
            row_values = [self._display(row.get(key)) for key in self._column_keys]
            self.add_row(*row_values)

    @staticmethod
    def _display(value: Any) -> str:
        if value is None:
            return "NULL"
        return str(value)

    def set_filter(self, filter_text: str) -> None:
        """Set filter text and refresh display."""
        self.filter_text = filter_text
        self.apply_filter()

    def get_selected_row(self) -> Optional[Dict[str, Any]]:
        """Get the currently selected row data."""
        if not self._filtered_rows or self.cursor_row < 0:
            return None

        row_index = self.cursor_row
        if row_index >= len(self._filtered_rows):
            return None

        return self._filtered_rows[row_index]

    def get_selected_column(self) -> Optional[str]:
        """Get the key of the column under the cursor."""
        index = self.cursor_column
        if index < 0 or index >= len(self._column_keys):
            return None
        return self._column_keys[index]
