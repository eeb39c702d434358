"""Table screen for listing the tables of a connection."""

from typing import Any, Dict
import logging

from textual.worker import Worker, WorkerState

from .base_screen import BaseListScreen
import relnavlib.clients as clients

logger = logging.getLogger(__name__)


class TableScreen(BaseListScreen):
    """Screen for listing and selecting tables of a connection."""

    def __init__(self, connection_name: str):
        self.connection_name = connection_name
        super().__init__(title=f"Tables - {connection_name}")

    def load_data(self) -> None:
        """Load tables in a background thread."""
        self.set_data(["LOADING"], [{"LOADING": "Loading tables..."}])
        self.run_worker(self.load_tables_worker, name="tables", thread=True, exclusive=True)

    def load_tables_worker(self) -> Dict[str, Any]:
        session = getattr(self.app, "session", None)
        if session is None:
            return {"error": "No connection selected"}
        try:
            logger.info(f"Loading tables for connection '{self.connection_name}'")
            tables = clients.list_tables(session.engine, session.connection.schema, with_counts=True)
            return {"tables": tables}
        except Exception as e:
            logger.error(f"Failed to load tables for '{self.connection_name}': {e}", exc_info=True)
            return {"error": f"Failed to load tables: {e}"}

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Handle worker completion."""
        if event.worker.name != "tables" or event.state != WorkerState.SUCCESS:
            return

        result = event.worker.result
        if "error" in result:
            self.set_data(["ERROR"], [{"ERROR": result["error"]}])
            return

        tables = result["tables"]
        # The drill-down resolver matches against this snapshot
        self.app.session.coordinator.set_tables(tables)

        columns = ["TABLE", "SCHEMA", "ROW_COUNT"]
        rows = []
        for table in tables:
            rows.append({
                "TABLE": table.name,
                "SCHEMA": table.schema or "—",
                "ROW_COUNT": str(table.row_count) if table.row_count is not None else "—",
                "_table_name": table.name,  # Hidden field for selection
                "_connection_name": self.connection_name,
            })

        self.set_data(columns, rows)
        logger.info(f"Loaded {len(rows)} tables for connection '{self.connection_name}'")
