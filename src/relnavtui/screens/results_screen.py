"""Results screen showing query rows with clickable reference cells."""

from typing import Any, Dict
import logging

from textual.message import Message
from textual.worker import Worker, WorkerState

from .base_screen import BaseListScreen
import relnavlib.clients as clients

logger = logging.getLogger(__name__)


class ResultsScreen(BaseListScreen):
    """Screen for the rows of a table preview or ad-hoc query.

    Columns that look like references are marked with an arrow; Enter on such
    a cell asks the app to drill into the referenced row.
    """

    class FollowReference(Message):
        """Message sent when a reference cell is selected."""

        def __init__(self, table: str, value: Any) -> None:
            super().__init__()
            self.table = table
            self.value = value

    def __init__(self, title: str, sql: str):
        self.sql = sql
        self.base_title = title
        self.links: Dict[str, str] = {}
        super().__init__(title=title)

    def on_mount(self) -> None:
        super().on_mount()
        self.data_table.cursor_type = "cell"

    def load_data(self) -> None:
        self.set_data(["LOADING"], [{"LOADING": "Running query..."}])
        self.run_worker(self.run_query_worker, name="query", thread=True, exclusive=True)

    def run_query_worker(self) -> Dict[str, Any]:
        session = getattr(self.app, "session", None)
        if session is None:
            return {"error": "No connection selected"}
        try:
            limit = self.app.config.settings.default_row_limit
            logger.info(f"Running query: {self.sql}")
            return {"result": clients.execute_query(session.engine, self.sql, max_rows=limit)}
        except Exception as e:
            logger.error(f"Query failed: {e}")
            return {"error": f"Query failed: {e}"}

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker.name != "query" or event.state != WorkerState.SUCCESS:
            return

        outcome = event.worker.result
        if "error" in outcome:
            self.set_data(["ERROR"], [{"ERROR": outcome["error"]}])
            return

        result = outcome["result"]
        if not result.columns:
            self.set_data(["INFO"], [{"INFO": f"{result.row_count} row(s) affected"}])
            return

        coordinator = self.app.session.coordinator
        self.links = {}
        for col in result.columns:
            target = coordinator.classify(col)
            if target:
                self.links[col] = target
        labels = {col: f"{col} →" for col in self.links}
        self.set_data(result.columns, result.rows, labels)
        if result.truncated:
            self.set_title(f"{self.base_title} (first {result.row_count} rows)")
        logger.info(f"Displayed {result.row_count} rows, {len(self.links)} reference columns")

    def action_select_item(self) -> None:
        """Follow the reference under the cursor, if any."""
        if self.search_input and self.search_input.has_focus:
            self.search_input.submit_command()
            return
        if not self.data_table:
            return
        row = self.data_table.get_selected_row()
        column = self.data_table.get_selected_column()
        if row is None or column is None:
            return

        target = self.links.get(column)
        value = row.get(column)
        if not target:
            self.app.show_notification(f"'{column}' is not a reference column")
            return
        if value is None:
            self.app.show_notification(f"'{column}' is NULL")
            return
        self.post_message(self.FollowReference(target, value))
