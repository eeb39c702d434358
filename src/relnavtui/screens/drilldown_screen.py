"""Drill-down screen showing one level of the navigation stack."""

from typing import Any, Dict, List, Optional
import logging

from textual.screen import Screen
from textual.containers import Vertical
from textual.widgets import Header, Footer, Static
from textual.binding import Binding
from textual.message import Message

from relnavlib.navigation import Failed, Loading, NavigationContext, NavigationCoordinator
from ..widgets.data_table import FilterableDataTable

logger = logging.getLogger(__name__)


class DrillDownScreen(Screen):
    """Screen for the rows reached by following references.

    The screen views one stack level at a time, the deepest by default.
    Following a reference from a shallower level discards everything below it.
    """

    BINDINGS = [
        Binding("escape", "go_back", "Back", priority=True),
        Binding("enter", "follow", "Follow", priority=True),
        ("x", "close", "Close"),
        ("[", "previous_level", "Prev level"),
        ("]", "next_level", "Next level"),
        ("q", "quit", "Quit"),
    ]

    class FollowReference(Message):
        """Message sent when a reference field is selected at some level."""

        def __init__(self, table: str, value: Any, from_index: int) -> None:
            super().__init__()
            self.table = table
            self.value = value
            self.from_index = from_index

    class Closed(Message):
        """Message sent when the drill-down view is dismissed."""
        pass

    def __init__(self, coordinator: NavigationCoordinator):
        super().__init__()
        self.coordinator = coordinator
        self.view_index = max(len(coordinator.stack) - 1, 0)
        self.fields_table: Optional[FilterableDataTable] = None

    def compose(self):
        """Compose the screen layout."""
        with Vertical():
            yield Header()
            yield Static("", id="breadcrumb")
            yield Static("", id="status")
            yield FilterableDataTable(id="fields-table")
            yield Footer()

    def on_mount(self) -> None:
        self.fields_table = self.query_one("#fields-table", FilterableDataTable)
        self.fields_table.focus()
        self.coordinator.add_listener(self.on_navigation_changed)
        self.refresh_view()

    def on_unmount(self) -> None:
        self.coordinator.remove_listener(self.on_navigation_changed)

    def on_navigation_changed(self) -> None:
        """Follow the stack: a push moves the view to the new deepest level."""
        stack = self.coordinator.stack
        if stack and (self.view_index >= len(stack) or stack[-1].status == Loading()):
            self.view_index = len(stack) - 1
        if self.is_mounted:
            self.refresh_view()

    def viewed_context(self) -> Optional[NavigationContext]:
        stack = self.coordinator.stack
        if not stack:
            return None
        return stack[min(self.view_index, len(stack) - 1)]

    def refresh_view(self) -> None:
        stack = self.coordinator.stack
        breadcrumb = self.query_one("#breadcrumb", Static)
        status = self.query_one("#status", Static)

        parts = []
        for i, ctx in enumerate(stack):
            label = f"{ctx.target_table}#{ctx.lookup_value}"
            parts.append(f"[{label}]" if i == self.view_index else label)
        breadcrumb.update(" > ".join(parts) or "(empty)")

        context = self.viewed_context()
        if context is None:
            status.update("")
            self.fields_table.set_data(["INFO"], [{"INFO": "Nothing to show"}])
            return

        if isinstance(context.status, Loading):
            status.update(f"Loading {context.target_table} where id = {context.lookup_value!r}...")
            self.fields_table.set_data(["LOADING"], [{"LOADING": "Loading row..."}])
        elif isinstance(context.status, Failed):
            status.update(f"Lookup failed in {context.target_table}")
            self.fields_table.set_data(["ERROR"], [{"ERROR": context.status.message}])
        else:
            row = context.row
            if row is None:
                status.update(f"No row in {context.target_table} with id = {context.lookup_value!r}")
                self.fields_table.set_data(["INFO"], [{"INFO": "No row found"}])
                return
            status.update(f"{context.target_table} ({context.status.result.execution_time_ms} ms)")
            self.fields_table.set_data(["FIELD", "VALUE", "LINK"], self._field_rows(row))

    def _field_rows(self, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = []
        for column, value in row.items():
            target = self.coordinator.classify(column)
            rows.append({
                "FIELD": column,
                "VALUE": value,
                "LINK": f"→ {target}" if target and value is not None else "",
                "_target": target,
                "_value": value,
            })
        return rows

    def action_follow(self) -> None:
        if not self.fields_table:
            return
        selected = self.fields_table.get_selected_row()
        if not selected or not selected.get("_target") or selected.get("_value") is None:
            return
        self.post_message(self.FollowReference(selected["_target"], selected["_value"], self.view_index))

    def action_go_back(self) -> None:
        """Pop the deepest level; leave the screen once the stack is empty."""
        self.coordinator.back()
        if not self.coordinator.is_active:
            self.post_message(self.Closed())

    def action_close(self) -> None:
        self.coordinator.close()
        self.post_message(self.Closed())

    def action_previous_level(self) -> None:
        if self.view_index > 0:
            self.view_index -= 1
            self.refresh_view()

    def action_next_level(self) -> None:
        if self.view_index < len(self.coordinator.stack) - 1:
            self.view_index += 1
            self.refresh_view()

    def action_quit(self) -> None:
        self.app.exit()
