"""Base screen with common navigation and search functionality."""

from typing import List, Dict, Any, Optional
from textual.screen import Screen
from textual.containers import Vertical
from textual.widgets import Header, Footer, Static
from textual.message import Message
from textual.binding import Binding

from ..widgets.data_table import FilterableDataTable
from ..widgets.search_input import SearchInput


class BaseListScreen(Screen):
    """Base screen for list-based navigation with filtering."""

    BINDINGS = [
        Binding("escape", "go_back", "Back", priority=True),
        Binding("enter", "select_item", "Select", priority=True),
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("/", "focus_search", "Search"),
        (":", "focus_command", "Command"),
    ]

    class ItemSelected(Message):
        """Message sent when an item is selected."""

        def __init__(self, item_data: Dict[str, Any]) -> None:
            super().__init__()
            self.item_data = item_data

    class GoBack(Message):
        """Message sent when user wants to go back."""
        pass

    def __init__(self, title: str, **kwargs):
        super().__init__(**kwargs)
        self.title = title
        self.data_table: Optional[FilterableDataTable] = None
        self.search_input: Optional[SearchInput] = None

    def compose(self):
        """Compose the screen layout."""
        with Vertical():
            yield Header()
            yield Static(self.title, id="screen-title")
            yield SearchInput(id="search-input")
            yield FilterableDataTable(id="data-table")
            yield Footer()

    def on_mount(self) -> None:
        """Initialize screen components after mount."""
        self.data_table = self.query_one("#data-table", FilterableDataTable)
        self.search_input = self.query_one("#search-input", SearchInput)

        # Focus data table by default for navigation
        self.data_table.focus()

        self.load_data()

    def on_search_input_filter_changed(self, event: SearchInput.FilterChanged) -> None:
        """Handle search filter changes."""
        if self.data_table:
            self.data_table.set_filter(event.filter_text)

    def on_search_input_command_submitted(self, event: SearchInput.CommandSubmitted) -> None:
        # Hand focus back to the table; the app handles the command itself
        if self.data_table:
            self.data_table.focus()

    def action_select_item(self) -> None:
        """Handle item selection."""
        if self.search_input and self.search_input.has_focus:
            # Enter inside the input submits a command instead
            self.search_input.submit_command()
            return
        if self.data_table:
            selected_row = self.data_table.get_selected_row()
            if selected_row:
                self.post_message(self.ItemSelected(selected_row))

    def action_go_back(self) -> None:
        """Handle going back."""
        if self.search_input and self.search_input.has_focus:
            self.data_table.focus()
            return
        self.post_message(self.GoBack())

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()

    def action_refresh(self) -> None:
        self.load_data()

    def action_focus_search(self) -> None:
        """Focus the search input."""
        if self.search_input:
            self.search_input.focus()

    def action_focus_command(self) -> None:
        if self.search_input:
            self.search_input.value = ":"
            self.search_input.focus()
            self.search_input.cursor_position = 1

    def load_data(self) -> None:
        """Load data for this screen. Override in subclasses."""
        raise NotImplementedError("Subclasses must implement load_data()")

    def set_data(self, columns: List[str], rows: List[Dict[str, Any]], labels: Optional[Dict[str, str]] = None) -> None:
        """Set the data for the table."""
        if self.data_table:
            self.data_table.set_data(columns, rows, labels)

    def set_title(self, title: str) -> None:
        self.title = title
        self.query_one("#screen-title", Static).update(title)
