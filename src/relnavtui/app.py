"""Main TUI application with global exception handling."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.engine import Engine
from textual.app import App

from relnavlib.config import Connection, ConfigError, load_config
import relnavlib.clients as clients
from relnavlib.inference import resolve_table_name
from relnavlib.navigation import NavigationCoordinator
from relnavlib.sql import build_table_preview, coerce_lookup_value

from .command_parser import CommandParser, CommandType
from .models.navigation_state import NavigationState
from .screens.base_screen import BaseListScreen
from .screens.connection_screen import ConnectionScreen
from .screens.drilldown_screen import DrillDownScreen
from .screens.results_screen import ResultsScreen
from .screens.table_screen import TableScreen
from .widgets.search_input import SearchInput


logger = logging.getLogger(__name__)


@dataclass
class Session:
    """An open connection and the drill-down stack that belongs to it."""
    connection: Connection
    engine: Engine
    coordinator: NavigationCoordinator


class TUIApp(App):
    """Main TUI application for relational navigation."""

    TITLE = "relnav TUI"
    SUB_TITLE = "Relational Navigator"

    CSS = """
    Screen {
        layout: vertical;
    }

    Header {
        dock: top;
    }

    Footer {
        dock: bottom;
    }

    #breadcrumb {
        padding: 0 1;
        color: $accent;
    }

    #status {
        padding: 0 1;
    }
    """

    def __init__(self):
        super().__init__()
        self.config = None
        self.session: Optional[Session] = None
        self.navigation_state = NavigationState()
        self.command_parser = CommandParser()

    def on_mount(self) -> None:
        """Initialize the app on mount."""
        try:
            self.config = load_config()
            logger.info("TUI app initialized successfully")
        except ConfigError as e:
            self.show_error_dialog(
                title="Configuration Error",
                message=f"Failed to load configuration: {e}"
            )
        self.push_screen(ConnectionScreen())

    async def on_exception(self, exception: Exception) -> None:
        """Global exception handler - never crash."""
        self.show_error_dialog(
            title="Unexpected Error",
            message=f"An error occurred: {str(exception)}"
        )
        logger.error(f"TUI exception: {exception}", exc_info=True)

    def show_error_dialog(self, title: str, message: str, details: Optional[str] = None) -> None:
        """Report an error without leaving the current screen."""
        self.bell()
        logger.error(f"{title}: {message}")
        if details:
            logger.error(f"Details: {details}")
        self.notify(message, title=title, severity="error")

    def show_notification(self, message: str) -> None:
        """Show a notification message."""
        self.sub_title = f"{self.navigation_state.get_breadcrumb()} - {message}"
        logger.info(f"Notification: {message}")

    # Sessions

    def open_connection(self, name: str) -> bool:
        """Switch to a configured connection, closing any drill-down of the previous one."""
        if not self.config:
            self.show_error_dialog("Configuration Error", "No configuration loaded")
            return False
        try:
            conn = self.config.get_connection(name)
            engine = clients.create_engine_for(conn)
        except Exception as e:
            self.show_error_dialog("Connection Error", f"Cannot open connection '{name}': {e}")
            return False

        if self.session is not None:
            self.session.coordinator.close()
            self.session.engine.dispose()
        self._dismiss_drill_down()

        coordinator = NavigationCoordinator(
            clients.SqlAlchemyExecutor(engine, max_rows=1),
            dialect=conn.dialect,
        )
        coordinator.add_listener(self._sync_breadcrumb)
        self.session = Session(connection=conn, engine=engine, coordinator=coordinator)
        self.navigation_state.set_connection(name)
        logger.info(f"Opened connection '{name}' ({conn.dialect.value})")
        return True

    def _dismiss_drill_down(self) -> None:
        """Pop the drill-down screen if it is showing; its stack is gone."""
        if isinstance(self.screen, DrillDownScreen):
            self.pop_screen()

    def _sync_breadcrumb(self) -> None:
        if self.session is None:
            return
        path = [f"{c.target_table}#{c.lookup_value}" for c in self.session.coordinator.stack]
        self.navigation_state.set_drill_path(path)
        self.sub_title = self.navigation_state.get_breadcrumb()

    def show_results(self, title: str, sql: str, table: Optional[str] = None) -> None:
        """Open a results screen; any active drill-down is discarded."""
        if self.session is None:
            self.show_error_dialog("No Connection", "Select a connection first")
            return
        self.session.coordinator.close()
        self._dismiss_drill_down()
        self.navigation_state.set_table(table or "query")
        self.push_screen(ResultsScreen(title=title, sql=sql))
        self.show_notification(f"Loading {title}")

    def preview_table(self, table: str) -> None:
        if self.session is None:
            self.show_error_dialog("No Connection", "Select a connection first")
            return
        resolved = resolve_table_name(table, self.session.coordinator.table_names)
        try:
            sql = build_table_preview(self.session.connection.dialect, resolved, self.config.settings.default_row_limit)
        except ValueError as e:
            self.show_error_dialog("Settings Error", str(e))
            return
        self.show_results(f"Table: {resolved}", sql, table=resolved)

    # Drill-down

    def follow_reference(self, table: str, value: Any, from_index: Optional[int] = None) -> None:
        """Push a drill-down level and start its lookup in the background."""
        if self.session is None:
            return
        coordinator = self.session.coordinator
        context = coordinator.push(table, coerce_lookup_value(value), from_index)
        self.run_worker(coordinator.fetch(context), name=f"lookup-{context.token}", group="lookups")
        if not isinstance(self.screen, DrillDownScreen):
            self.push_screen(DrillDownScreen(coordinator))

    def on_results_screen_follow_reference(self, message: ResultsScreen.FollowReference) -> None:
        logger.info(f"Following reference to {message.table} id={message.value!r}")
        self.follow_reference(message.table, message.value)

    def on_drill_down_screen_follow_reference(self, message: DrillDownScreen.FollowReference) -> None:
        logger.info(f"Following reference to {message.table} id={message.value!r} from level {message.from_index}")
        self.follow_reference(message.table, message.value, message.from_index)

    def on_drill_down_screen_closed(self, message: DrillDownScreen.Closed) -> None:
        self._dismiss_drill_down()

    # List screens

    def on_base_list_screen_item_selected(self, message: BaseListScreen.ItemSelected) -> None:
        """Handle item selection from list screens."""
        logger.info(f"Item selected: {message.item_data}")

        # Table selection - preview its rows
        if '_table_name' in message.item_data:
            self.preview_table(message.item_data['_table_name'])

        # Connection selection - list its tables
        elif '_connection_name' in message.item_data:
            name = message.item_data['_connection_name']
            if self.open_connection(name):
                self.push_screen(TableScreen(name))
                self.show_notification(f"Loading tables for connection: {name}")

    def on_base_list_screen_go_back(self, message: BaseListScreen.GoBack) -> None:
        """Handle go back from list screens."""
        logger.info("Going back")
        if isinstance(self.screen, ResultsScreen) and self.session is not None:
            self.session.coordinator.close()
        if len(self.screen_stack) > 2:
            self.pop_screen()

    # Commands

    def on_search_input_command_submitted(self, message: SearchInput.CommandSubmitted) -> None:
        self.run_command(message.command_text)

    def run_command(self, text: str) -> None:
        parsed = self.command_parser.parse(text)
        if parsed.error:
            self.show_error_dialog("Command Error", parsed.error)
            return

        command = parsed.command_type
        if command == CommandType.CONNECTION:
            if self.open_connection(parsed.args[0]):
                self.push_screen(TableScreen(parsed.args[0]))
        elif command == CommandType.TABLE:
            self.preview_table(parsed.args[0])
        elif command == CommandType.QUERY:
            self.show_results("Query", parsed.args[0])
        elif command == CommandType.BACK:
            if isinstance(self.screen, DrillDownScreen):
                self.screen.action_go_back()
        elif command == CommandType.CLOSE:
            if self.session is not None:
                self.session.coordinator.close()
            self._dismiss_drill_down()
        elif command == CommandType.REFRESH:
            if isinstance(self.screen, BaseListScreen):
                self.screen.load_data()
        elif command == CommandType.QUIT:
            self.exit()
        elif command == CommandType.HELP:
            self.notify(self.command_parser.get_help_text(), title="Help", timeout=15)


def run_tui() -> None:
    """Entry point for running the TUI."""
    # Log to a file; the terminal belongs to the TUI
    log_file = "/tmp/relnavtui_debug.log"
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.FileHandler(log_file, mode='w')
        ]
    )
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    logger.info(f"Starting TUI, debug log at: {log_file}")

    app = TUIApp()
    app.run()
