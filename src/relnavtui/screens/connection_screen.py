"""Connection screen for listing configured database connections."""

import logging

from .base_screen import BaseListScreen

logger = logging.getLogger(__name__)


class ConnectionScreen(BaseListScreen):
    """Screen for listing and selecting connections."""

    def __init__(self):
        super().__init__(title="Connections")

    def on_mount(self) -> None:
        """Initialize screen components and reload data after mount."""
        super().on_mount()
        # Reload after refresh so the app config is available
        self.call_after_refresh(self.load_data)

    def load_data(self) -> None:
        """Load connections from configuration."""
        config = getattr(self.app, 'config', None)
        if not config or not config.connections:
            logger.warning("No connections available in config")
            self.set_data(["NAME"], [])
            return

        columns = ["NAME", "DIALECT", "URL", "DEFAULT"]
        rows = []

        for name, conn in config.connections.items():
            try:
                url = conn.sqlalchemy_url().render_as_string(hide_password=True)
                dialect = conn.dialect.value
            except Exception as e:
                logger.error(f"Invalid connection '{name}': {e}")
                url, dialect = f"invalid: {e}", "—"
            rows.append({
                "NAME": name,
                "DIALECT": dialect,
                "URL": url,
                "DEFAULT": "yes" if name == config.default_connection else "no",
                "_connection_name": name  # Hidden field for selection
            })

        # Sort by default first, then by name
        rows.sort(key=lambda x: (x["DEFAULT"] != "yes", x["NAME"]))

        self.set_data(columns, rows)
        logger.info(f"Loaded {len(rows)} connections")
