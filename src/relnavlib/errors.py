"""Error handling utilities for relnav."""

from __future__ import annotations

from typing import Any


def format_error_message(operation: str, error: Exception, context: dict[str, Any] | None = None) -> str:
    """Format a user-friendly error message based on the exception type and context."""
    error_str = str(error)
    lowered = error_str.lower()
    context = context or {}

    # Connection-related errors
    if any(word in lowered for word in ["could not connect", "connection refused", "timeout", "unable to open database"]):
        connection_name = context.get("connection", "database")
        return (
            f"Failed to connect to {connection_name}. "
            f"Please check that the database server is running and reachable. "
            f"Original error: {error_str}"
        )

    # Authentication errors
    if any(word in lowered for word in ["authentication", "access denied", "password", "login failed"]):
        return (
            f"Authentication failed. Please check your credentials and permissions. "
            f"Original error: {error_str}"
        )

    # Missing table
    if any(word in lowered for word in ["no such table", "does not exist", "doesn't exist", "invalid object name", "not found"]):
        table_name = context.get("table", "table")
        return (
            f"Table '{table_name}' not found. "
            f"Use 'relnavctl tables list' to see available tables. "
            f"Original error: {error_str}"
        )

    # Missing driver for the configured engine
    if "no module named" in lowered or "can't load plugin" in lowered:
        return (
            f"Database driver not available. Install the driver for this connection type. "
            f"Original error: {error_str}"
        )

    # Bad SQL
    if any(word in lowered for word in ["syntax error", "no such column", "unknown column", "invalid column"]):
        return (
            f"The database rejected the query. "
            f"Original error: {error_str}"
        )

    # Generic error with helpful context
    return f"Failed to {operation}: {error_str}"


def suggest_troubleshooting_steps(operation: str, error: Exception) -> list[str]:
    """Suggest troubleshooting steps based on the operation and error."""
    error_str = str(error).lower()
    suggestions = []

    if "connect" in error_str or "timeout" in error_str or "unable to open" in error_str:
        suggestions.extend([
            "Check that the database server is running and reachable",
            "Verify host, port and database in your connection config",
            "Ensure the correct RELNAV_CONFIG path is set",
        ])

    elif any(word in error_str for word in ["no such table", "does not exist", "not found", "invalid object name"]):
        suggestions.extend([
            "List available tables: relnavctl tables list",
            "Check the table name spelling and schema",
            "Referenced tables are guessed from column names and may not exist",
        ])

    elif "password" in error_str or "authentication" in error_str or "access denied" in error_str:
        suggestions.extend([
            "Check username and password in your connection config",
            "Verify environment variables referenced as ${VAR} are set",
            "Ensure the user has SELECT permission on the table",
        ])

    elif "no module named" in error_str or "can't load plugin" in error_str:
        suggestions.extend([
            "Install the driver package for this engine (e.g. psycopg2, pymysql, pyodbc)",
            "Or set an explicit 'url' with an installed driver",
        ])

    if not suggestions:
        suggestions.extend([
            "Check the logs with -v/--verbose flag for more details",
            "Verify your configuration file is correct",
            "Try the query directly with 'relnavctl query run'",
        ])

    return suggestions


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if "no config file found" in error_str.lower():
        return (
            "No configuration file found. Please either:\n"
            "  • Set RELNAV_CONFIG=/path/to/config.yaml, or\n"
            "  • Create ~/.config/relnav/config.yaml\n"
            "\n"
            "See the README for configuration examples."
        )

    if "connection not found" in error_str.lower():
        return (
            f"Connection configuration error: {error_str}\n"
            "Check your config file and ensure the connection is properly defined."
        )

    return f"Configuration error: {error_str}"
