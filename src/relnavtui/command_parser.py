"""Parse vim-style commands for TUI."""

import shlex
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class CommandType(Enum):
    """Types of commands supported in TUI."""
    CONNECTION = "connection"
    TABLE = "table"
    QUERY = "query"
    BACK = "back"
    CLOSE = "close"
    REFRESH = "refresh"
    QUIT = "quit"
    HELP = "help"
    UNKNOWN = "unknown"


@dataclass
class ParsedCommand:
    """Result of parsing a command string."""
    command_type: CommandType
    args: List[str]
    raw_input: str
    error: Optional[str] = None


class CommandParser:
    """Parser for vim-style TUI commands."""

    # Command aliases mapping
    ALIASES = {
        "c": "connection",
        "conn": "connection",
        "t": "table",
        "s": "query",
        "sql": "query",
        "b": "back",
        "x": "close",
        "r": "refresh",
        "q": "quit",
        "?": "help",
    }

    def parse(self, input_text: str) -> ParsedCommand:
        """Parse command input and return parsed command."""
        input_text = input_text.strip()

        if not input_text:
            return self._error(input_text, "Empty command")

        # Must start with : for command mode
        if not input_text.startswith(":"):
            return self._error(input_text, "Commands must start with ':'")

        command_line = input_text[1:].strip()
        if not command_line:
            return self._error(input_text, "No command after ':'")

        head, _, rest = command_line.partition(" ")
        command = head.lower()
        resolved_command = self.ALIASES.get(command, command)

        try:
            command_type = CommandType(resolved_command)
        except ValueError:
            return self._error(input_text, f"Unknown command: {command}")

        # SQL is passed through verbatim; shell-style splitting would eat quotes
        if command_type == CommandType.QUERY:
            args = [rest.strip()] if rest.strip() else []
        else:
            try:
                args = shlex.split(rest)
            except ValueError as e:
                return self._error(input_text, f"Invalid command syntax: {e}")

        error = self._validate_command_args(command_type, args)

        return ParsedCommand(
            command_type=command_type,
            args=args,
            raw_input=input_text,
            error=error
        )

    @staticmethod
    def _error(raw_input: str, message: str) -> ParsedCommand:
        return ParsedCommand(
            command_type=CommandType.UNKNOWN,
            args=[],
            raw_input=raw_input,
            error=message,
        )

    def _validate_command_args(self, command_type: CommandType, args: List[str]) -> Optional[str]:
        """Validate arguments for specific command types."""
        if command_type in [CommandType.CONNECTION, CommandType.TABLE]:
            if not args:
                return f"{command_type.value} command requires a name argument"
            if len(args) > 1:
                return f"{command_type.value} command accepts only one argument"

        elif command_type == CommandType.QUERY:
            if not args:
                return "query command requires SQL text"

        elif command_type in [CommandType.BACK, CommandType.CLOSE, CommandType.REFRESH,
                              CommandType.QUIT, CommandType.HELP]:
            if args:
                return f"{command_type.value} command does not accept arguments"

        return None

    def get_help_text(self) -> str:
        """Get help text for all commands."""
        return """Command Mode Help:

:connection <name> (or :c) - Switch connection
:table <name> (or :t)      - Preview a table (name may be a guess)
:query <sql> (or :s)       - Run SQL and show the result
:back (or :b)              - Leave the deepest drill-down level
:close (or :x)             - Close the drill-down view
:refresh (or :r)           - Reload the current view
:quit (or :q)              - Exit application
:help (or :?)              - Show this help

Search Mode:
Type directly (without :) to filter current view
Case-insensitive matching, real-time filtering

Navigation:
↑↓←→ - Move the cursor
Enter - Select item / follow a reference cell (marked →)
[ ] - Previous / next drill-down level
Esc - Go back
"""
