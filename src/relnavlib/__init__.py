"""Core library for the relational navigator.

Contains configuration loading, foreign-key inference, SQL synthesis and the
drill-down navigation coordinator shared by the CLI and TUI.
"""

__all__ = [
    "config",
    "inference",
    "navigation",
    "sql",
]
