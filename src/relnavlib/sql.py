"""SQL text for single-row lookups and table previews."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Union

LookupValue = Union[str, int, float]


class Dialect(Enum):
    """SQL syntax family of a connection."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    GENERIC = "generic"

    @classmethod
    def from_backend(cls, name: str | None) -> "Dialect":
        """Map a SQLAlchemy backend name (``postgresql``, ``mssql`` ...) to a dialect."""
        key = (name or "").lower().split("+", 1)[0]
        aliases = {
            "postgres": cls.POSTGRESQL,
            "sqlserver": cls.MSSQL,
            "mariadb": cls.MYSQL,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            return cls.GENERIC

    @property
    def uses_top(self) -> bool:
        # Only SQL Server limits rows with a leading clause
        return self is Dialect.MSSQL


def quote_value(value: Any) -> str:
    """Render a lookup value as a SQL literal.

    Strings are single-quoted with embedded quotes doubled; numbers are emitted
    as-is. Other types must be converted by the caller.
    """
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TypeError(f"Unsupported lookup value type: {type(value).__name__}")


def build_single_row_lookup(dialect: Dialect, table: str, value: LookupValue) -> str:
    literal = quote_value(value)
    if dialect.uses_top:
        return f"SELECT TOP 1 * FROM {table} WHERE id = {literal};"
    return f"SELECT * FROM {table} WHERE id = {literal} LIMIT 1;"


def build_table_preview(dialect: Dialect, table: str, limit: int) -> str:
    """First ``limit`` rows of ``table`` in the dialect's row-limit syntax."""
    if limit < 1:
        raise ValueError("limit must be a positive integer")
    if dialect.uses_top:
        return f"SELECT TOP {limit} * FROM {table};"
    return f"SELECT * FROM {table} LIMIT {limit};"


def coerce_lookup_value(value: Any) -> LookupValue:
    """Narrow a cell value taken from a result row to a lookup value.

    Integral decimals become ints; anything that is not already text or a
    number is looked up by its string form.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return str(value)
