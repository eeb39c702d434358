from __future__ import annotations

from decimal import Decimal
import uuid

import pytest

from relnavlib.sql import (
    Dialect,
    build_single_row_lookup,
    build_table_preview,
    coerce_lookup_value,
    quote_value,
)


def test_top_dialect_with_quoted_string():
    sql = build_single_row_lookup(Dialect.MSSQL, "t", "O'Brien")
    assert sql == "SELECT TOP 1 * FROM t WHERE id = 'O''Brien';"


def test_limit_dialect_with_number():
    sql = build_single_row_lookup(Dialect.POSTGRESQL, "t", 42)
    assert sql == "SELECT * FROM t WHERE id = 42 LIMIT 1;"


@pytest.mark.parametrize("dialect", [Dialect.MYSQL, Dialect.SQLITE, Dialect.GENERIC])
def test_other_dialects_use_limit(dialect):
    assert build_single_row_lookup(dialect, "users", "a").endswith("LIMIT 1;")


def test_quote_value_rejects_other_types():
    with pytest.raises(TypeError):
        quote_value(None)
    with pytest.raises(TypeError):
        quote_value(True)
    with pytest.raises(TypeError):
        quote_value(b"raw")


def test_quote_value_float():
    assert quote_value(1.5) == "1.5"


def test_dialect_from_backend():
    assert Dialect.from_backend("mssql") is Dialect.MSSQL
    assert Dialect.from_backend("mssql+pyodbc") is Dialect.MSSQL
    assert Dialect.from_backend("postgres") is Dialect.POSTGRESQL
    assert Dialect.from_backend("mariadb") is Dialect.MYSQL
    assert Dialect.from_backend("sqlite") is Dialect.SQLITE
    assert Dialect.from_backend("duckdb") is Dialect.GENERIC
    assert Dialect.from_backend(None) is Dialect.GENERIC


def test_table_preview():
    assert build_table_preview(Dialect.SQLITE, "users", 100) == "SELECT * FROM users LIMIT 100;"
    assert build_table_preview(Dialect.MSSQL, "users", 5) == "SELECT TOP 5 * FROM users;"
    with pytest.raises(ValueError):
        build_table_preview(Dialect.SQLITE, "users", 0)


def test_coerce_lookup_value():
    assert coerce_lookup_value(7) == 7
    assert coerce_lookup_value("acme") == "acme"
    assert coerce_lookup_value(Decimal("12")) == 12
    assert coerce_lookup_value(Decimal("1.5")) == "1.5"
    assert coerce_lookup_value(True) == 1
    uid = uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert coerce_lookup_value(uid) == str(uid)
