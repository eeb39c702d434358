from __future__ import annotations

import os
import sys
from pathlib import Path

from sqlalchemy import create_engine


SCHEMA = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT
    )
    """,
    """
    CREATE TABLE clients (
        id TEXT PRIMARY KEY,
        company TEXT NOT NULL,
        user_id INTEGER
    )
    """,
    """
    CREATE TABLE categories (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE products (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        category_id INTEGER
    )
    """,
    """
    CREATE TABLE booking (
        id INTEGER PRIMARY KEY,
        product_id INTEGER,
        clientId TEXT,
        booked_at TEXT
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        user_id INTEGER,
        booking_id INTEGER,
        description TEXT
    )
    """,
]

ROWS = [
    "INSERT INTO users VALUES (1, 'Ada', 'ada@example.com'), (2, 'Grace', 'grace@example.com')",
    "INSERT INTO clients VALUES ('acme', 'Acme Corp', 1), ('o''brien', 'O''Brien Ltd', 2)",
    "INSERT INTO categories VALUES (1, 'Hardware'), (2, 'Software')",
    "INSERT INTO products VALUES (10, 'Widget', 1), (11, 'Compiler', 2)",
    "INSERT INTO booking VALUES (100, 10, 'acme', '2024-01-15T10:30:00Z'), (101, 11, 'o''brien', '2024-02-01T09:00:00Z')",
    "INSERT INTO orders VALUES (1000, 1, 100, 'first order'), (1001, 2, 101, 'second order')",
]


def seed(path: Path) -> None:
    """Create (or recreate) the demo SQLite database at ``path``."""
    if path.exists():
        path.unlink()
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as db:
        for statement in SCHEMA + ROWS:
            db.exec_driver_sql(statement)
    engine.dispose()


def main() -> int:
    target = Path(os.environ.get("RELNAV_DEMO_DB", "infra/demo.db"))
    target.parent.mkdir(parents=True, exist_ok=True)
    print(f"Seeding demo database at {target}")
    try:
        seed(target)
    except Exception as e:
        print(f"Failed to seed demo database: {e}")
        return 1
    print("Seeded tables: users, clients, categories, products, booking, orders")
    return 0


if __name__ == "__main__":
    sys.exit(main())
