from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine

from .config import Connection
from .models import QueryResult, TableDescriptor

logger = logging.getLogger(__name__)


def create_engine_for(conn: Connection) -> Engine:
    """Build a SQLAlchemy engine for a configured connection.

    ``options`` from the config are forwarded verbatim to ``create_engine``.
    """
    return create_engine(conn.sqlalchemy_url(), **(conn.options or {}))


def _count_rows(engine: Engine, schema: Optional[str], table: str) -> Optional[int]:
    qualified = f"{schema}.{table}" if schema else table
    try:
        with engine.connect() as db:
            return int(db.exec_driver_sql(f"SELECT COUNT(*) FROM {qualified}").scalar() or 0)
    except Exception as e:
        logger.warning("Could not count rows of %s: %s", qualified, e)
        return None


def list_tables(engine: Engine, schema: Optional[str] = None, with_counts: bool = False) -> List[TableDescriptor]:
    """Return the tables of a schema, sorted by name.

    Row counts are only computed when ``with_counts`` is set since they cost a
    full scan on most engines.
    """
    inspector = inspect(engine)
    schema_name = schema or inspector.default_schema_name or ""
    names = inspector.get_table_names(schema=schema)

    results: List[TableDescriptor] = []
    for name in sorted(names):
        row_count = _count_rows(engine, schema, name) if with_counts else None
        results.append(TableDescriptor(schema=schema_name, name=name, row_count=row_count))
    return results


def execute_query(engine: Engine, sql: str, max_rows: Optional[int] = None) -> QueryResult:
    """Run raw SQL text and materialise the result.

    The text goes to the driver untouched so literal colons and percent signs
    are not mistaken for bind parameters.
    """
    started = time.perf_counter()
    with engine.begin() as db:
        cursor = db.exec_driver_sql(sql)
        if not cursor.returns_rows:
            affected = cursor.rowcount if cursor.rowcount is not None and cursor.rowcount >= 0 else 0
            return QueryResult(
                row_count=affected,
                execution_time_ms=int((time.perf_counter() - started) * 1000),
            )

        columns = list(cursor.keys())
        if max_rows is not None:
            fetched = cursor.fetchmany(max_rows + 1)
            truncated = len(fetched) > max_rows
            fetched = fetched[:max_rows]
        else:
            fetched = cursor.fetchall()
            truncated = False

    rows: List[Dict[str, Any]] = [dict(zip(columns, row)) for row in fetched]
    elapsed = int((time.perf_counter() - started) * 1000)
    logger.info("Query returned %d rows in %d ms", len(rows), elapsed)
    return QueryResult(
        columns=columns,
        rows=rows,
        row_count=len(rows),
        execution_time_ms=elapsed,
        truncated=truncated,
    )


class SqlAlchemyExecutor:
    """Async query executor backed by a SQLAlchemy engine.

    Each call runs the blocking driver work in a worker thread so concurrent
    lookups complete independently of one another.
    """

    def __init__(self, engine: Engine, max_rows: Optional[int] = None):
        self.engine = engine
        self.max_rows = max_rows

    async def execute(self, sql: str) -> QueryResult:
        return await asyncio.to_thread(execute_query, self.engine, sql, self.max_rows)
