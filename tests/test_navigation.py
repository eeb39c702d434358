from __future__ import annotations

import asyncio
from typing import List, Tuple

import pytest

from relnavlib.models import QueryResult
from relnavlib.navigation import Failed, Loading, NavigationCoordinator, Ready
from relnavlib.sql import Dialect


def row_result(**row) -> QueryResult:
    return QueryResult(columns=list(row), rows=[row], row_count=1)


class GatedExecutor:
    """Executor whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.pending: List[Tuple[str, asyncio.Future]] = []

    async def execute(self, sql: str) -> QueryResult:
        future = asyncio.get_running_loop().create_future()
        self.pending.append((sql, future))
        return await future

    def resolve(self, index: int, result: QueryResult) -> None:
        self.pending[index][1].set_result(result)

    def reject(self, index: int, error: Exception) -> None:
        self.pending[index][1].set_exception(error)


class ImmediateExecutor:
    """Executor that answers every lookup with a row echoing the SQL."""

    def __init__(self, fail_on: str | None = None):
        self.sql: List[str] = []
        self.fail_on = fail_on

    async def execute(self, sql: str) -> QueryResult:
        self.sql.append(sql)
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError("no such table: " + self.fail_on)
        return row_result(id=1, sql=sql)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


TABLES = ["users", "clients", "orders", "booking"]


def build_stack(nav: NavigationCoordinator) -> None:
    """Navigate users -> clients -> orders, all ready."""

    async def scenario():
        await nav.navigate("users", 1)
        await nav.navigate("clients", "acme", from_index=0)
        await nav.navigate("orders", 7, from_index=1)

    asyncio.run(scenario())


def test_navigate_root_resolves_and_becomes_ready():
    ex = ImmediateExecutor()
    nav = NavigationCoordinator(ex, Dialect.SQLITE, tables=["Users"])

    context = asyncio.run(nav.navigate("user", 5))

    assert context.target_table == "Users"
    assert isinstance(context.status, Ready)
    assert ex.sql == ["SELECT * FROM Users WHERE id = 5 LIMIT 1;"]
    assert nav.stack == (context,)


def test_lookup_sql_follows_dialect():
    ex = ImmediateExecutor()
    nav = NavigationCoordinator(ex, Dialect.MSSQL, tables=TABLES)
    asyncio.run(nav.navigate("clients", "O'Brien"))
    assert ex.sql == ["SELECT TOP 1 * FROM clients WHERE id = 'O''Brien';"]


def test_push_starts_loading():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    context = nav.push("users", 1)
    assert context.status == Loading()
    assert nav.current is context
    assert nav.is_active


def test_tokens_strictly_increase():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    a = nav.push("users", 1)
    b = nav.push("users", 2)
    nav.close()
    c = nav.push("users", 3)
    assert a.token < b.token < c.token


def test_root_navigation_replaces_stack():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    build_stack(nav)
    assert len(nav.stack) == 3

    nav.push("booking", 9)
    assert [c.target_table for c in nav.stack] == ["booking"]


def test_branch_truncates_immediately():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    build_stack(nav)
    a, b, c = nav.stack

    d = nav.push("booking", 100, from_index=0)

    # B and C are gone before the new lookup runs
    assert nav.stack == (a, d)
    assert d.status == Loading()
    assert isinstance(a.status, Ready)


def test_negative_from_index_rejected():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    with pytest.raises(ValueError):
        nav.push("users", 1, from_index=-1)


def test_stale_completion_is_discarded():
    async def scenario():
        ex = GatedExecutor()
        nav = NavigationCoordinator(ex, Dialect.SQLITE, tables=TABLES)
        root = await asyncio.wait_for(_ready_root(nav, ex), 1)

        first = nav.push("clients", "acme", from_index=0)
        first_task = asyncio.create_task(nav.fetch(first))
        await settle()
        second = nav.push("orders", 7, from_index=0)
        second_task = asyncio.create_task(nav.fetch(second))
        await settle()

        # the older lookup finishes first
        ex.resolve(1, row_result(id="acme", company="Acme"))
        assert await first_task is False
        assert nav.current.token == second.token
        assert nav.current.target_table == "orders"
        assert nav.current.status == Loading()

        ex.resolve(2, row_result(id=7, description="order"))
        assert await second_task is True
        assert [c.target_table for c in nav.stack] == [root.target_table, "orders"]
        assert nav.current.row == {"id": 7, "description": "order"}

    asyncio.run(scenario())


def test_latest_wins_by_issue_order_not_completion_order():
    async def scenario():
        ex = GatedExecutor()
        nav = NavigationCoordinator(ex, tables=TABLES)
        first = nav.push("users", 1)
        first_task = asyncio.create_task(nav.fetch(first))
        await settle()
        second = nav.push("clients", "acme")
        second_task = asyncio.create_task(nav.fetch(second))
        await settle()

        ex.resolve(1, row_result(id="acme"))
        assert await second_task is True
        ex.resolve(0, row_result(id=1))
        assert await first_task is False

        assert len(nav.stack) == 1
        assert nav.current.target_table == "clients"
        assert nav.current.row == {"id": "acme"}

    asyncio.run(scenario())


async def _ready_root(nav, ex):
    root = nav.push("users", 1)
    task = asyncio.create_task(nav.fetch(root))
    await settle()
    ex.resolve(len(ex.pending) - 1, row_result(id=1, name="Ada"))
    await task
    return nav.current


def test_close_invalidates_in_flight_lookups():
    async def scenario():
        ex = GatedExecutor()
        changes = []
        nav = NavigationCoordinator(ex, tables=TABLES, on_change=lambda: changes.append(nav.snapshot()))
        context = nav.push("users", 1)
        task = asyncio.create_task(nav.fetch(context))
        await settle()

        nav.close()
        seen = len(changes)
        ex.resolve(0, row_result(id=1))

        assert await task is False
        assert nav.stack == ()
        assert nav.snapshot() == []
        assert len(changes) == seen

    asyncio.run(scenario())


def test_close_invalidates_failures_too():
    async def scenario():
        ex = GatedExecutor()
        nav = NavigationCoordinator(ex, tables=TABLES)
        task = asyncio.create_task(nav.navigate("users", 1))
        await settle()
        nav.close()
        ex.reject(0, RuntimeError("boom"))
        await task
        assert nav.stack == ()

    asyncio.run(scenario())


def test_back_pops_and_late_completion_is_harmless():
    async def scenario():
        ex = GatedExecutor()
        nav = NavigationCoordinator(ex, tables=TABLES)
        root = await _ready_root(nav, ex)
        child = nav.push("clients", "acme", from_index=0)
        task = asyncio.create_task(nav.fetch(child))
        await settle()

        popped = nav.back()
        assert popped.token == child.token
        assert nav.stack == (root,)

        ex.resolve(1, row_result(id="acme"))
        assert await task is False
        assert nav.stack == (root,)

    asyncio.run(scenario())


def test_back_on_empty_stack():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    assert nav.back() is None
    assert not nav.is_active


def test_lookup_failure_is_captured_not_raised():
    ex = ImmediateExecutor(fail_on="ghosts")
    nav = NavigationCoordinator(ex, tables=TABLES)

    async def scenario():
        await nav.navigate("users", 1)
        return await nav.navigate("ghosts", 3, from_index=0)

    context = asyncio.run(scenario())

    assert isinstance(context.status, Failed)
    assert "no such table: ghosts" in context.status.message
    # the ancestor is untouched
    assert isinstance(nav.stack[0].status, Ready)
    assert nav.snapshot()[1] == {
        "target_table": "ghosts",
        "lookup_value": 3,
        "status": "failed",
        "error_message": "no such table: ghosts",
    }


def test_unsupported_value_type_fails_the_context():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    context = asyncio.run(nav.navigate("users", object()))
    assert isinstance(context.status, Failed)
    assert "Unsupported lookup value type" in context.status.message


def test_empty_result_is_ready_without_row():
    class EmptyExecutor:
        async def execute(self, sql):
            return QueryResult(columns=["id"], rows=[], row_count=0)

    nav = NavigationCoordinator(EmptyExecutor(), tables=TABLES)
    context = asyncio.run(nav.navigate("users", 404))
    assert isinstance(context.status, Ready)
    assert context.row is None


def test_snapshot_shapes():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    asyncio.run(nav.navigate("users", 1))
    nav.push("clients", "acme", from_index=0)

    snap = nav.snapshot()
    assert snap[0]["status"] == "ready"
    assert snap[0]["result"]["rows"][0]["id"] == 1
    assert snap[1] == {"target_table": "clients", "lookup_value": "acme", "status": "loading"}


def test_classify_and_table_replacement():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=["users"])
    assert nav.classify("user_id") == "users"
    assert nav.classify("client_id") is None

    nav.set_tables(["clients"])
    assert nav.table_names == ("clients",)
    assert nav.classify("user_id") is None
    assert nav.classify("clientId") == "clients"


def test_listeners_are_notified():
    nav = NavigationCoordinator(ImmediateExecutor(), tables=TABLES)
    calls = []
    listener = lambda: calls.append(len(nav.stack))  # noqa: E731
    nav.add_listener(listener)

    asyncio.run(nav.navigate("users", 1))
    assert calls == [1, 1]

    nav.remove_listener(listener)
    nav.close()
    assert calls == [1, 1]


def test_independent_coordinators():
    async def scenario():
        ex_a, ex_b = GatedExecutor(), GatedExecutor()
        nav_a = NavigationCoordinator(ex_a, tables=TABLES)
        nav_b = NavigationCoordinator(ex_b, tables=TABLES)
        task_a = asyncio.create_task(nav_a.navigate("users", 1))
        task_b = asyncio.create_task(nav_b.navigate("clients", "acme"))
        await settle()

        nav_a.close()
        ex_b.resolve(0, row_result(id="acme"))
        ex_a.resolve(0, row_result(id=1))
        await asyncio.gather(task_a, task_b)

        assert nav_a.stack == ()
        assert isinstance(nav_b.current.status, Ready)

    asyncio.run(scenario())
