"""Drill-down navigation over inferred foreign keys.

A ``NavigationCoordinator`` owns one stack of contexts. Each ``push`` takes a
fresh token and marks it as the latest; a lookup's outcome is applied only if
its token is still the latest when it completes. ``close`` moves the latest
marker to a sentinel that no token can equal, so every in-flight lookup
becomes a no-op.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from .inference import TableLike, names_of, classify_foreign_key, resolve_table_name
from .models import QueryResult
from .sql import Dialect, LookupValue, build_single_row_lookup

logger = logging.getLogger(__name__)


class QueryExecutor(Protocol):
    async def execute(self, sql: str) -> QueryResult:
        ...


@dataclass(frozen=True)
class Loading:
    name = "loading"


@dataclass(frozen=True)
class Ready:
    result: QueryResult
    name = "ready"


@dataclass(frozen=True)
class Failed:
    message: str
    name = "failed"


Status = Union[Loading, Ready, Failed]


@dataclass(frozen=True)
class NavigationContext:
    token: int
    target_table: str
    lookup_value: LookupValue
    status: Status = Loading()

    @property
    def row(self) -> Optional[Dict[str, Any]]:
        """The looked-up row, if the lookup finished and found one."""
        if isinstance(self.status, Ready):
            return self.status.result.first_row()
        return None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "target_table": self.target_table,
            "lookup_value": self.lookup_value,
            "status": self.status.name,
        }
        if isinstance(self.status, Ready):
            out["result"] = self.status.result.to_dict()
        elif isinstance(self.status, Failed):
            out["error_message"] = self.status.message
        return out


_CLOSED = object()


class NavigationCoordinator:
    """Owns one drill-down stack and the lookups issued for it."""

    def __init__(
        self,
        executor: QueryExecutor,
        dialect: Dialect = Dialect.GENERIC,
        tables: Iterable[TableLike] = (),
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.executor = executor
        self.dialect = dialect
        self._tables: Tuple[str, ...] = tuple(names_of(tables))
        self._stack: List[NavigationContext] = []
        self._tokens = itertools.count(1)
        self._latest: object = None
        self._listeners: List[Callable[[], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

    # Known tables

    @property
    def table_names(self) -> Tuple[str, ...]:
        return self._tables

    def set_tables(self, tables: Iterable[TableLike]) -> None:
        """Replace the known-table snapshot as a whole."""
        self._tables = tuple(names_of(tables))

    def classify(self, column_name: str) -> Optional[str]:
        return classify_foreign_key(column_name, self._tables)

    # Observable state

    @property
    def stack(self) -> Tuple[NavigationContext, ...]:
        return tuple(self._stack)

    @property
    def current(self) -> Optional[NavigationContext]:
        return self._stack[-1] if self._stack else None

    @property
    def is_active(self) -> bool:
        return bool(self._stack)

    def snapshot(self) -> List[Dict[str, Any]]:
        return [ctx.to_dict() for ctx in self._stack]

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # Operations

    def push(self, table: str, value: LookupValue, from_index: Optional[int] = None) -> NavigationContext:
        """Start a navigation: truncate, push a loading context, mark it latest.

        With ``from_index`` the stack keeps entries ``0..from_index`` and the new
        context follows them; without it the new context becomes the only entry.
        """
        if from_index is not None and from_index < 0:
            raise ValueError(f"from_index must be >= 0, got {from_index}")

        target = resolve_table_name(table, self._tables)
        if target == table and table not in self._tables:
            logger.info("Could not resolve table '%s'; trying it as given", table)

        context = NavigationContext(token=next(self._tokens), target_table=target, lookup_value=value)
        if from_index is None:
            self._stack = [context]
        else:
            self._stack = self._stack[: from_index + 1] + [context]
        self._latest = context.token

        logger.info("Navigating to %s id=%r (token %d, depth %d)", target, value, context.token, len(self._stack))
        self._notify()
        return context

    async def fetch(self, context: NavigationContext) -> bool:
        """Run the lookup for a pushed context and apply it if still latest.

        Returns True when the outcome was applied. Lookup errors are captured
        as ``Failed`` on the context and never raised.
        """
        try:
            sql = build_single_row_lookup(self.dialect, context.target_table, context.lookup_value)
            logger.debug("Lookup SQL for token %d: %s", context.token, sql)
            result = await self.executor.execute(sql)
            status: Status = Ready(result)
        except Exception as e:
            logger.info("Lookup for %s id=%r failed: %s", context.target_table, context.lookup_value, e)
            status = Failed(str(e))
        return self._apply(context.token, status)

    async def navigate(self, table: str, value: LookupValue, from_index: Optional[int] = None) -> NavigationContext:
        context = self.push(table, value, from_index)
        await self.fetch(context)
        return self.find(context.token) or context

    def find(self, token: int) -> Optional[NavigationContext]:
        for ctx in self._stack:
            if ctx.token == token:
                return ctx
        return None

    def _apply(self, token: int, status: Status) -> bool:
        if self._latest != token:
            logger.debug("Discarding stale completion for token %d", token)
            return False
        for i, ctx in enumerate(self._stack):
            if ctx.token == token:
                if not isinstance(ctx.status, Loading):
                    return False
                self._stack[i] = replace(ctx, status=status)
                self._notify()
                return True
        # Popped by back(); nothing displays it anymore
        return False

    def back(self) -> Optional[NavigationContext]:
        """Drop the deepest context and return it."""
        if not self._stack:
            return None
        popped = self._stack.pop()
        self._notify()
        return popped

    def close(self) -> None:
        """Clear the stack and invalidate every lookup still in flight."""
        self._stack = []
        self._latest = _CLOSED
        logger.info("Navigation closed")
        self._notify()
