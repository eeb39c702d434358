from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Tuple

import click
from tabulate import tabulate

from relnavlib.config import Config, ConfigError, Connection, load_config
import relnavlib.clients as clients
from relnavlib.errors import format_error_message, format_config_error, suggest_troubleshooting_steps
from relnavlib.inference import foreign_key_columns
from relnavlib.navigation import Failed, NavigationCoordinator, Ready
from relnavlib.sql import LookupValue, build_table_preview, coerce_lookup_value


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (what the CLI is doing)",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    """Relational navigator CLI.

    Follow foreign-key-looking columns from row to row across configured
    database connections. Configuration is loaded via XDG or the RELNAV_CONFIG
    environment variable. JSON output is always pretty-printed.
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def main() -> None:  # entry point
    cli(standalone_mode=True)


def _load(log: logging.Logger) -> Config:
    try:
        log.info("Loading config...")
        cfg = load_config()
        log.info("Loaded config from %s", getattr(cfg, "source_path", "<unknown>"))
    except ConfigError as e:
        click.echo(format_config_error(e), err=True)
        raise SystemExit(2)
    return cfg


def _connection(log: logging.Logger, connection_name: Optional[str]) -> Tuple[Config, Connection]:
    cfg = _load(log)
    try:
        conn = cfg.get_connection(connection_name)
    except ConfigError as e:
        click.echo(str(e), err=True)
        raise SystemExit(2)
    return cfg, conn


def _fail(ctx: click.Context, operation: str, error: Exception, context: dict) -> None:
    """Report an operation failure without a stack trace and exit 2."""
    error_msg = format_error_message(operation, error, context)
    click.echo(error_msg, err=True)
    if ctx.obj.get("verbose"):
        suggestions = suggest_troubleshooting_steps(operation, error)
        if suggestions:
            click.echo("\nTroubleshooting suggestions:", err=True)
            for suggestion in suggestions[:3]:  # Show top 3 suggestions
                click.echo(f"  • {suggestion}", err=True)
    raise SystemExit(2)


def _truncate_rows(rows: List[List[Any]], max_col_width: int) -> List[List[str]]:
    truncated_rows = []
    for row in rows:
        truncated_row = []
        for cell in row:
            cell_str = str(cell) if cell is not None else ""
            if len(cell_str) > max_col_width:
                cell_str = cell_str[:max_col_width-3] + "..."
            truncated_row.append(cell_str)
        truncated_rows.append(truncated_row)
    return truncated_rows


_INT_RE = re.compile(r"^-?\d+$")


def coerce_value(raw: str, as_string: bool = False) -> LookupValue:
    """Treat integer-looking command line values as numbers."""
    if not as_string and _INT_RE.match(raw):
        return int(raw)
    return raw


# CONNECTIONS commands


@cli.group()
@click.pass_context
def connections(ctx: click.Context) -> None:  # noqa: D401
    """Connection-related commands."""
    pass


@connections.command("list")
@click.pass_context
def connections_list(ctx: click.Context) -> None:
    """List configured connections."""
    log = logging.getLogger("relnavctl.connections")
    cfg = _load(log)

    rows = []
    for name, conn in sorted(cfg.connections.items()):
        rows.append(
            [
                name,
                conn.dialect.value,
                conn.sqlalchemy_url().render_as_string(hide_password=True),
                "yes" if (cfg.default_connection == name) else "—",
            ]
        )

    if ctx.obj.get("json"):
        out = {
            "connections": [
                {
                    "name": r[0],
                    "dialect": r[1],
                    "url": r[2],
                    "default": r[3] == "yes",
                }
                for r in rows
            ]
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
    else:
        log.info("Rendering table output for %d connections", len(rows))
        click.echo(tabulate(rows, headers=["NAME", "DIALECT", "URL", "DEFAULT"]))


@connections.command("show")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.pass_context
def connections_show(ctx: click.Context, connection_name: Optional[str]) -> None:
    """Show details for a connection."""
    log = logging.getLogger("relnavctl.connections")
    cfg, conn = _connection(log, connection_name)
    url = conn.sqlalchemy_url()

    if ctx.obj.get("json"):
        out = {
            "name": conn.name,
            "dialect": conn.dialect.value,
            "url": url.render_as_string(hide_password=True),
            "host": url.host,
            "port": url.port,
            "database": url.database,
            "username": url.username,
            "schema": conn.schema,
            "default": cfg.default_connection == conn.name,
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
        return

    rows = [
        ["name", conn.name],
        ["dialect", conn.dialect.value],
        ["url", url.render_as_string(hide_password=True)],
        ["host", url.host or "—"],
        ["port", url.port or "—"],
        ["database", url.database or "—"],
        ["schema", conn.schema or "—"],
        ["default", "yes" if (cfg.default_connection == conn.name) else "—"],
    ]
    log.info("Rendering connection details for '%s'", conn.name)
    click.echo(tabulate(rows, headers=["FIELD", "VALUE"]))


# TABLES commands


@cli.group()
@click.pass_context
def tables(ctx: click.Context) -> None:  # noqa: D401
    """Table-related commands."""
    pass


@tables.command("list")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.option("--schema", "schema", help="Schema to list; uses the connection's schema if omitted")
@click.option("--counts", is_flag=True, help="Count rows in every table (slow on large databases)")
@click.pass_context
def tables_list(ctx: click.Context, connection_name: Optional[str], schema: Optional[str], counts: bool) -> None:
    """List tables with optional row counts."""
    log = logging.getLogger("relnavctl.tables")
    cfg, conn = _connection(log, connection_name)
    schema = schema or conn.schema

    try:
        log.info("Listing tables for connection '%s'", conn.name)
        engine = clients.create_engine_for(conn)
        items = clients.list_tables(engine, schema, with_counts=counts)
        log.info("Found %d tables", len(items))
    except Exception as e:  # surface helpful error without stack
        _fail(ctx, "list tables", e, {"connection": conn.name})

    if ctx.obj.get("json"):
        out = {
            "connection": conn.name,
            "tables": [
                {"schema": t.schema, "name": t.name, "row_count": t.row_count} for t in items
            ],
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
        return

    if not items:
        click.echo("No tables found")
        return

    rows = [
        [t.schema or "—", t.name, t.row_count if t.row_count is not None else "—"]
        for t in items
    ]
    log.info("Rendering %d tables", len(rows))
    click.echo(tabulate(rows, headers=["SCHEMA", "TABLE", "ROW_COUNT"]))


@tables.command("preview")
@click.argument("table_name")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.option("-n", "--limit", type=int, default=None, help="Number of rows (default: settings.default_row_limit)")
@click.option("--max-col-width", type=int, default=None, help="Max column width for display")
@click.option("--no-truncate", is_flag=True, help="Don't truncate long column values")
@click.pass_context
def tables_preview(
    ctx: click.Context,
    table_name: str,
    connection_name: Optional[str],
    limit: Optional[int],
    max_col_width: Optional[int],
    no_truncate: bool,
) -> None:
    """Show the first rows of a table, marking reference columns."""
    log = logging.getLogger("relnavctl.table")
    cfg, conn = _connection(log, connection_name)
    limit = limit or cfg.settings.default_row_limit
    max_col_width = max_col_width if max_col_width is not None else cfg.settings.max_col_width

    try:
        engine = clients.create_engine_for(conn)
        sql = build_table_preview(conn.dialect, table_name, limit)
        log.info("Previewing %d rows: %s", limit, sql)
        result = clients.execute_query(engine, sql)
        known = clients.list_tables(engine, conn.schema)
    except Exception as e:
        _fail(ctx, "preview table", e, {"table": table_name, "connection": conn.name})

    links = foreign_key_columns(result.columns, known)

    if ctx.obj.get("json"):
        out = result.to_dict()
        out["table"] = table_name
        out["links"] = links
        click.echo(json.dumps(out, indent=2, sort_keys=True, default=str))
        return

    if not result.rows:
        click.echo("No data found")
        return

    rows = [[r.get(c) for c in result.columns] for r in result.rows]
    if not no_truncate and max_col_width > 0:
        rows = _truncate_rows(rows, max_col_width)
    headers = [f"{c} → {links[c]}" if c in links else c for c in result.columns]
    log.info("Rendering %d preview rows", len(rows))
    click.echo(tabulate(rows, headers=headers))


@tables.command("links")
@click.argument("table_name")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.pass_context
def tables_links(ctx: click.Context, table_name: str, connection_name: Optional[str]) -> None:
    """List the columns of a table that look like references to other tables."""
    log = logging.getLogger("relnavctl.table")
    cfg, conn = _connection(log, connection_name)

    try:
        engine = clients.create_engine_for(conn)
        result = clients.execute_query(engine, build_table_preview(conn.dialect, table_name, 1))
        known = clients.list_tables(engine, conn.schema)
    except Exception as e:
        _fail(ctx, "inspect table", e, {"table": table_name, "connection": conn.name})

    links = foreign_key_columns(result.columns, known)
    log.info("Found %d reference columns in '%s'", len(links), table_name)

    if ctx.obj.get("json"):
        click.echo(json.dumps({"table": table_name, "links": links}, indent=2, sort_keys=True))
        return

    if not links:
        click.echo("No reference columns found")
        return

    click.echo(tabulate(sorted(links.items()), headers=["COLUMN", "TARGET_TABLE"]))


# QUERY commands


@cli.group()
@click.pass_context
def query(ctx: click.Context) -> None:  # noqa: D401
    """Ad-hoc query commands."""
    pass


@query.command("run")
@click.argument("sql")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.option("-n", "--limit", type=int, default=None, help="Max rows to fetch (default: settings.default_row_limit)")
@click.pass_context
def query_run(ctx: click.Context, sql: str, connection_name: Optional[str], limit: Optional[int]) -> None:
    """Execute SQL text and print the result."""
    log = logging.getLogger("relnavctl.query")
    cfg, conn = _connection(log, connection_name)
    limit = limit or cfg.settings.default_row_limit

    try:
        engine = clients.create_engine_for(conn)
        log.info("Running query on '%s'", conn.name)
        result = clients.execute_query(engine, sql, max_rows=limit)
    except Exception as e:
        _fail(ctx, "run query", e, {"connection": conn.name})

    if ctx.obj.get("json"):
        click.echo(json.dumps(result.to_dict(), indent=2, sort_keys=True, default=str))
        return

    if not result.columns:
        click.echo(f"{result.row_count} row(s) affected ({result.execution_time_ms} ms)")
        return

    rows = _truncate_rows([[r.get(c) for c in result.columns] for r in result.rows], cfg.settings.max_col_width)
    click.echo(tabulate(rows, headers=result.columns))
    suffix = f", truncated at {limit}" if result.truncated else ""
    click.echo(f"\n{result.row_count} row(s) ({result.execution_time_ms} ms{suffix})")


# LOOKUP command


async def _drill(coordinator: NavigationCoordinator, table: str, value: LookupValue, follow: Tuple[str, ...]) -> None:
    log = logging.getLogger("relnavctl.lookup")
    context = await coordinator.navigate(table, value)
    for column in follow:
        row = context.row
        if row is None:
            return
        target = coordinator.classify(column)
        if target is None:
            raise click.UsageError(f"Column '{column}' does not look like a reference to a known table")
        if column not in row or row[column] is None:
            raise click.UsageError(f"Column '{column}' is empty or missing in {context.target_table}")
        log.info("Following %s.%s -> %s", context.target_table, column, target)
        context = await coordinator.navigate(
            target, coerce_lookup_value(row[column]), from_index=len(coordinator.stack) - 1
        )


@cli.command()
@click.argument("table_name")
@click.argument("value")
@click.option("--connection", "connection_name", help="Connection name; uses default if omitted")
@click.option("-f", "--follow", "follow", multiple=True, help="Reference column to follow next (repeatable)")
@click.option("--string", "as_string", is_flag=True, help="Always quote VALUE as text")
@click.pass_context
def lookup(
    ctx: click.Context,
    table_name: str,
    value: str,
    connection_name: Optional[str],
    follow: Tuple[str, ...],
    as_string: bool,
) -> None:
    """Look up the row with id VALUE in TABLE_NAME and follow references.

    TABLE_NAME may be a guess (``user``, ``Users``); it is matched against the
    tables of the connection.
    """
    log = logging.getLogger("relnavctl.lookup")
    cfg, conn = _connection(log, connection_name)

    try:
        engine = clients.create_engine_for(conn)
        known = clients.list_tables(engine, conn.schema)
    except Exception as e:
        _fail(ctx, "list tables", e, {"connection": conn.name})

    coordinator = NavigationCoordinator(
        clients.SqlAlchemyExecutor(engine, max_rows=1),
        dialect=conn.dialect,
        tables=known,
    )
    asyncio.run(_drill(coordinator, table_name, coerce_value(value, as_string), follow))

    current = coordinator.current
    if ctx.obj.get("json"):
        click.echo(json.dumps({"stack": coordinator.snapshot()}, indent=2, sort_keys=True, default=str))
    else:
        click.echo(" > ".join(f"{c.target_table}#{c.lookup_value}" for c in coordinator.stack))
        if current is not None and isinstance(current.status, Ready):
            row = current.row
            if row is None:
                click.echo("No row found")
            else:
                rows = []
                for col, val in row.items():
                    target = coordinator.classify(col)
                    rows.append([col, "" if val is None else val, f"→ {target}" if target else ""])
                click.echo(tabulate(_truncate_rows(rows, cfg.settings.max_col_width), headers=["COLUMN", "VALUE", "LINK"]))

    if current is not None and isinstance(current.status, Failed):
        click.echo(
            format_error_message("look up row", Exception(current.status.message), {"table": current.target_table}),
            err=True,
        )
        raise SystemExit(2)


@cli.command()
@click.pass_context
def tui(ctx: click.Context) -> None:
    """Launch interactive TUI for relational navigation."""
    try:
        from relnavtui.app import run_tui
        run_tui()
    except ImportError as e:
        click.echo(f"TUI dependencies not available: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        error_msg = format_error_message("launch TUI", e, {})
        click.echo(error_msg, err=True)
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
