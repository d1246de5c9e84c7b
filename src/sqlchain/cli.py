# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for sqlchain (sqlchain command).

Runs ad-hoc statements through a Session, which is handy to check a
connection URL or a config file before wiring it into an application.

Commands:
    ping: Connect and report the server/session
    query: Execute one statement and print the rows
    version: Show version info

Connection settings come from --url (or SQLCHAIN_URL), else from the
[database] section of --config, else from SQLCHAIN_* environment variables.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import SessionConfig
from .result import Result, ResultSet
from .sql import Session

console = Console()


def load_config(url: str | None, config_file: str | None) -> SessionConfig:
    """Resolve connection settings from the command line options."""
    if url:
        return SessionConfig.from_url(url)
    if config_file:
        return SessionConfig.from_ini(config_file)
    return SessionConfig.from_env()


def coerce_param(value: str) -> Any:
    """Turn a command line parameter into int/float/None when it looks like one."""
    if value.upper() == "NULL":
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


async def _ping(config: SessionConfig) -> Result:
    async with Session(config) as session:
        return await session.ensure_connected()


async def _query(
    config: SessionConfig, sql: str, params: list[Any], index: int | None, column: str | None
) -> Result:
    async with Session(config) as session:
        return await session.execute(sql, params, index, column)


def cell(value: Any) -> str:
    """Render one field for a rich table."""
    return "[dim]NULL[/dim]" if value is None else escape(str(value))


def print_rows(rows: ResultSet) -> None:
    """Print a result set as a rich table."""
    columns = rows.fields or (list(rows[0]) if rows else [])
    if not columns:
        console.print(f"[dim]OK, {rows.rowcount} row(s) affected[/dim]")
        return

    table = Table()
    for name in columns:
        table.add_column(str(name), style="cyan" if name == columns[0] else None)
    for row in rows:
        table.add_row(*(cell(row.get(c)) for c in columns))
    console.print(table)
    console.print(f"[dim]{len(rows)} row(s)[/dim]")


def run(coro: Any) -> Result:
    """Run a session coroutine; driver setup errors exit with status 1."""
    try:
        return asyncio.run(coro)
    except (ValueError, ImportError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def fail(result: Result) -> None:
    """Print the error carried by a failed result and exit with status 1."""
    error = result.error
    console.print(f"[red]Error:[/red] {type(error).__name__}: {error}")
    sys.exit(1)


# ============================================================================
# CLI Commands
# ============================================================================


@click.group()
@click.version_option(package_name="sqlchain")
@click.option("--url", "-u", envvar="SQLCHAIN_URL", default=None, help="Connection URL.")
@click.option(
    "--config", "-c", "config_file", default=None,
    type=click.Path(exists=True, dir_okay=False), help="INI file with a [database] section.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log SQL statements and connections.")
@click.pass_context
def main(ctx: click.Context, url: str | None, config_file: str | None, verbose: bool) -> None:
    """sqlchain - Chainable SQL builder and session manager."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["config_file"] = config_file


def _config_from(ctx: click.Context) -> SessionConfig:
    try:
        return load_config(ctx.obj["url"], ctx.obj["config_file"])
    except (ValueError, KeyError, FileNotFoundError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)


@main.command("ping")
@click.pass_context
def ping_cmd(ctx: click.Context) -> None:
    """Connect to the database and report."""
    config = _config_from(ctx)
    result = run(_ping(config))
    if not result.success:
        fail(result)
    console.print(f"[green]Connected[/green] {config!r}")


@main.command("query")
@click.argument("sql")
@click.argument("params", nargs=-1)
@click.option("--index", "-i", type=int, default=None, help="Only print the row at this position.")
@click.option("--column", "-k", default=None, help="With --index, only print this column.")
@click.pass_context
def query_cmd(
    ctx: click.Context, sql: str, params: tuple[str, ...], index: int | None, column: str | None
) -> None:
    """Execute SQL with ? placeholders bound to PARAMS.

    PARAMS that look like numbers are bound as numbers; NULL binds None.
    """
    config = _config_from(ctx)
    result = run(_query(config, sql, [coerce_param(p) for p in params], index, column))
    if not result.success:
        fail(result)

    value = result.value
    if isinstance(value, ResultSet):
        print_rows(value)
    elif isinstance(value, dict):
        table = Table(show_header=False)
        table.add_column("Column", style="cyan")
        table.add_column("Value")
        for key, item in value.items():
            table.add_row(escape(str(key)), cell(item))
        console.print(table)
    else:
        console.print("NULL" if value is None else escape(str(value)))


@main.command("version")
def version_cmd() -> None:
    """Show version information."""
    from sqlchain import __version__

    console.print(f"sqlchain {__version__}")


if __name__ == "__main__":
    main()
