"""Mini README: Entry point CLI for the festival fund dashboard.

This script exposes a Typer CLI with three commands:

    * run - start the FastAPI dashboard with uvicorn.
    * summary - perform one reload against the configured store and print
      the financial figures.
    * init-db - create the relational tables for ``database_url``.

Settings come from ``FESTIVALFUND_*`` environment variables when available.
"""

from __future__ import annotations

import asyncio

import typer
import uvicorn

from festivalfund.aggregation import SnapshotCache
from festivalfund.configuration import get_settings
from festivalfund.errors import FestivalFundError
from festivalfund.logging_utils import configure_root_logger
from festivalfund.records import format_currency
from festivalfund.store import SqlFestivalStore, build_store

cli = typer.Typer(help="Launch and manage the festival fund dashboard.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # Browsers cannot navigate to the 0.0.0.0 / :: wildcard addresses.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        "Starting festival dashboard on "
        f"{effective_host}:{effective_port}.\n"
        "Open your browser at "
        f"http://{browser_host}:{effective_port}"
        + (
            " (use your machine's IP address for remote access)."
            if effective_host in {"0.0.0.0", "::"}
            else ""
        )
    )
    uvicorn.run(
        "festivalfund.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


async def _load_snapshot():
    settings = get_settings()
    store = build_store(settings.database_url, seed_demo=settings.demo_data)
    try:
        return await SnapshotCache(store, fetch_timeout=settings.fetch_timeout_seconds).reload()
    finally:
        await store.close()


@cli.command()
def summary() -> None:
    """Print totals, balance and goal progress from the configured store."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    try:
        snapshot = asyncio.run(_load_snapshot())
    except FestivalFundError as error:
        typer.echo(f"Could not load festival records: {error}", err=True)
        raise typer.Exit(code=1) from error

    symbol = settings.currency_symbol
    figures = snapshot.summary
    goal = snapshot.goal
    if snapshot.settings:
        typer.echo(f"{snapshot.settings.festival_name} {snapshot.settings.festival_year}")
    typer.echo(f"Donations: {format_currency(figures.total_donations, symbol)} ({figures.donation_count})")
    typer.echo(f"Expenses:  {format_currency(figures.total_expenses, symbol)} ({figures.expense_count})")
    typer.echo(f"Balance:   {format_currency(figures.remaining_balance, symbol)}")
    if goal.has_goal:
        typer.echo(
            f"Goal:      {goal.percentage:.0f}% of {format_currency(goal.goal, symbol)}"
            f" ({format_currency(goal.remaining, symbol)} to go)"
        )


@cli.command("init-db")
def init_db(
    database_url: str = typer.Option(None, help="SQLAlchemy URL; defaults to the configured one."),
) -> None:
    """Create the donations, expenses and settings tables."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    url = database_url or settings.database_url
    if not url:
        typer.echo("No database URL configured; set FESTIVALFUND_DATABASE_URL.", err=True)
        raise typer.Exit(code=1)
    store = SqlFestivalStore.from_url(url)
    store.engine.dispose()
    typer.echo("Festival tables are ready.")


if __name__ == "__main__":
    cli()
