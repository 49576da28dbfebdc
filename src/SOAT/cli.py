#!/usr/bin/env python3
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.core.config import settings
from SOAT.db.session import build_engine, build_sessionmaker, create_all
from SOAT.exceptions import SOATError
from SOAT.services import AutoUpdateSweeper, ReportService, sweep_concurrency_for

# -----------------------------------------------------------------------------
# Globals / Config
# -----------------------------------------------------------------------------
console = Console()

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _run_with_db(url: str, work: Callable[[async_sessionmaker[AsyncSession]], Awaitable[T]]) -> T:
    """Build an engine for ``url``, run ``work`` with a sessionmaker, dispose the engine."""

    async def _go() -> T:
        engine = build_engine(url)
        try:
            return await work(build_sessionmaker(engine))
        finally:
            await engine.dispose()

    return asyncio.run(_go())


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"not an ISO-8601 datetime: {value!r}", param_hint="--now") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=settings.school_tz)
    return moment


def show_table(items: list[Dict[str, Any]], columns: list[str], title: Optional[str] = None) -> None:
    t = Table(show_lines=False, title=title)
    for col in columns:
        t.add_column(col)
    for it in items:
        t.add_row(*(str(it.get(c, "")) for c in columns))
    console.print(t)


def _fail(exc: SOATError) -> None:
    console.print(f"[red]{exc.error_code}[/]: {exc.message}")
    raise click.Abort()


database_url_option = click.option(
    "--database-url",
    default=None,
    help="Override DATABASE_URL (e.g. sqlite+aiosqlite:///./soat.db)",
)


# ------------------------------
# Root CLI
# ------------------------------
@click.group(help="SOAT schedule status CLI")
def cli() -> None:
    """Top-level command group."""


@cli.command("init-db", help="Create all tables (development; use Alembic in production)")
@database_url_option
def init_db(database_url: Optional[str]) -> None:
    url = database_url or settings.DATABASE_URL

    async def _go() -> None:
        engine = build_engine(url)
        try:
            await create_all(engine)
        finally:
            await engine.dispose()

    asyncio.run(_go())
    console.print("[green]Tables created[/] ✅")


@cli.command("sweep", help="Reconcile stored schedule statuses with the clock and assessment data")
@click.option("--now", "now_str", default=None, help="Evaluate as of this ISO-8601 time (default: current time)")
@database_url_option
def sweep(now_str: Optional[str], database_url: Optional[str]) -> None:
    url = database_url or settings.DATABASE_URL
    now = _parse_now(now_str)

    async def _work(maker: async_sessionmaker[AsyncSession]):
        sweeper = AutoUpdateSweeper(maker, concurrency=sweep_concurrency_for(url))
        return await sweeper.sweep(now)

    report = _run_with_db(url, _work)
    if report.transitions:
        show_table(
            [{"schedule": sid, "from": old, "to": new} for sid, old, new in report.transitions],
            ["schedule", "from", "to"],
            title="Status changes",
        )
    if report.failed:
        console.print(f"[yellow]Failed[/]: {', '.join(str(s) for s in report.failed)}")
        if report.retryable:
            console.print("Run the sweep again to retry the failed schedules")
    console.print(f"Updated {report.updated} schedule(s)")


@cli.command("summary", help="Show the assessment completeness of one schedule")
@click.argument("schedule_id", type=int)
@database_url_option
def summary(schedule_id: int, database_url: Optional[str]) -> None:
    url = database_url or settings.DATABASE_URL

    async def _work(maker: async_sessionmaker[AsyncSession]):
        return await ReportService(maker).summary(schedule_id)

    try:
        completeness = _run_with_db(url, _work)
    except SOATError as exc:
        _fail(exc)
        return

    rows = [
        {"field": "assessed", "value": completeness.assessed_count},
        {"field": "total students", "value": completeness.total_students},
        {"field": "complete", "value": "yes" if completeness.is_complete else "no"},
    ]
    if completeness.averages is not None:
        rows.extend(
            {"field": name.replace("_", " "), "value": value}
            for name, value in completeness.averages.as_dict().items()
        )
    show_table(rows, ["field", "value"], title=f"Schedule {schedule_id}")


def _main():
    cli()


if __name__ == "__main__":
    _main()
