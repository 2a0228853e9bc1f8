"""Click CLI for formcache: inspect and manage the offline form cache."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from formcache.config.schema import FormCacheSettings, load_settings
from formcache.coordinator import FormCache
from formcache.types import CacheStats, CheckOutcome, Survey

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")


def _log_level(verbosity: int, configured: str) -> int:
    """``-v`` flags win; otherwise use the configured level name."""
    if verbosity == 1:
        return logging.INFO
    if verbosity >= 2:
        return logging.DEBUG
    level = logging.getLevelName(configured.upper())
    return level if isinstance(level, int) else logging.WARNING


def _setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _settings(ctx: click.Context) -> FormCacheSettings:
    return ctx.obj["settings"]


def _run(settings: FormCacheSettings, fn: Callable[[FormCache], Awaitable[T]]) -> T:
    """Run *fn* against a cache built from *settings*, closing it afterwards."""

    async def _main() -> T:
        async with FormCache.from_settings(settings) as cache:
            return await fn(cache)

    return asyncio.run(_main())


@click.group()
@click.version_option(package_name="formcache")
@click.option("--server", type=str, default=None, help="Form server base URL.")
@click.option("--db", type=click.Path(), default=None, help="Path to the cache database.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, server: str | None, db: str | None, verbose: int) -> None:
    """formcache: offline form and media cache."""
    ctx.ensure_object(dict)
    try:
        settings = load_settings(server_url=server, db_path=db)
    except ValueError as e:
        error_console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)
    _setup_logging(_log_level(verbose, settings.log_level))
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("survey_id")
@click.pass_context
def fetch(ctx: click.Context, survey_id: str) -> None:
    """Load a form into the cache (no-op if it is already cached)."""

    async def _fetch(cache: FormCache) -> Survey | None:
        survey = await cache.init(survey_id)
        if survey is not None:
            await cache.ensure_max_size(survey)
        return survey

    survey = _run(_settings(ctx), _fetch)
    if survey is None:
        error_console.print(f"[red]Error:[/red] could not load survey {survey_id}")
        sys.exit(1)
    _print_survey(survey)


@cli.command()
@click.argument("survey_id")
@click.pass_context
def show(ctx: click.Context, survey_id: str) -> None:
    """Show a cached form without touching the network."""
    survey = _run(_settings(ctx), lambda cache: cache.get(survey_id))
    if survey is None:
        error_console.print(f"[yellow]Survey {survey_id} is not cached.[/yellow]")
        sys.exit(1)
    _print_survey(survey)


@cli.command()
@click.argument("survey_id")
@click.pass_context
def check(ctx: click.Context, survey_id: str) -> None:
    """Check a cached form against the server's version now."""
    outcome = _run(_settings(ctx), lambda cache: cache.check_now(survey_id))
    styles = {
        CheckOutcome.UP_TO_DATE: "green",
        CheckOutcome.UPDATED: "cyan",
        CheckOutcome.EVICTED: "yellow",
        CheckOutcome.FAILED: "red",
    }
    style = styles[outcome]
    console.print(f"[{style}]{survey_id}: {outcome.value}[/{style}]")
    if outcome == CheckOutcome.FAILED:
        sys.exit(1)


@cli.command()
@click.argument("survey_id")
@click.option("-o", "--output", type=click.Path(), help="Write the bound form HTML here.")
@click.pass_context
def media(ctx: click.Context, survey_id: str, output: str | None) -> None:
    """Resolve a cached form's media and bind it into the markup."""
    from formcache.media.target import RenderTarget

    async def _media(cache: FormCache) -> str | None:
        survey = await cache.get(survey_id)
        if survey is None:
            return None
        target = RenderTarget.from_markup(survey.form_definition)
        survey = await cache.resolve_media(survey, target)
        console.print(
            f"Media: {len(survey.resources)} file(s), state {survey.resources.state.value}"
        )
        return str(target)

    html = _run(_settings(ctx), _media)
    if html is None:
        error_console.print(f"[yellow]Survey {survey_id} is not cached.[/yellow]")
        sys.exit(1)
    if output:
        Path(output).write_text(html, encoding="utf-8")
        console.print(f"[green]Written to {output}[/green]")
    else:
        console.print(html, markup=False, highlight=False)


@cli.command()
@click.argument("survey_id")
@click.pass_context
def remove(ctx: click.Context, survey_id: str) -> None:
    """Remove one form and its media from the cache."""
    _run(_settings(ctx), lambda cache: cache.remove(survey_id))
    console.print(f"[green]Removed {survey_id}.[/green]")


@cli.command()
@click.confirmation_option(prompt="Are you sure you want to flush the form cache?")
@click.pass_context
def flush(ctx: click.Context) -> None:
    """Remove every cached form (records are kept)."""
    _run(_settings(ctx), lambda cache: cache.flush())
    console.print("[green]Form cache flushed.[/green]")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show cache statistics."""

    async def _stats(cache: FormCache) -> CacheStats:
        return cache.stats()

    result = _run(_settings(ctx), _stats)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Surveys", str(result.surveys))
    table.add_row("Media files", str(result.resources))
    table.add_row("Size (MB)", f"{result.size_mb:.1f}")
    console.print(table)


def _print_survey(survey: Survey) -> None:
    table = Table(title=f"Survey {survey.survey_id}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Hash", survey.hash or "-")
    table.add_row("Max size", str(survey.max_size) if survey.max_size is not None else "-")
    table.add_row("Media", survey.resources.state.value)
    table.add_row("Definition", f"{len(survey.form_definition):,} chars")
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
