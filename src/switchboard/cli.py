"""CLI entry point for Switchboard."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import click
from rich.console import Console
from rich.table import Table

from switchboard import __version__
from switchboard.errors import SwitchboardError

if TYPE_CHECKING:
    from switchboard.config import Settings
    from switchboard.engine.router import DelegationRouter
    from switchboard.models import AggregatedResponse, Request

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="switchboard")
@click.option("--verbose", "-v", is_flag=True, help="Log routing decisions to stderr")
def main(verbose: bool) -> None:
    """Switchboard: route tasks to specialist handlers."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _settings() -> Settings:
    from switchboard.config import Settings

    return Settings.from_env()


def _get_router(settings: Settings | None = None) -> DelegationRouter:
    from switchboard.engine.router import DelegationRouter

    return DelegationRouter.from_settings(settings or _settings())


def _request(task: str, hints: tuple[str, ...]) -> Request:
    from switchboard.models import Request

    return Request(text=task, domain_hints=frozenset(hints))


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]{type(error).__name__}: {error}[/red]")
    sys.exit(1)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing handlers.toml")
def init(force: bool) -> None:
    """Create ~/.switchboard/ with the default handler catalog."""
    from switchboard.config import dump_handler_config
    from switchboard.handlers import DEFAULT_HANDLERS

    settings = _settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.handlers_file.exists() and not force:
        console.print(f"[yellow]Keeping existing {settings.handlers_file}[/yellow]")
    else:
        dump_handler_config(DEFAULT_HANDLERS, settings.handlers_file)
    console.print(f"[green]Switchboard initialized at {settings.data_dir}[/green]")
    console.print(f"  Handlers: {settings.handlers_file}")
    console.print(f"  Ledger:   {settings.ledger_path}")


@main.command()
def handlers() -> None:
    """List registered handlers in registration order."""
    try:
        router = _get_router()
    except SwitchboardError as e:
        _fail(e)

    table = Table(title="Handlers")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Triggers", max_width=40)
    table.add_column("Domains", style="green")
    table.add_column("Depends on", style="yellow")
    table.add_column("Flags")

    for idx, d in enumerate(router.registry.all(), start=1):
        flags = []
        if d.requires_aggregation:
            flags.append("aggregate")
        if d.hand_off_to:
            flags.append(f"→ {d.hand_off_to}")
        table.add_row(
            str(idx),
            d.name,
            ", ".join(sorted(d.triggers)),
            ", ".join(sorted(d.domains)),
            ", ".join(sorted(d.depends_on)),
            " ".join(flags),
        )

    console.print(table)


@main.command()
@click.argument("task")
@click.option("--hint", "hints", multiple=True, help="Domain hint (repeatable)")
def classify(task: str, hints: tuple[str, ...]) -> None:
    """Score TASK against every handler."""
    try:
        router = _get_router()
        matches = router.classify(_request(task, hints))
    except (SwitchboardError, ValueError) as e:
        _fail(e)

    table = Table(title="Matches")
    table.add_column("Handler", style="cyan")
    table.add_column("Score", style="bold")
    table.add_column("Matched triggers")
    for m in matches:
        table.add_row(m.handler, f"{m.score:g}", ", ".join(sorted(m.matched_triggers)))
    console.print(table)


@main.command()
@click.argument("task")
@click.option("--hint", "hints", multiple=True, help="Domain hint (repeatable)")
def plan(task: str, hints: tuple[str, ...]) -> None:
    """Show the execution plan for TASK without running it."""
    try:
        router = _get_router()
        decision = router.decide(_request(task, hints))
    except (SwitchboardError, ValueError) as e:
        _fail(e)

    execution = decision.plan
    console.print(f"[bold]Pattern:[/bold] {execution.pattern.value}")
    for idx, stage in enumerate(execution.stages, start=1):
        console.print(f"  Stage {idx}: {', '.join(stage)}")
    if execution.aggregation_step:
        console.print("  Then: aggregation oversight")
    if execution.skipped:
        console.print(f"[dim]Skipped: {', '.join(execution.skipped)}[/dim]")


@main.command()
@click.argument("task")
@click.option("--hint", "hints", multiple=True, help="Domain hint (repeatable)")
@click.option("--timeout", type=float, default=None, help="Per-handler timeout in seconds")
@click.option("--no-record", is_flag=True, help="Do not write to the ledger")
def route(task: str, hints: tuple[str, ...], timeout: float | None, no_record: bool) -> None:
    """Route TASK to its handlers and print the combined result."""
    settings = _settings()
    if timeout is not None:
        settings.default_timeout = timeout

    try:
        request = _request(task, hints)
        response = asyncio.run(_route(settings, request, record=not no_record))
    except (SwitchboardError, ValueError) as e:
        _fail(e)

    _print_response(response)


async def _route(settings: Settings, request: Request, record: bool) -> AggregatedResponse:
    from switchboard.storage.ledger import RoutingLedger

    if not record:
        return await _get_router(settings).route(request)

    async with RoutingLedger(str(settings.ledger_path)) as ledger:
        router = _get_router(settings)
        router.ledger = ledger
        return await router.route(request)


@main.command()
@click.option("--limit", default=20, help="Number of entries to show")
def history(limit: int) -> None:
    """Show recently routed requests."""
    rows = asyncio.run(_history(limit))

    if not rows:
        console.print("[dim]No routing history yet. Route a task first.[/dim]")
        return

    table = Table(title="Routing History")
    table.add_column("Request", style="cyan")
    table.add_column("Task", max_width=40)
    table.add_column("Pattern")
    table.add_column("Status", style="bold")
    table.add_column("Date")

    for row in rows:
        status = row["status"] + (" (cancelled)" if row["cancelled"] else "")
        table.add_row(
            row["request_id"],
            row["text"][:40],
            row["pattern"] or "",
            status,
            row["created_at"][:16],
        )

    console.print(table)


async def _history(limit: int) -> list[dict[str, Any]]:
    from switchboard.storage.ledger import RoutingLedger

    settings = _settings()
    if not settings.ledger_path.exists():
        return []
    async with RoutingLedger(str(settings.ledger_path)) as ledger:
        return await ledger.recent(limit)


def _print_response(response: AggregatedResponse) -> None:
    """Print routing result summary."""
    status_color = {"success": "green", "partial": "yellow", "failure": "red"}.get(
        response.status.value, "dim"
    )

    console.print(f"\n[{status_color}]Status: {response.status.value}[/{status_color}]")
    if response.pattern:
        console.print(f"Pattern: {response.pattern.value}")
    console.print(f"Handlers: {len(response.results)}")
    console.print(f"Request: {response.request_id}")
    console.print()
    console.print(response.summary, markup=False)

    if response.issues:
        console.print("\n[red]Issues:[/red]")
        for issue in response.issues:
            console.print(f"  - {issue}", markup=False)
