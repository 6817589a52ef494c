"""Main CLI interface for Focus Ledger."""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from focus_ledger import __version__
from focus_ledger.config import TrackerConfig, load_config
from focus_ledger.core.aggregator import (
    UNCATEGORIZED,
    build_report,
    category_names,
    session_label,
)
from focus_ledger.core.clock import format_elapsed, hour_progress, localize, utc_now
from focus_ledger.core.controller import UNSET, SessionController
from focus_ledger.core.errors import LedgerError, NotFoundError, ValidationError
from focus_ledger.core.registry import CategoryRegistry
from focus_ledger.core.rewards import compute_stats, shop_listing
from focus_ledger.core.store import SessionStore
from focus_ledger.log import configure_logging
from focus_ledger.models.category import Category

console = Console()


class Ledger:
    """The store and the components that operate on it, for one invocation."""

    def __init__(self, config: TrackerConfig):
        self.config = config
        self.tz = config.tz()
        self.store = SessionStore(config.state_file)
        self.controller = SessionController(self.store)
        self.registry = CategoryRegistry(self.store)

    def names(self):
        return category_names(self.store.list_categories())

    def resolve_category(self, ref: str) -> Category:
        """Find a category by exact id, then by name (case-insensitive)."""
        categories = self.store.list_categories()
        for category in categories:
            if category.id == ref:
                return category
        matches = [c for c in categories if c.name.lower() == ref.strip().lower()]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ValidationError(f"Category name is ambiguous, use its id: {ref}")
        raise NotFoundError(f"category not found: {ref}")

    def resolve_session(self, ref: str) -> str:
        """Expand a session id prefix, as shown in the sessions table."""
        ids = [s.id for s in self.store.list_sessions() if s.id.startswith(ref)]
        if len(ids) == 1:
            return ids[0]
        if len(ids) > 1:
            raise ValidationError(f"Session id prefix is ambiguous: {ref}")
        raise NotFoundError(f"session not found: {ref}")

    def local(self, value: datetime) -> str:
        return value.astimezone(self.tz).strftime("%Y-%m-%d %H:%M")


def get_ledger_or_exit(ctx: click.Context) -> Ledger:
    """Get a Ledger for the configured data dir or exit with error message."""
    config: TrackerConfig = ctx.obj
    if not config.exists():
        console.print(
            "[red]Focus Ledger not initialized. Run 'focus-ledger init' first.[/red]"
        )
        raise click.Abort()
    try:
        return Ledger(config)
    except LedgerError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e


def _fail(e: LedgerError):
    console.print(f"[red]Error: {e}[/red]")
    raise click.Abort() from e


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    help="Data directory (default: $FOCUS_LEDGER_HOME or ~/.focus-ledger)",
)
@click.option("--timezone", "tz_name", help="Reporting timezone, e.g. Europe/Moscow")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx, home: Optional[Path], tz_name: Optional[str], verbose: bool):
    """Focus Ledger - track time against categories and earn coins."""
    try:
        config = load_config(home, tz_name)
    except LedgerError as e:
        _fail(e)
    configure_logging(config.debug_log if config.exists() else None, verbose)
    ctx.obj = config


@main.command()
@click.pass_context
def init(ctx):
    """Initialize the data directory."""
    config: TrackerConfig = ctx.obj
    if config.exists():
        console.print(f"[red]Error: already initialized in {config.data_dir}[/red]")
        raise click.Abort()

    config.created = datetime.now(timezone.utc)
    config.save()
    configure_logging(config.debug_log)
    console.print(
        f"[green]✅ Initialized Focus Ledger in {config.data_dir} "
        f"(timezone {config.timezone})[/green]"
    )


# ---------- timer ----------


@main.command()
@click.option("--category", "-c", help="Category id or name")
@click.option("--no-category", is_flag=True, help="Track without a category")
@click.pass_context
def start(ctx, category: Optional[str], no_category: bool):
    """Start the timer."""
    ledger = get_ledger_or_exit(ctx)
    try:
        if no_category:
            category_id = None
        elif category:
            category_id = ledger.resolve_category(category).id
        else:
            category_id = ledger.controller.suggest_category()
        active = ledger.controller.start(category_id)
    except LedgerError as e:
        _fail(e)

    label = ledger.names().get(active.category_id, UNCATEGORIZED)
    console.print(
        f"[green]▶ Started[/green] {label} at {ledger.local(active.start_time)}"
    )


@main.command()
@click.pass_context
def stop(ctx):
    """Stop the timer and record the session."""
    ledger = get_ledger_or_exit(ctx)
    try:
        session = ledger.controller.stop()
    except LedgerError as e:
        _fail(e)

    label = session_label(session, ledger.names())
    console.print(
        f"[green]■ Stopped[/green] {label}: {format_elapsed(session.duration_sec)}"
    )


@main.command()
@click.pass_context
def status(ctx):
    """Show the running session."""
    ledger = get_ledger_or_exit(ctx)
    active = ledger.controller.current()
    if active is None:
        console.print("[yellow]No active session[/yellow]")
        return

    elapsed = ledger.controller.elapsed_seconds()
    label = ledger.names().get(active.category_id, UNCATEGORIZED)
    console.print(f"[bold]Category:[/bold] {label}")
    console.print(f"[bold]Started:[/bold] {ledger.local(active.start_time)}")
    console.print(
        f"[bold]Elapsed:[/bold] {format_elapsed(elapsed)} "
        f"({hour_progress(elapsed):.0%} of the hour)"
    )


# ---------- history ----------


@main.command()
@click.pass_context
def sessions(ctx):
    """List recorded sessions, newest first."""
    ledger = get_ledger_or_exit(ctx)
    history = ledger.controller.list_sessions()
    if not history:
        console.print("[yellow]No sessions found[/yellow]")
        return

    names = ledger.names()
    table = Table(title="Sessions")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category", style="green")
    table.add_column("Start Time", style="magenta")
    table.add_column("End Time", style="magenta")
    table.add_column("Duration", style="blue")

    for session in history:
        table.add_row(
            session.id[:8],
            session_label(session, names),
            ledger.local(session.start_time),
            ledger.local(session.end_time),
            format_elapsed(session.duration_sec),
        )

    console.print(table)


@main.command()
@click.argument("session_ref")
@click.option("--minutes", type=float, help="New duration in minutes")
@click.option("--category", "-c", help="New category id or name")
@click.option("--no-category", is_flag=True, help="Clear the category")
@click.option("--start", "start_at", help="New start, e.g. '2024-01-01 09:00'")
@click.pass_context
def edit(
    ctx,
    session_ref: str,
    minutes: Optional[float],
    category: Optional[str],
    no_category: bool,
    start_at: Optional[str],
):
    """Edit a session. The end time follows from start + duration."""
    ledger = get_ledger_or_exit(ctx)
    try:
        session_id = ledger.resolve_session(session_ref)
        category_id = UNSET
        if no_category:
            category_id = None
        elif category:
            category_id = ledger.resolve_category(category).id
        start_time = localize(start_at, ledger.tz) if start_at else UNSET
        duration = UNSET if minutes is None else minutes

        session = ledger.controller.edit_session(
            session_id,
            duration_minutes=duration,
            category_id=category_id,
            start_time=start_time,
        )
    except LedgerError as e:
        _fail(e)

    console.print(
        f"[green]✅ Updated {session.id[:8]}:[/green] "
        f"{ledger.local(session.start_time)} → {ledger.local(session.end_time)} "
        f"({format_elapsed(session.duration_sec)})"
    )


@main.command()
@click.argument("session_ref")
@click.pass_context
def delete(ctx, session_ref: str):
    """Delete a session."""
    ledger = get_ledger_or_exit(ctx)
    try:
        session_id = ledger.resolve_session(session_ref)
        ledger.controller.delete_session(session_id)
    except LedgerError as e:
        _fail(e)
    console.print(f"[green]Deleted session {session_id[:8]}[/green]")


# ---------- categories ----------


@main.group("category")
def category_group():
    """Manage categories."""


@category_group.command("list")
@click.pass_context
def category_list(ctx):
    """List categories."""
    ledger = get_ledger_or_exit(ctx)
    categories = ledger.registry.list()
    if not categories:
        console.print("[yellow]No categories found[/yellow]")
        return

    table = Table(title="Categories")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Sessions", style="yellow")
    for category in categories:
        used = len(ledger.store.sessions_for_category(category.id))
        table.add_row(category.id, category.name, str(used))
    console.print(table)


@category_group.command("add")
@click.argument("name")
@click.pass_context
def category_add(ctx, name: str):
    """Create a category."""
    ledger = get_ledger_or_exit(ctx)
    category = ledger.registry.create(name)
    if category is None:
        console.print("[yellow]Ignored empty category name[/yellow]")
        return
    console.print(f"[green]Created {category.name}[/green] ({category.id})")


@category_group.command("rename")
@click.argument("category_ref")
@click.argument("name")
@click.pass_context
def category_rename(ctx, category_ref: str, name: str):
    """Rename a category."""
    ledger = get_ledger_or_exit(ctx)
    try:
        category_id = ledger.resolve_category(category_ref).id
        category = ledger.registry.rename(category_id, name)
    except LedgerError as e:
        _fail(e)
    console.print(f"[green]Renamed to {category.name}[/green]")


@category_group.command("delete")
@click.argument("category_ref")
@click.pass_context
def category_delete(ctx, category_ref: str):
    """Delete a category that has no sessions."""
    ledger = get_ledger_or_exit(ctx)
    try:
        category = ledger.resolve_category(category_ref)
        ledger.registry.delete(category.id)
    except LedgerError as e:
        _fail(e)
    console.print(f"[green]Deleted {category.name}[/green]")


# ---------- reporting ----------


@main.command()
@click.argument(
    "view", type=click.Choice(["day", "week", "month"]), default="day"
)
@click.pass_context
def report(ctx, view: str):
    """Show hours per category for today, this week or this month."""
    ledger = get_ledger_or_exit(ctx)
    result = build_report(
        ledger.store.snapshot(), utc_now(), ledger.tz, ledger.config.timezone
    )

    if view == "month":
        _print_month(result)
    else:
        buckets = result.hourly if view == "day" else result.weekly
        title = "Today" if view == "day" else "This week"
        table = Table(title=f"{title} ({result.timezone})")
        table.add_column("Hour" if view == "day" else "Day", style="cyan")
        for label, color in result.colors.items():
            table.add_column(label, style=color, justify="right")
        table.add_column("Total", style="bold", justify="right")
        for bucket in buckets:
            key = f"{bucket.hour:02}" if view == "day" else bucket.label
            values = [f"{bucket.hours.get(label, 0.0):.2f}" for label in result.colors]
            table.add_row(key, *values, f"{bucket.total:.2f}")
        console.print(table)

    console.print(f"Coins: {result.stats.coins}")


def _print_month(result) -> None:
    heatmap = result.monthly
    table = Table(title=f"{heatmap.year}-{heatmap.month:02} ({result.timezone})")
    for label in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"):
        table.add_column(label, justify="center")

    for week in heatmap.weeks():
        row: List[str] = []
        for cell in week:
            if cell.is_placeholder:
                row.append("")
            elif cell.intensity == 0:
                row.append(f"[dim]{cell.day}[/dim]")
            else:
                shade = "bold green" if cell.intensity > 0.6 else "green"
                row.append(f"[{shade}]{cell.day}\n{cell.hours:.2f}h[/{shade}]")
        table.add_row(*row)
    console.print(table)


@main.command()
@click.pass_context
def coins(ctx):
    """Show total tracked time and coins earned."""
    ledger = get_ledger_or_exit(ctx)
    stats = compute_stats(ledger.store.list_sessions())
    console.print(f"[bold]Total tracked:[/bold] {format_elapsed(stats.total_seconds)}")
    console.print(f"[bold]Coins:[/bold] {stats.coins}")


@main.command()
@click.pass_context
def shop(ctx):
    """List shop items and whether you can afford them."""
    ledger = get_ledger_or_exit(ctx)
    balance = compute_stats(ledger.store.list_sessions()).coins

    table = Table(title=f"Shop (balance: {balance} coins)")
    table.add_column("Item", style="cyan")
    table.add_column("Cost", style="yellow", justify="right")
    table.add_column("Affordable", style="green")
    for offer in shop_listing(balance):
        table.add_row(
            offer.item.name, str(offer.item.cost), "yes" if offer.affordable else "no"
        )
    console.print(table)


if __name__ == "__main__":
    main()
