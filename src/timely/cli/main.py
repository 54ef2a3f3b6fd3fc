"""Main CLI interface for Timely."""

import logging
from datetime import datetime, time, timezone
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from timely.config import Settings
from timely.core.errors import TimelyError
from timely.core.timer import ENDED, PAUSED, RESUMED, STARTED
from timely.core.tracker import Tracker
from timely.models.session import Session

console = Console()

DATETIME_FORMATS = ["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S"]

_EVENT_STYLES = {
    STARTED: ("green", "▶ Started"),
    PAUSED: ("yellow", "⏸ Paused"),
    RESUMED: ("green", "▶ Resumed"),
    ENDED: ("blue", "⏹ Ended"),
}


def format_duration(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, rem = divmod(int(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("timely")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level.upper())


def _announce(event: str, session: Session) -> None:
    """Print each timer transition as it happens."""
    style, label = _EVENT_STYLES[event]
    message = f"[{style}]{label} session {session.id[:8]}[/{style}]"
    if event == ENDED:
        message += f" after [bold]{format_duration(session.total_seconds)}[/bold]"
    console.print(message)


def get_tracker_or_exit(ctx: click.Context) -> Tracker:
    """Build the Tracker for this invocation or exit with error message."""
    settings: Settings = ctx.obj
    try:
        tracker = Tracker.from_settings(settings)
    except TimelyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e
    return tracker


def _run(ctx: click.Context, action: Callable[[Tracker], object], announce: bool = False):
    tracker = get_tracker_or_exit(ctx)
    try:
        if announce:
            tracker.timer.add_listener(_announce)
        return action(tracker)
    except TimelyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e


@click.group()
@click.version_option(package_name="timely")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding sessions.json (default: $TIMELY_DATA_DIR)",
)
@click.option("--no-history", is_flag=True, help="Don't record a git history of changes")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], no_history: bool, verbose: bool):
    """Timely - track work sessions, pauses and overtime."""
    settings = Settings()
    overrides = {}
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if no_history:
        overrides["history"] = False
    if overrides:
        settings = settings.model_copy(update=overrides)

    _configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@main.command()
@click.pass_context
def start(ctx: click.Context):
    """Start a new session."""
    _run(ctx, lambda tracker: tracker.start(), announce=True)


@main.command()
@click.pass_context
def pause(ctx: click.Context):
    """Pause the running session."""
    _run(ctx, lambda tracker: tracker.pause(), announce=True)


@main.command()
@click.pass_context
def resume(ctx: click.Context):
    """Resume the paused session."""
    _run(ctx, lambda tracker: tracker.resume(), announce=True)


@main.command()
@click.pass_context
def end(ctx: click.Context):
    """End the current session."""
    _run(ctx, lambda tracker: tracker.end(), announce=True)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show the timer state."""
    state = _run(ctx, lambda tracker: tracker.get_current_state())

    if not state.is_running:
        console.print("[bold]Timer:[/bold] idle")
        return

    label = "[yellow]paused[/yellow]" if state.is_paused else "[green]running[/green]"
    console.print(f"[bold]Timer:[/bold] {label}")
    console.print(f"[bold]Session:[/bold] {state.current_session_id}")
    console.print(f"[bold]Elapsed:[/bold] {format_duration(state.elapsed_seconds)}")


@main.command()
@click.option("--limit", default=20, help="Number of sessions to show")
@click.pass_context
def sessions(ctx: click.Context, limit: int):
    """List sessions, newest first."""
    all_sessions = _run(ctx, lambda tracker: tracker.get_all_sessions())

    if not all_sessions:
        console.print("[yellow]No sessions found[/yellow]")
        return

    table = Table(title="Sessions")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Start (UTC)", style="magenta")
    table.add_column("End (UTC)", style="magenta")
    table.add_column("Pauses", style="yellow")
    table.add_column("Duration", style="blue")

    for session in all_sessions[:limit]:
        if session.is_active:
            end_time = "⏸ Paused" if session.is_paused else "🟢 Running"
            duration = "Active"
        else:
            end_time = session.end.strftime("%Y-%m-%d %H:%M")
            duration = format_duration(session.total_seconds)

        table.add_row(
            session.id[:8],
            session.start.strftime("%Y-%m-%d %H:%M"),
            end_time,
            str(len(session.pauses)),
            duration,
        )

    console.print(table)


@main.command()
@click.argument("year", type=int, required=False)
@click.argument("month", type=int, required=False)
@click.pass_context
def summary(ctx: click.Context, year: Optional[int], month: Optional[int]):
    """Show the monthly summary (default: current UTC month)."""
    today = datetime.now(timezone.utc)
    year = year if year is not None else today.year
    month = month if month is not None else today.month

    result = _run(ctx, lambda tracker: tracker.get_monthly_summary(year, month))

    console.print(
        Panel(
            f"[bold]Total:[/bold] {format_duration(result.total_seconds)}\n"
            f"[bold]Sessions:[/bold] {result.session_count}\n"
            f"[bold]Longest:[/bold] {format_duration(result.longest_session_seconds)}\n"
            f"[bold]Regular:[/bold] {result.regular_hours:.1f}h\n"
            f"[bold]Overtime:[/bold] [orange3]{result.overtime_hours:.1f}h[/orange3]",
            title=f"Summary {result.year}-{result.month:02d}",
        )
    )

    if not result.daily_breakdown:
        console.print("[yellow]No sessions this month[/yellow]")
        return

    daily = Table(title="Daily Breakdown")
    daily.add_column("Date", style="magenta")
    daily.add_column("Sessions", style="cyan")
    daily.add_column("Total", style="blue")
    for day in result.daily_breakdown:
        daily.add_row(day.date, str(day.session_count), format_duration(day.total_seconds))
    console.print(daily)

    threshold = ctx.obj.weekly_threshold_hours
    weekly = Table(
        title=f"Weekly Breakdown ({threshold:g}h = Regular, >{threshold:g}h = Overtime)"
    )
    weekly.add_column("Week", style="magenta")
    weekly.add_column("From", style="magenta")
    weekly.add_column("Sessions", style="cyan")
    weekly.add_column("Total", style="blue")
    weekly.add_column("Regular", style="green")
    weekly.add_column("Overtime", style="orange3")
    for week in result.weekly_breakdown:
        weekly.add_row(
            week.week,
            week.week_start,
            str(week.session_count),
            f"{week.total_hours:.1f}h",
            f"{week.regular_hours:.1f}h",
            f"{week.overtime_hours:.1f}h",
        )
    console.print(weekly)


@main.command()
@click.argument("start_time", type=click.DateTime(formats=DATETIME_FORMATS))
@click.argument("end_time", type=click.DateTime(formats=DATETIME_FORMATS))
@click.pass_context
def add(ctx: click.Context, start_time: datetime, end_time: datetime):
    """Add a finished session, e.g. add "2025-11-18 07:30" "2025-11-18 10:00" (UTC)."""
    tracker = get_tracker_or_exit(ctx)
    try:
        session = tracker.add_session(start_time, end_time)
    except (TimelyError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e

    console.print(f"[green]✅ Added session {session.id[:8]}[/green]")
    console.print(f"  Start: {session.start:%Y-%m-%d %H:%M}")
    console.print(f"  End: {session.end:%Y-%m-%d %H:%M}")
    console.print(f"  Duration: {format_duration(session.total_seconds)}")


@main.command()
@click.argument("session_id")
@click.option("--force", is_flag=True, help="Also delete an unterminated session")
@click.pass_context
def delete(ctx: click.Context, session_id: str, force: bool):
    """Delete a finished session by id (a unique prefix is enough)."""
    tracker = get_tracker_or_exit(ctx)

    try:
        matches = [s for s in tracker.get_all_sessions() if s.id.startswith(session_id)]
        if len(matches) != 1:
            reason = "No session" if not matches else f"{len(matches)} sessions"
            console.print(f"[red]Error: {reason} matching '{escape(session_id)}'[/red]")
            raise click.Abort()
        tracker.delete_session(matches[0].id, force=force)
    except TimelyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e

    console.print(f"[green]✅ Deleted session {matches[0].id[:8]}[/green]")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool):
    """Delete every session."""
    if not yes:
        click.confirm("Delete ALL sessions? This cannot be undone", abort=True)

    count = _run(ctx, lambda tracker: tracker.clear_sessions())
    console.print(f"[green]✅ Deleted {count} sessions[/green]")


@main.command("clear-old")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def clear_old(ctx: click.Context, yes: bool):
    """Delete finished sessions started before today (UTC)."""
    cutoff = datetime.combine(datetime.now(timezone.utc).date(), time(0), tzinfo=timezone.utc)
    if not yes:
        click.confirm(
            f"Delete finished sessions started before {cutoff:%Y-%m-%d} 00:00 UTC?", abort=True
        )

    count = _run(ctx, lambda tracker: tracker.clear_sessions_before(cutoff))
    console.print(f"[green]✅ Deleted {count} sessions[/green]")


if __name__ == "__main__":
    main()
