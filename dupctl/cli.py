from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dupctl.check import run_check
from dupctl.config import (
    DEFAULT_SETTINGS,
    bandwidth_limit_kbps,
    load_settings,
    maintenance_disabled,
    save_setting,
    settings_path,
)
from dupctl.engine import create_engine
from dupctl.errors import DupctlError
from dupctl.log import read_logs
from dupctl.maintenance import run_backup, run_maintenance
from dupctl.restore import DEFAULT_STORAGE, RestoreRequest, list_timestamps, run_restore
from dupctl.resolver import validate_timestamp


def _echo(line):
    click.echo(line, nl=False)


def _fail(console, error):
    console.print(f"[red]{escape(str(error))}[/red]", highlight=False, soft_wrap=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version="0.1.0")
def main():
    """dupctl: point-in-time restore, checks and maintenance for duplicacy."""


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("paths", nargs=-1, type=click.UNPROCESSED)
@click.option("--dest", default="", help="Restore into this (empty or new) directory instead of in place.")
@click.option("--list", "list_only", is_flag=True, help="List snapshot times, newest last, and exit.")
@click.option("--storage", default=DEFAULT_STORAGE, show_default=True, help="Storage to restore from.")
@click.option("--time", "desired_time", default=None, help="Restore as of YYYY-MM-DDTHH:MM (default: now).")
def restore(paths, dest, list_only, storage, desired_time):
    """Restore files as they were at a point in time.

    PATHS are files or directories (a trailing / forces a directory), or raw
    filter expressions starting with +, -, i: or e:.

    Examples:
        dupctl restore --time 2018-06-01T00:00 --dest /tmp/r /etc/hosts
        dupctl restore --dest /tmp/r +etc/* -etc/shadow
        dupctl restore --list --storage offsite
    """
    console = Console()
    unknown = [p for p in paths if p.startswith("--")]
    if unknown:
        raise click.NoSuchOption(unknown[0])
    try:
        if desired_time is not None:
            validate_timestamp(desired_time)
        settings = load_settings()

        if list_only:
            engine = create_engine(settings)
            for timestamp in list_timestamps(engine, storage):
                click.echo(timestamp)
            return

        request = RestoreRequest(list(paths), desired_time, storage, dest)
        engine = create_engine(settings)
        result = run_restore(request, engine, guess_root=settings["GUESS_ROOT"], echo=_echo)
    except (DupctlError, OSError) as e:
        _fail(console, e)

    snapshot = result.snapshot
    console.print(
        f"[bold green]Restored revision {snapshot.revision_id}[/bold green] "
        f"[dim]({snapshot.timestamp}, storage {storage})[/dim]"
    )
    console.print(f"  [dim]Log: {escape(str(result.log_path))}[/dim]", highlight=False)


@main.command()
def check():
    """Check the integrity of every configured storage."""
    console = Console()
    try:
        engine = create_engine(load_settings())
        results = run_check(engine, console, echo=_echo)
    except (DupctlError, OSError) as e:
        _fail(console, e)

    failed = [name for name, result in results.items() if result != "ok"]
    if failed:
        console.print(f"[yellow]{len(failed)} storage(s) failed: {', '.join(failed)}[/yellow]")
    else:
        console.print(f"[bold green]{len(results)} storage(s) checked.[/bold green]")


@main.command()
@click.option("--storage", default=DEFAULT_STORAGE, show_default=True, help="Storage to back up to.")
def backup(storage):
    """Back up the repository, honoring BANDWIDTH_LIMIT."""
    console = Console()
    try:
        engine = create_engine(load_settings())
        run_backup(engine, storage, echo=_echo)
    except (DupctlError, OSError) as e:
        _fail(console, e)
    console.print("[bold green]Backup complete.[/bold green]")


@main.command()
@click.option("--storage", default=DEFAULT_STORAGE, show_default=True, help="Storage to prune.")
def maintain(storage):
    """Prune old revisions and collect fossils, unless DISABLE_MAINTENANCE is set."""
    console = Console()
    try:
        settings = load_settings()
        engine = create_engine(settings)
        ran = run_maintenance(engine, settings, storage, echo=_echo)
    except (DupctlError, OSError) as e:
        _fail(console, e)
    if ran:
        console.print("[bold green]Maintenance complete.[/bold green]")
    else:
        console.print("[dim]Maintenance is disabled (DISABLE_MAINTENANCE). Skipping.[/dim]")


@main.command("settings")
@click.argument("key", required=False)
@click.argument("value", required=False)
def settings_cmd(key, value):
    """Show effective settings, or set one: dupctl settings BANDWIDTH_LIMIT 20"""
    console = Console()
    if key is not None:
        if value is None:
            _fail(console, f"Missing value for {key}")
        try:
            path = save_setting(key.upper(), value)
        except (DupctlError, OSError) as e:
            _fail(console, e)
        click.echo(f"Saved {key.upper()} to {path}")
        return

    try:
        settings = load_settings()
        limit = bandwidth_limit_kbps(settings)
        disabled = maintenance_disabled(settings)
    except (DupctlError, OSError) as e:
        _fail(console, e)

    table = Table(title=f"Settings ({settings_path()})")
    table.add_column("Key", style="bold cyan")
    table.add_column("Value")
    for name in DEFAULT_SETTINGS:
        table.add_row(name, settings.get(name, ""))
    console.print(table)
    console.print(f"[dim]Engine rate limit: {f'{limit} KB/s' if limit else 'unlimited'}[/dim]")
    console.print(f"[dim]Maintenance: {'disabled' if disabled else 'enabled'}[/dim]")


@main.command()
@click.option("-n", "--limit", default=20, help="Number of log entries to show.")
def logs(limit):
    """Show the operation audit log."""
    console = Console()

    entries = read_logs()
    if not entries:
        console.print("[dim]No logs yet. Run an operation first.[/dim]")
        return

    table = Table(title="Operation Log")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="bold")
    table.add_column("Storage", style="cyan")
    table.add_column("Revision")
    table.add_column("Result", style="bold")

    for entry in entries[-limit:]:
        ts = entry.get("timestamp", "")
        if ts:
            try:
                ts = datetime.fromisoformat(ts).strftime("%m-%d %H:%M")
            except ValueError:
                pass
        result = entry.get("result", "")
        result_style = {"ok": "[green]ok[/green]", "restored": "[green]restored[/green]",
                        "failed": "[red]failed[/red]"}.get(result, result)
        table.add_row(
            ts,
            entry.get("event", ""),
            entry.get("storage", ""),
            str(entry.get("revision", "")),
            result_style,
        )

    console.print(table)
