"""Body-weight logging commands."""

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
    open_tracker,
    sync_flag,
)


@click.group()
def weight():
    """Log and review body weight."""
    pass


@weight.command("log")
@click.argument("kilograms", type=float)
@click.option("--date", "-d", "day", default=None, help="Measurement date (default today)")
@click.pass_context
@async_command
async def log(ctx: click.Context, kilograms: float, day: str | None):
    """Log a body-weight measurement in kilograms."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        try:
            entry = await tracker.log_weight(kilograms, date=day)
        except ValueError as e:
            echo_error(str(e))
            ctx.exit(1)

    status = "synced" if entry.is_synced else "queued for sync"
    echo_success(f"Logged {entry.weight:g} kg on {entry.date} ({status})")


@weight.command("list")
@click.option("--limit", "-n", type=int, default=30, help="Number of entries to show")
@click.pass_context
@async_command
async def list_entries(ctx: click.Context, limit: int):
    """List recent body-weight entries with a 7-entry average."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        entries = await tracker.list_weight_entries(limit)

    if not entries:
        echo_info("No weight entries yet.")
        return

    rows = [[e.date, f"{e.weight:g}", sync_flag(e.is_synced)] for e in entries]
    click.echo(format_table(["Date", "Weight (kg)", "Status"], rows))

    recent = entries[-7:]
    average = sum(e.weight for e in recent) / len(recent)
    click.echo()
    click.echo(f"Average of last {len(recent)}: {average:.1f} kg")
