"""Sync commands."""

from datetime import datetime

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    get_settings,
    open_tracker,
)


@click.group()
def sync():
    """Synchronize with the remote store."""
    pass


@sync.command("now")
@click.option("--no-pull", is_flag=True, help="Only push queued changes")
@click.pass_context
@async_command
async def now(ctx: click.Context, no_pull: bool):
    """Push queued changes and refresh the local cache."""
    ensure_initialized(ctx)

    async with open_tracker(ctx, probe=False) as tracker:
        result = await tracker.sync_now(pull=not no_pull)
        remaining = await tracker.pending_count()

    if result is None:
        echo_info("Running without a local store; nothing to sync.")
        return

    drain = result.drain
    if drain.attempted == 0 and not drain.skipped:
        echo_info("Nothing queued.")
    elif drain.ok and not drain.skipped:
        echo_success(f"Synced {len(drain.confirmed)} change(s)")
    else:
        echo_error(
            f"Sync failed for {len(drain.failed) + len(drain.deferred) + len(drain.skipped)} "
            f"change(s); they stay queued ({len(drain.confirmed)} synced)"
        )

    if result.pull is not None:
        if result.pull.ok:
            echo_success(
                f"Refreshed {result.pull.exercises} exercises, {result.pull.workouts} workouts, "
                f"{result.pull.weight_entries} weight entries"
            )
        else:
            echo_warning("Could not refresh from the remote store; showing cached data.")

    if remaining:
        ctx.exit(1)


@sync.command("pull")
@click.pass_context
@async_command
async def pull(ctx: click.Context):
    """Refresh the local cache from the remote store."""
    ensure_initialized(ctx)

    async with open_tracker(ctx, probe=False) as tracker:
        if tracker.engine is None:
            echo_info("Running without a local store; nothing to refresh.")
            return
        result = await tracker.engine.pull()

    if result.ok:
        echo_success(
            f"Refreshed {result.exercises} exercises, {result.workouts} workouts, "
            f"{result.weight_entries} weight entries ({result.pruned} pruned)"
        )
    else:
        echo_error("Could not read " + ", ".join(result.failed_paths))
        ctx.exit(1)


@sync.command("status")
@click.pass_context
@async_command
async def status(ctx: click.Context):
    """Show connectivity and the number of queued changes."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        pending = await tracker.pending_count()
        online = tracker.network.online

    click.echo(f"Remote:  {get_settings(ctx).remote_url}")
    click.echo("Network: " + (click.style("online", fg="green") if online else click.style("offline", fg="red")))
    if pending:
        click.echo("Queue:   " + click.style(f"{pending} change(s) pending", fg="yellow"))
    else:
        click.echo("Queue:   " + click.style("all changes synced", fg="green"))


@sync.command("queue")
@click.pass_context
@async_command
async def queue(ctx: click.Context):
    """List queued changes in replay order."""
    ensure_initialized(ctx)

    async with open_tracker(ctx, probe=False) as tracker:
        if tracker.engine is None:
            echo_info("Running without a local store; the queue is unavailable.")
            return
        items = await tracker.engine.queue.drain_all()

    if not items:
        echo_info("Queue is empty.")
        return

    rows = [
        [
            item.id[:8],
            item.type.value,
            item.entity_id[:8],
            datetime.fromtimestamp(item.created_at / 1000).strftime("%Y-%m-%d %H:%M:%S"),
        ]
        for item in items
    ]
    click.echo(format_table(["ID", "Type", "Entity", "Queued"], rows))
