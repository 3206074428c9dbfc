"""Background sync command."""

import asyncio

import click

from ..sync.network import NetworkTransition
from .base import (
    async_command,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    get_settings,
    open_tracker,
)


@click.command()
@click.option("--interval", "-i", type=float, default=None, help="Seconds between connectivity probes")
@click.pass_context
@async_command
async def watch(ctx: click.Context, interval: float | None):
    """Watch connectivity and sync whenever the remote store becomes reachable.

    Runs until interrupted. Each offline-to-online transition runs one sync
    pass; a transition during a running pass is folded into it.
    """
    ensure_initialized(ctx)
    settings = get_settings(ctx)
    interval = interval or settings.probe_interval

    async with open_tracker(ctx, probe=False) as tracker:
        monitor = tracker.network
        if not monitor.probe_host:
            echo_warning("No probe host configured; cannot watch connectivity.")
            ctx.exit(1)

        def report(transition: NetworkTransition):
            if transition is NetworkTransition.OFFLINE_TO_ONLINE:
                echo_success("Remote store reachable, syncing")
            else:
                echo_warning("Remote store unreachable, changes will be queued")

        monitor.on_transition(report)
        if tracker.engine is not None:
            tracker.engine.on_status(lambda status: echo_info(f"Sync status: {status.value}"))

        echo_info(f"Watching {monitor.probe_host}:{monitor.probe_port} every {interval:g}s (Ctrl+C to stop)")
        monitor.start(interval)
        try:
            while True:
                await asyncio.sleep(3600)
        except (KeyboardInterrupt, asyncio.CancelledError):
            pass
        finally:
            await monitor.stop()
            await monitor.wait_for_callbacks()
