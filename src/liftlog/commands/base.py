"""Shared CLI utilities."""

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncIterator
from urllib.parse import urlparse

import click

from ..config import Settings, get_db_path
from ..db.store import StoreHandle
from ..errors import LiftlogError
from ..remote.http import HttpRemoteStore
from ..services.tracker import WorkoutTracker
from ..sync.network import NetworkMonitor


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def get_settings(ctx: click.Context) -> Settings:
    """Settings resolved by the top-level group."""
    return ctx.find_object(Settings) or Settings.from_env()


def build_monitor(settings: Settings) -> NetworkMonitor:
    """Network monitor probing the remote server (or the configured host)."""
    host, port = settings.probe_host, settings.probe_port
    if not host and settings.remote_url:
        parsed = urlparse(settings.remote_url)
        host = parsed.hostname
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return NetworkMonitor(online=False, probe_host=host, probe_port=port)


@asynccontextmanager
async def open_tracker(ctx: click.Context, probe: bool = True) -> AsyncIterator[WorkoutTracker]:
    """Build a tracker for one command and close it afterwards.

    Unless ``--offline`` was given, the remote server is probed once so
    mutations write through when it is reachable.
    """
    settings = get_settings(ctx)
    offline = ctx.find_root().params.get("offline", False)

    monitor = build_monitor(settings)
    if probe and not offline:
        monitor.set_online(await monitor.probe())

    tracker = WorkoutTracker(
        handle=StoreHandle(get_db_path(settings.data_dir)),
        remote=HttpRemoteStore(settings.remote_url, timeout=settings.http_timeout),
        network=monitor,
        user_id=settings.user_id,
        recent_limit=settings.recent_limit,
    )
    try:
        await tracker.open()
        if tracker.degraded:
            echo_warning("Local store unavailable; working against the remote store only.")
        yield tracker
    except LiftlogError as e:
        echo_error(str(e))
        ctx.exit(1)
    finally:
        await tracker.close()


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the database is initialized."""
    db_path = get_settings(ctx).db_path
    if not db_path.exists():
        click.echo(
            click.style("Error: ", fg="red")
            + "Project not initialized. Run 'liftlog init' first."
        )
        ctx.exit(1)


def sync_flag(is_synced: bool) -> str:
    return click.style("synced", fg="green") if is_synced else click.style("pending", fg="yellow")


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    # Calculate column widths
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(click.unstyle(str(cell))))

    lines = []

    header_line = ""
    for i, h in enumerate(headers):
        header_line += h.ljust(widths[i] + padding)
    lines.append(header_line.rstrip())

    sep_line = ""
    for w in widths:
        sep_line += "-" * w + " " * padding
    lines.append(sep_line.rstrip())

    for row in rows:
        row_line = ""
        for i, cell in enumerate(row):
            text = str(cell)
            # Pad by visible width so styled cells line up
            row_line += text + " " * (widths[i] + padding - len(click.unstyle(text)))
        lines.append(row_line.rstrip())

    return "\n".join(lines)
