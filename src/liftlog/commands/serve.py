"""Remote store server command."""

from pathlib import Path

import click

from .base import get_settings


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.option(
    "--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Document database file (default: <data-dir>/remote.db)",
)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, db_path: Path | None):
    """Run the reference remote store server.

    Devices point at it with --remote-url (or LIFTLOG_REMOTE_URL) and sync
    their queued changes to it.

    Examples:

        # Start on default port (8000)
        liftlog serve

        # Expose to network (all interfaces)
        liftlog serve --host 0.0.0.0
    """
    import uvicorn

    from ..web import create_app

    settings = get_settings(ctx)
    db_path = db_path or settings.data_dir / "remote.db"

    click.echo()
    click.echo(click.style("Starting liftlog remote store...", fg="green"))
    click.echo()
    click.echo(f"  URL:      http://{host}:{port}")
    click.echo(f"  Database: {db_path}")
    click.echo()
    click.echo("Press Ctrl+C to stop the server.")
    click.echo()

    app = create_app(db_path=db_path)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
