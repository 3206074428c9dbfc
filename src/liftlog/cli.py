"""CLI entry point for liftlog."""

from pathlib import Path

import click

from . import __version__
from .commands import exercises, init, serve, sync, watch, weight, workout
from .config import Settings
from .logging_setup import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="liftlog")
@click.option(
    "--data-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
    help="Data directory (default: ~/.liftlog or LIFTLOG_DATA_DIR)",
)
@click.option("--remote-url", default=None, help="Remote store URL (default: LIFTLOG_REMOTE_URL)")
@click.option("--user", "user_id", default=None, help="User id owning workouts and weight entries")
@click.option("--offline", is_flag=True, help="Do not contact the remote store; queue every change")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def main(ctx, data_dir, remote_url, user_id, offline, log_level):
    """liftlog: offline-first workout and body-weight log.

    Changes are written to a local store first and synced to the remote
    store whenever it is reachable.

    Example usage:

        # Initialize the local store
        liftlog init

        # Log a workout and your body weight
        liftlog workout log -e 'Squat=5x100,5x100,5x100'
        liftlog weight log 81.2

        # Push anything logged while offline
        liftlog sync now
    """
    settings = Settings.from_env().with_overrides(
        data_dir=data_dir, remote_url=remote_url, user_id=user_id, log_level=log_level
    )
    setup_logging(settings.log_level)
    ctx.obj = settings


# Register commands
main.add_command(init)
main.add_command(exercises)
main.add_command(workout)
main.add_command(weight)
main.add_command(sync)
main.add_command(serve)
main.add_command(watch)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
