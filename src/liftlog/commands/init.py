"""Initialize project command."""

import click

from .base import async_command, echo_info, echo_success, get_settings, open_tracker


@click.command()
@click.option("--no-seed", is_flag=True, help="Do not add the starter exercises")
@click.pass_context
@async_command
async def init(ctx: click.Context, no_seed: bool):
    """Initialize the liftlog data directory and local store.

    Creates the SQLite database (running any schema migrations) and, unless
    --no-seed is given, adds a few starter exercises to an empty catalog.
    """
    settings = get_settings(ctx)
    echo_info(f"Initializing liftlog in {settings.data_dir}")

    async with open_tracker(ctx) as tracker:
        echo_success(f"Local store ready at {settings.db_path}")

        if not no_seed:
            seeded = await tracker.seed_default_exercises()
            if seeded:
                echo_success(f"Exercise catalog seeded ({len(seeded)} exercises)")

    click.echo()
    click.echo("liftlog is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  liftlog workout log -e 'Bench Press=5x60,5x60'")
    click.echo("  liftlog weight log 80.5")
    click.echo("  liftlog sync now")
