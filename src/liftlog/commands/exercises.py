"""Exercise catalog commands."""

import click

from ..models.exercise import Coefficient
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

COEFFICIENTS = [c.value for c in Coefficient]


@click.group()
def exercises():
    """Manage the exercise catalog."""
    pass


@exercises.command("list")
@click.pass_context
@async_command
async def list_exercises(ctx: click.Context):
    """List the exercise catalog."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        catalog = await tracker.list_exercises()

    if not catalog:
        echo_info("No exercises yet. Add one with 'liftlog exercises add NAME'.")
        return

    rows = [[e.id[:8], e.name, e.coefficient.value, sync_flag(e.is_synced)] for e in catalog]
    click.echo(format_table(["ID", "Name", "Coefficient", "Status"], rows))


@exercises.command("add")
@click.argument("name")
@click.option(
    "--coefficient", "-c", type=click.Choice(COEFFICIENTS), default="x1",
    help="Volume coefficient (default: x1)",
)
@click.pass_context
@async_command
async def add(ctx: click.Context, name: str, coefficient: str):
    """Add an exercise to the catalog."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        exercise = await tracker.add_exercise(name, coefficient)

    status = "synced" if exercise.is_synced else "queued for sync"
    echo_success(f"Added '{exercise.name}' ({exercise.id[:8]}, {status})")


@exercises.command("rename")
@click.argument("exercise_ref")
@click.argument("new_name")
@click.option("--coefficient", "-c", type=click.Choice(COEFFICIENTS), default=None)
@click.pass_context
@async_command
async def rename(ctx: click.Context, exercise_ref: str, new_name: str, coefficient: str | None):
    """Rename an exercise (EXERCISE_REF is a name or id prefix)."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        exercise = resolve_exercise(await tracker.list_exercises(), exercise_ref)
        if exercise is None:
            echo_error(f"Exercise '{exercise_ref}' not found.")
            ctx.exit(1)

        exercise.name = new_name.strip()
        if coefficient:
            exercise.coefficient = Coefficient(coefficient)
        await tracker.update_exercise(exercise)

    echo_success(f"Updated exercise {exercise.id[:8]}")


@exercises.command("delete")
@click.argument("exercise_ref")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx: click.Context, exercise_ref: str, yes: bool):
    """Delete an exercise from the catalog."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        exercise = resolve_exercise(await tracker.list_exercises(), exercise_ref)
        if exercise is None:
            echo_error(f"Exercise '{exercise_ref}' not found.")
            ctx.exit(1)

        if not yes and not click.confirm(f"Delete '{exercise.name}'?"):
            return
        await tracker.delete_exercise(exercise.id)

    echo_success(f"Deleted '{exercise.name}'")


@exercises.command("seed")
@click.pass_context
@async_command
async def seed(ctx: click.Context):
    """Add the starter exercises to an empty catalog."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        seeded = await tracker.seed_default_exercises()

    if seeded:
        echo_success(f"Added {len(seeded)} exercises")
    else:
        echo_info("Catalog is not empty; nothing added.")


def resolve_exercise(catalog, ref: str):
    """Find an exercise by exact id, id prefix, or case-insensitive name."""
    wanted = ref.strip().casefold()
    for exercise in catalog:
        if exercise.id == ref or exercise.name.casefold() == wanted:
            return exercise
    matches = [e for e in catalog if e.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
