"""Workout logging commands."""

import re

import click

from ..models.workout import SetEntry, WeightUnit, WorkoutExercise
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
from .exercises import resolve_exercise

SET_RE = re.compile(r"^\s*(\d+)\s*[xX*]\s*(\d+(?:\.\d+)?)\s*$")


def parse_sets(text: str) -> list[SetEntry]:
    """Parse ``"5x100,5x100,3x105"`` (reps x weight) into sets.

    A bare number is a set of that many reps with no weight.
    """
    sets = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        match = SET_RE.match(part)
        if match:
            sets.append(SetEntry(reps=int(match.group(1)), weight=float(match.group(2))))
        elif part.isdigit():
            sets.append(SetEntry(reps=int(part)))
        else:
            raise ValueError(f"Invalid set '{part}', expected REPSxWEIGHT")
    return sets


def parse_exercise_spec(spec: str) -> tuple[str, list[SetEntry]]:
    """Split ``"Bench Press=5x100,5x100"`` into name and sets."""
    name, sep, sets_text = spec.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Invalid exercise '{spec}', expected NAME=SETS")
    return name.strip(), parse_sets(sets_text)


@click.group()
def workout():
    """Log and review workouts."""
    pass


@workout.command("log")
@click.option("--date", "-d", "day", default=None, help="Workout date (YYYY-MM-DD, default today)")
@click.option(
    "--exercise", "-e", "specs", multiple=True, required=True,
    help="Exercise and sets, e.g. 'Squat=5x100,5x100'",
)
@click.option("--unit", type=click.Choice(["kg", "lb"]), default="kg", help="Weight unit")
@click.pass_context
@async_command
async def log(ctx: click.Context, day: str | None, specs: tuple[str, ...], unit: str):
    """Log a workout."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        catalog = await tracker.list_exercises()
        entries = []
        for spec in specs:
            try:
                name, sets = parse_exercise_spec(spec)
            except ValueError as e:
                echo_error(str(e))
                ctx.exit(1)
            exercise = resolve_exercise(catalog, name)
            if exercise is None:
                echo_error(f"Exercise '{name}' not found. Add it with 'liftlog exercises add'.")
                ctx.exit(1)
            entries.append(
                WorkoutExercise(exercise_id=exercise.id, sets=sets, weight_unit=WeightUnit(unit))
            )

        try:
            session = await tracker.create_workout(date=day, exercises=entries)
        except ValueError as e:
            echo_error(str(e))
            ctx.exit(1)

    status = "synced" if session.is_synced else "queued for sync"
    echo_success(
        f"Logged workout {session.id[:8]} on {session.date} "
        f"({len(entries)} exercises, {session.total_sets} sets, {status})"
    )


@workout.command("list")
@click.option("--limit", "-n", type=int, default=20, help="Number of workouts to show")
@click.pass_context
@async_command
async def list_workouts(ctx: click.Context, limit: int):
    """List recent workouts, newest first."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        sessions = await tracker.list_workouts(limit)

    if not sessions:
        echo_info("No workouts logged yet.")
        return

    rows = [
        [s.id[:8], s.date, str(len(s.exercises)), str(s.total_sets), sync_flag(s.is_synced)]
        for s in sessions
    ]
    click.echo(format_table(["ID", "Date", "Exercises", "Sets", "Status"], rows))


@workout.command("show")
@click.argument("workout_id")
@click.pass_context
@async_command
async def show(ctx: click.Context, workout_id: str):
    """Show the exercises and sets of a workout (WORKOUT_ID may be a prefix)."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        session = await find_workout(tracker, workout_id)
        if session is None:
            echo_error(f"Workout {workout_id} not found.")
            ctx.exit(1)
        names = {e.id: e.name for e in await tracker.list_exercises()}

    click.echo()
    click.echo(click.style(f"Workout {session.date}", bold=True) + f"  [{sync_flag(session.is_synced)}]")
    click.echo("=" * 40)
    for entry in session.exercises:
        click.echo(names.get(entry.exercise_id, f"(unknown exercise {entry.exercise_id[:8]})"))
        for i, s in enumerate(entry.sets, 1):
            click.echo(f"  {i}. {s.weight:g} {entry.weight_unit.value} x {s.reps}")


@workout.command("delete")
@click.argument("workout_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx: click.Context, workout_id: str, yes: bool):
    """Delete a workout."""
    ensure_initialized(ctx)

    async with open_tracker(ctx) as tracker:
        session = await find_workout(tracker, workout_id)
        if session is None:
            echo_error(f"Workout {workout_id} not found.")
            ctx.exit(1)
        if not yes and not click.confirm(f"Delete workout from {session.date}?"):
            return
        await tracker.delete_workout(session.id)

    echo_success(f"Deleted workout {session.id[:8]}")


async def find_workout(tracker, ref: str):
    session = await tracker.get_workout(ref)
    if session is not None:
        return session
    matches = [s for s in await tracker.list_workouts() if s.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
