"""Database schema, migrations and connection setup."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from ..errors import StoreUnavailable

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3


@dataclass(frozen=True)
class Collection:
    """A record collection and the SQLite table backing it.

    ``columns`` maps record fields to dedicated (indexed) table columns.
    """

    name: str
    table: str
    columns: dict[str, str] = field(default_factory=dict)
    since_version: int = 1


COLLECTIONS: dict[str, Collection] = {
    "exercises": Collection("exercises", "exercises"),
    "workouts": Collection("workouts", "workouts", {"date": "date"}),
    "syncQueue": Collection("syncQueue", "sync_queue"),
    "weightEntries": Collection(
        "weightEntries", "weight_entries", {"date": "date"}, since_version=3
    ),
}

# Forward-only, additive migrations: (version, statements).
# Never drop or rewrite existing rows in a migration.
MIGRATIONS: list[tuple[int, list[str]]] = [
    (
        1,
        [
            """
            CREATE TABLE IF NOT EXISTS exercises (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS workouts (
                id TEXT PRIMARY KEY,
                date TEXT,
                data TEXT NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS sync_queue (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL
            )
            """,
        ],
    ),
    (
        2,
        [
            """
            CREATE INDEX IF NOT EXISTS idx_workouts_date
            ON workouts(date)
            """,
        ],
    ),
    (
        3,
        [
            """
            CREATE TABLE IF NOT EXISTS weight_entries (
                id TEXT PRIMARY KEY,
                date TEXT,
                data TEXT NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_weight_entries_date
            ON weight_entries(date)
            """,
        ],
    ),
]


async def get_schema_version(db: aiosqlite.Connection) -> int:
    """Read the stored schema version (0 for a fresh database)."""
    cursor = await db.execute("PRAGMA user_version")
    row = await cursor.fetchone()
    return row[0] if row else 0


async def run_migrations(
    db: aiosqlite.Connection, target_version: int = SCHEMA_VERSION
) -> int:
    """Run the migrations between the stored version and ``target_version``.

    Returns:
        The schema version after migrating

    Raises:
        StoreUnavailable: If the database was written by a newer schema
    """
    current = await get_schema_version(db)
    if current > SCHEMA_VERSION:
        raise StoreUnavailable(
            f"Database schema version {current} is newer than supported "
            f"version {SCHEMA_VERSION}"
        )

    for version, statements in MIGRATIONS:
        if current < version <= target_version:
            logger.info("Migrating local store to schema version %d", version)
            for statement in statements:
                await db.execute(statement)
            # PRAGMA does not accept bound parameters
            await db.execute(f"PRAGMA user_version = {int(version)}")
            await db.commit()
            current = version

    return current


async def connect(
    db_path: Path, target_version: int = SCHEMA_VERSION
) -> aiosqlite.Connection:
    """Open the database and bring its schema up to ``target_version``.

    Raises:
        StoreUnavailable: If the file cannot be opened or migrated
    """
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(db_path)
    except (aiosqlite.Error, OSError) as e:
        raise StoreUnavailable(f"Could not open local store at {db_path}: {e}") from e

    try:
        db.row_factory = aiosqlite.Row
        await run_migrations(db, target_version)
    except aiosqlite.Error as e:
        await db.close()
        raise StoreUnavailable(f"Could not migrate local store at {db_path}: {e}") from e
    except StoreUnavailable:
        await db.close()
        raise

    return db
