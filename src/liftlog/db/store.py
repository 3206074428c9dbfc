"""Key-addressed record store over the local SQLite database."""

import asyncio
import json
import logging
import re
from pathlib import Path

import aiosqlite

from ..errors import StoreError, StoreUnavailable, UnknownCollection
from .engine import COLLECTIONS, SCHEMA_VERSION, Collection, connect

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class LocalStore:
    """Durable record store with one table per collection.

    Records are JSON objects keyed by their ``id`` field. All callers share
    one connection; aiosqlite runs its statements on a single worker thread,
    so writes are serialized in submission order.
    """

    def __init__(self, db: aiosqlite.Connection, schema_version: int = SCHEMA_VERSION):
        self._db = db
        self.schema_version = schema_version

    def _collection(self, name: str) -> Collection:
        collection = COLLECTIONS.get(name)
        if collection is None or collection.since_version > self.schema_version:
            raise UnknownCollection(name)
        return collection

    async def put(self, collection: str, entity: dict) -> None:
        """Insert or replace a record keyed by ``entity["id"]``.

        An update keeps the row's original insertion position.
        """
        coll = self._collection(collection)
        entity_id = entity.get("id")
        if not isinstance(entity_id, str) or not entity_id:
            raise StoreError(f"Cannot store a {collection} record without an id")

        columns = ["id", *coll.columns.values(), "data"]
        values = [entity_id, *(entity.get(f) for f in coll.columns), json.dumps(entity)]
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns[1:])
        placeholders = ", ".join("?" for _ in columns)
        column_list = ", ".join(columns)

        try:
            await self._db.execute(
                f"""
                INSERT INTO {coll.table} ({column_list})
                VALUES ({placeholders})
                ON CONFLICT(id) DO UPDATE SET {updates}
                """,
                values,
            )
            await self._db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to store {collection}/{entity_id}: {e}") from e

    async def get(self, collection: str, entity_id: str) -> dict | None:
        """Get a record by id."""
        coll = self._collection(collection)
        rows = await self._fetch(
            f"SELECT data FROM {coll.table} WHERE id = ?", (entity_id,), collection
        )
        return rows[0] if rows else None

    async def get_all(self, collection: str) -> list[dict]:
        """Get every record in insertion order."""
        coll = self._collection(collection)
        return await self._fetch(
            f"SELECT data FROM {coll.table} ORDER BY rowid", (), collection
        )

    async def get_recent(self, collection: str, sort_key: str, limit: int) -> list[dict]:
        """Get the ``limit`` most recent records, descending by ``sort_key``."""
        coll = self._collection(collection)
        if limit <= 0:
            return []

        if sort_key in coll.columns:
            query = (
                f"SELECT data FROM {coll.table} "
                f"ORDER BY {coll.columns[sort_key]} DESC, rowid DESC LIMIT ?"
            )
            params: tuple = (limit,)
        else:
            if not _FIELD_RE.match(sort_key):
                raise StoreError(f"Invalid sort key: {sort_key!r}")
            query = (
                f"SELECT data FROM {coll.table} "
                f"ORDER BY json_extract(data, ?) DESC, rowid DESC LIMIT ?"
            )
            params = (f"$.{sort_key}", limit)

        return await self._fetch(query, params, collection)

    async def delete(self, collection: str, entity_id: str) -> bool:
        """Delete a record. Returns True if a row was removed."""
        coll = self._collection(collection)
        try:
            cursor = await self._db.execute(
                f"DELETE FROM {coll.table} WHERE id = ?", (entity_id,)
            )
            await self._db.commit()
            return cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to delete {collection}/{entity_id}: {e}") from e

    # Guarded writes used by sync. Each one checks the stored row and the
    # sync queue in the same statement that writes, so a mutation committed
    # by another caller between awaits is never overwritten.

    async def put_unless_pending(self, collection: str, entity: dict) -> bool:
        """Store a record read from the remote store.

        Refused (returns False) when the local copy is unsynced or a queued
        mutation names the record.
        """
        coll = self._collection(collection)
        queue_table = COLLECTIONS["syncQueue"].table
        entity_id = entity["id"]

        columns = ["id", *coll.columns.values(), "data"]
        values = [entity_id, *(entity.get(f) for f in coll.columns), json.dumps(entity)]
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns[1:])
        placeholders = ", ".join("?" for _ in columns)
        column_list = ", ".join(columns)

        try:
            cursor = await self._db.execute(
                f"""
                INSERT INTO {coll.table} ({column_list})
                SELECT {placeholders}
                WHERE NOT EXISTS (
                    SELECT 1 FROM {queue_table} q
                    WHERE json_extract(q.data, '$.payload.id') = ?
                )
                ON CONFLICT(id) DO UPDATE SET {updates}
                WHERE json_extract({coll.table}.data, '$.isSynced') = 1
                """,
                [*values, entity_id],
            )
            await self._db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to store {collection}/{entity_id}: {e}") from e
        return cursor.rowcount > 0

    async def delete_if_synced(self, collection: str, entity_id: str) -> bool:
        """Delete a record only if it is synced and nothing queued names it."""
        coll = self._collection(collection)
        queue_table = COLLECTIONS["syncQueue"].table
        try:
            cursor = await self._db.execute(
                f"""
                DELETE FROM {coll.table}
                WHERE id = ?
                  AND json_extract({coll.table}.data, '$.isSynced') = 1
                  AND NOT EXISTS (
                      SELECT 1 FROM {queue_table} q
                      WHERE json_extract(q.data, '$.payload.id') = ?
                  )
                """,
                (entity_id, entity_id),
            )
            await self._db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to prune {collection}/{entity_id}: {e}") from e
        return cursor.rowcount > 0

    async def flag_synced(
        self, collection: str, expected: dict, confirmed_item_id: str | None = None
    ) -> bool:
        """Set ``isSynced`` on a record that still equals ``expected``.

        Refused (returns False) if the stored record changed since it was
        read, or if a queued mutation other than ``confirmed_item_id`` still
        names it.
        """
        coll = self._collection(collection)
        queue_table = COLLECTIONS["syncQueue"].table
        entity_id = expected["id"]
        try:
            cursor = await self._db.execute(
                f"""
                UPDATE {coll.table} SET data = ?
                WHERE id = ?
                  AND data = ?
                  AND NOT EXISTS (
                      SELECT 1 FROM {queue_table} q
                      WHERE json_extract(q.data, '$.payload.id') = ?
                        AND q.id IS NOT ?
                  )
                """,
                (
                    json.dumps({**expected, "isSynced": True}),
                    entity_id,
                    json.dumps(expected),
                    entity_id,
                    confirmed_item_id,
                ),
            )
            await self._db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to mark {collection}/{entity_id} synced: {e}") from e
        return cursor.rowcount > 0

    async def count(self, collection: str) -> int:
        coll = self._collection(collection)
        try:
            cursor = await self._db.execute(f"SELECT COUNT(*) FROM {coll.table}")
            row = await cursor.fetchone()
            return row[0]
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to count {collection}: {e}") from e

    async def index_names(self, collection: str) -> set[str]:
        """Names of the secondary indexes on a collection's table."""
        coll = self._collection(collection)
        try:
            cursor = await self._db.execute(f"PRAGMA index_list({coll.table})")
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to list indexes of {collection}: {e}") from e
        return {row[1] for row in rows if not row[1].startswith("sqlite_autoindex")}

    async def close(self) -> None:
        await self._db.close()

    async def _fetch(self, query: str, params: tuple, collection: str) -> list[dict]:
        try:
            cursor = await self._db.execute(query, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read {collection}: {e}") from e
        return [json.loads(row[0]) for row in rows]


class StoreHandle:
    """Lazily opened, shared handle to the local store.

    The first :meth:`get` starts opening the database; concurrent callers
    await the same in-flight open. A failed open is remembered (every
    :meth:`get` re-raises :class:`StoreUnavailable`) until :meth:`reset`.
    """

    def __init__(self, db_path: Path, target_version: int = SCHEMA_VERSION):
        self.db_path = db_path
        self.target_version = target_version
        self.open_count = 0
        self._open_task: asyncio.Task | None = None

    async def get(self) -> LocalStore:
        """Return the open store, opening it on first use.

        Raises:
            StoreUnavailable: If the store could not be opened
        """
        if self._open_task is None:
            self._open_task = asyncio.ensure_future(self._open())
        return await asyncio.shield(self._open_task)

    async def _open(self) -> LocalStore:
        self.open_count += 1
        try:
            db = await connect(self.db_path, self.target_version)
        except StoreUnavailable as e:
            logger.error("Local store unavailable: %s", e)
            raise
        logger.debug("Opened local store at %s", self.db_path)
        return LocalStore(db, self.target_version)

    @property
    def is_open(self) -> bool:
        task = self._open_task
        return (
            task is not None
            and task.done()
            and not task.cancelled()
            and task.exception() is None
        )

    async def close(self) -> None:
        """Close the store if it was opened; the next get() reopens it."""
        task, self._open_task = self._open_task, None
        if task is None:
            return
        if not task.done():
            try:
                await task
            except StoreUnavailable:
                return
        if not task.cancelled() and task.exception() is None:
            await task.result().close()

    def reset(self) -> None:
        """Forget a failed open so the next get() retries."""
        if self._open_task is not None and self._open_task.done() and not self.is_open:
            self._open_task = None
