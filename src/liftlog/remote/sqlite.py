"""SQLite-backed remote store used by the reference server."""

import json
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import aiosqlite

from ..errors import RemoteReadFailed, RemoteWriteFailed
from ..utils.ids import new_id
from .base import RecordFilter, SubscriptionHub, coerce_record

logger = logging.getLogger(__name__)


class SqliteRemoteStore:
    """Document store keyed by (collection path, document id)."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._hub = SubscriptionHub()

    async def init_db(self) -> None:
        """Create the documents table."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    path TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (path, id)
                )
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_path
                ON documents(path)
            """)
            await db.commit()

    async def upsert(self, path: str, doc_id: str, data: dict) -> None:
        record = coerce_record(doc_id, data)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO documents (path, id, data) VALUES (?, ?, ?)
                    ON CONFLICT(path, id) DO UPDATE SET
                        data = excluded.data, updated_at = CURRENT_TIMESTAMP
                    """,
                    (path, doc_id, json.dumps(record)),
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise RemoteWriteFailed(f"Failed to write {path}/{doc_id}: {e}") from e
        self._hub.publish(path, record)

    async def add(self, path: str, data: dict) -> str:
        doc_id = new_id()
        await self.upsert(path, doc_id, data)
        return doc_id

    async def delete(self, path: str, doc_id: str) -> bool:
        """Delete a document. Returns True if it existed."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "DELETE FROM documents WHERE path = ? AND id = ?", (path, doc_id)
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise RemoteWriteFailed(f"Failed to delete {path}/{doc_id}: {e}") from e
        self._hub.publish(path, {"id": doc_id, "deleted": True})
        return cursor.rowcount > 0

    async def read_all(self, path: str) -> list[dict]:
        return await self._read(
            "SELECT data FROM documents WHERE path = ? ORDER BY rowid", (path,), path
        )

    async def read_recent(self, path: str, order_field: str, limit: int) -> list[dict]:
        if limit <= 0:
            return []
        return await self._read(
            """
            SELECT data FROM documents WHERE path = ?
            ORDER BY json_extract(data, ?) IS NULL, json_extract(data, ?) DESC
            LIMIT ?
            """,
            (path, f"$.{order_field}", f"$.{order_field}", limit),
            path,
        )

    async def subscribe(
        self, path: str, filter: RecordFilter | None = None
    ) -> AsyncIterator[dict]:
        snapshot = await self.read_all(path)
        async for record in self._hub.stream(path, snapshot, filter):
            yield record

    async def _read(self, query: str, params: tuple, path: str) -> list[dict]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(query, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise RemoteReadFailed(f"Failed to read {path}: {e}") from e
        return [json.loads(row[0]) for row in rows]
