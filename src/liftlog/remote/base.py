"""Remote store adapter protocol and shared helpers."""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol, runtime_checkable

RecordFilter = Callable[[dict], bool]

EXERCISES_PATH = "global-exercises"

# Fields that only make sense on the device and never reach the remote store
LOCAL_ONLY_FIELDS = ("isSynced",)


def workouts_path(user_id: str) -> str:
    return f"users/{user_id}/workouts"


def weight_entries_path(user_id: str) -> str:
    return f"users/{user_id}/weightEntries"


def strip_local_fields(entity: dict) -> dict:
    """Copy of ``entity`` without device-only fields."""
    return {k: v for k, v in entity.items() if k not in LOCAL_ONLY_FIELDS}


def sort_recent(records: list[dict], order_field: str, limit: int) -> list[dict]:
    """Order records descending by ``order_field`` and keep the first ``limit``.

    Records missing the field sort last.
    """
    if limit <= 0:
        return []
    present = [r for r in records if r.get(order_field) is not None]
    missing = [r for r in records if r.get(order_field) is None]
    present.sort(key=lambda r: r[order_field], reverse=True)
    return (present + missing)[:limit]


@runtime_checkable
class RemoteStore(Protocol):
    """The authoritative backing store.

    Records are JSON objects; the document id is carried in ``id``.
    """

    async def upsert(self, path: str, doc_id: str, data: dict) -> None:
        """Create or overwrite the document ``doc_id`` in ``path``.

        Raises:
            RemoteWriteFailed: If the write was not confirmed
        """
        ...

    async def add(self, path: str, data: dict) -> str:
        """Create a document with a store-generated id and return the id."""
        ...

    async def delete(self, path: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document succeeds."""
        ...

    async def read_all(self, path: str) -> list[dict]:
        """Read every document in a collection.

        Raises:
            RemoteReadFailed: If the read failed
        """
        ...

    async def read_recent(self, path: str, order_field: str, limit: int) -> list[dict]:
        """Read the ``limit`` documents with the greatest ``order_field``."""
        ...

    def subscribe(
        self, path: str, filter: RecordFilter | None = None
    ) -> AsyncIterator[dict]:
        """Stream the current documents of ``path``, then every change.

        Deletions are delivered as ``{"id": ..., "deleted": True}``.
        """
        ...


class SubscriptionHub:
    """In-process fan-out of document changes to subscribers."""

    def __init__(self):
        self._subscribers: dict[str, list[asyncio.Queue]] = {}

    def publish(self, path: str, record: dict) -> None:
        for queue in self._subscribers.get(path, []):
            queue.put_nowait(record)

    async def stream(
        self,
        path: str,
        snapshot: list[dict],
        filter: RecordFilter | None = None,
    ) -> AsyncIterator[dict]:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.setdefault(path, []).append(queue)
        try:
            for record in snapshot:
                if filter is None or filter(record):
                    yield record
            while True:
                record = await queue.get()
                if record.get("deleted") or filter is None or filter(record):
                    yield record
        finally:
            self._subscribers[path].remove(queue)

    def subscriber_count(self, path: str) -> int:
        return len(self._subscribers.get(path, []))


def coerce_record(doc_id: str, data: dict[str, Any]) -> dict:
    """Document body with its id attached."""
    return {**data, "id": doc_id}
