"""In-memory remote store for tests and offline demos."""

import copy
import logging
from collections.abc import AsyncIterator

from ..errors import RemoteReadFailed, RemoteWriteFailed
from ..utils.ids import new_id
from .base import RecordFilter, SubscriptionHub, coerce_record, sort_recent

logger = logging.getLogger(__name__)


class InMemoryRemoteStore:
    """Remote store kept in a dict, with failure injection.

    ``reachable = False`` makes every call fail as a network error would.
    :meth:`fail_writes` makes upcoming writes fail, optionally only for
    specific document ids.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self.reachable = True
        self.write_log: list[tuple[str, str, str]] = []
        self._write_failures: dict[str | None, int] = {}
        self._fail_reads = False
        self._hub = SubscriptionHub()

    def fail_writes(self, count: int = 1, doc_id: str | None = None) -> None:
        """Fail the next ``count`` writes (to ``doc_id`` only, if given)."""
        self._write_failures[doc_id] = self._write_failures.get(doc_id, 0) + count

    def fail_reads(self, enabled: bool = True) -> None:
        self._fail_reads = enabled

    def docs(self, path: str) -> dict[str, dict]:
        return self.collections.get(path, {})

    def _check_write(self, doc_id: str) -> None:
        if not self.reachable:
            raise RemoteWriteFailed("Remote store unreachable")
        for key in (doc_id, None):
            if self._write_failures.get(key, 0) > 0:
                self._write_failures[key] -= 1
                raise RemoteWriteFailed(f"Injected write failure for {doc_id}")

    def _check_read(self, path: str) -> None:
        if not self.reachable or self._fail_reads:
            raise RemoteReadFailed(f"Could not read {path}")

    async def upsert(self, path: str, doc_id: str, data: dict) -> None:
        self._check_write(doc_id)
        record = coerce_record(doc_id, copy.deepcopy(data))
        self.collections.setdefault(path, {})[doc_id] = record
        self.write_log.append(("upsert", path, doc_id))
        self._hub.publish(path, copy.deepcopy(record))

    async def add(self, path: str, data: dict) -> str:
        doc_id = new_id()
        await self.upsert(path, doc_id, data)
        return doc_id

    async def delete(self, path: str, doc_id: str) -> None:
        self._check_write(doc_id)
        self.collections.get(path, {}).pop(doc_id, None)
        self.write_log.append(("delete", path, doc_id))
        self._hub.publish(path, {"id": doc_id, "deleted": True})

    async def read_all(self, path: str) -> list[dict]:
        self._check_read(path)
        return [copy.deepcopy(r) for r in self.docs(path).values()]

    async def read_recent(self, path: str, order_field: str, limit: int) -> list[dict]:
        self._check_read(path)
        return copy.deepcopy(sort_recent(list(self.docs(path).values()), order_field, limit))

    async def subscribe(
        self, path: str, filter: RecordFilter | None = None
    ) -> AsyncIterator[dict]:
        snapshot = [copy.deepcopy(r) for r in self.docs(path).values()]
        async for record in self._hub.stream(path, snapshot, filter):
            yield record
