"""Ordered queue of mutations awaiting remote confirmation."""

import logging
from typing import Any

from ..db.store import LocalStore
from ..errors import MalformedQueueItem
from ..models.sync import SyncItemType, SyncQueueItem

logger = logging.getLogger(__name__)

QUEUE_COLLECTION = "syncQueue"


class SyncQueue:
    """Append-only FIFO view over the ``syncQueue`` collection.

    Items come back in insertion order. Every enqueue goes through the one
    store connection, so items from different producers are totally ordered.
    """

    def __init__(self, store: LocalStore):
        self.store = store

    async def enqueue(self, item_type: SyncItemType, payload: dict[str, Any]) -> SyncQueueItem:
        """Persist a new mutation and return the stored item."""
        item = SyncQueueItem(type=SyncItemType(item_type), payload=payload)
        await self.store.put(QUEUE_COLLECTION, item.to_dict())
        logger.debug("Enqueued %s for %s (item %s)", item.type.value, item.entity_id, item.id)
        return item

    async def drain_all(self) -> list[SyncQueueItem]:
        """Return every queued item in insertion order.

        Malformed rows are logged and skipped; they stay in the store.
        """
        items = []
        for raw in await self.store.get_all(QUEUE_COLLECTION):
            try:
                items.append(SyncQueueItem.from_dict(raw))
            except MalformedQueueItem as e:
                logger.warning("Skipping malformed sync queue item: %s", e)
        return items

    async def remove(self, item_id: str) -> bool:
        """Delete exactly one item."""
        return await self.store.delete(QUEUE_COLLECTION, item_id)

    async def pending_for(self, entity_id: str) -> list[SyncQueueItem]:
        """Queued items whose payload is the given entity."""
        return [item for item in await self.drain_all() if item.entity_id == entity_id]

    async def count(self) -> int:
        return await self.store.count(QUEUE_COLLECTION)
