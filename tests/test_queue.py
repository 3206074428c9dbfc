"""Tests for the sync queue."""

import pytest

from liftlog.models.sync import SyncItemType
from liftlog.sync.queue import QUEUE_COLLECTION


class TestSyncQueue:
    """Tests for SyncQueue."""

    @pytest.mark.asyncio
    async def test_drain_all_is_fifo(self, queue):
        first = await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w1"})
        second = await queue.enqueue(SyncItemType.CREATE_WEIGHT_ENTRY, {"id": "b1"})
        third = await queue.enqueue(SyncItemType.UPDATE_WORKOUT, {"id": "w1"})

        items = await queue.drain_all()

        assert [i.id for i in items] == [first.id, second.id, third.id]
        assert items[0].type is SyncItemType.CREATE_WORKOUT

    @pytest.mark.asyncio
    async def test_drain_all_does_not_remove(self, queue):
        await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w1"})

        await queue.drain_all()

        assert await queue.count() == 1

    @pytest.mark.asyncio
    async def test_remove_deletes_exactly_one(self, queue):
        first = await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w1"})
        second = await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w2"})

        assert await queue.remove(first.id) is True
        assert await queue.remove(first.id) is False
        assert [i.id for i in await queue.drain_all()] == [second.id]

    @pytest.mark.asyncio
    async def test_pending_for(self, queue):
        await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w1"})
        await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w2"})
        await queue.enqueue(SyncItemType.DELETE_WORKOUT, {"id": "w1"})

        pending = await queue.pending_for("w1")

        assert [i.type for i in pending] == [
            SyncItemType.CREATE_WORKOUT,
            SyncItemType.DELETE_WORKOUT,
        ]
        assert await queue.pending_for("nope") == []

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, queue, store):
        await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w1"})
        await store.put(QUEUE_COLLECTION, {"id": "junk", "type": "CREATE_PROGRAM"})
        await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w2"})

        items = await queue.drain_all()

        assert [i.entity_id for i in items] == ["w1", "w2"]
        assert await queue.count() == 3
