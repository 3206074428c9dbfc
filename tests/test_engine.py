"""Tests for the reconciliation engine."""

import asyncio

import pytest

from liftlog.models.sync import MutationState, SyncItemType, SyncStatus
from liftlog.models.weight import WeightEntry
from liftlog.models.workout import WorkoutSession
from liftlog.remote.base import EXERCISES_PATH, weight_entries_path, workouts_path
from liftlog.sync.engine import remote_path

WORKOUTS = workouts_path("u1")


async def save_offline(store, queue, item_type, entity):
    """Write an entity locally and queue its mutation, as an offline save does."""
    entity.is_synced = False
    await store.put(item_type.collection, entity.to_dict())
    return await queue.enqueue(item_type, entity.to_dict())


class TestRemotePath:
    def test_paths(self):
        assert remote_path(SyncItemType.UPDATE_EXERCISE, "u1") == EXERCISES_PATH
        assert remote_path(SyncItemType.DELETE_WORKOUT, "u1") == "users/u1/workouts"
        assert remote_path(SyncItemType.CREATE_WEIGHT_ENTRY, "u1") == "users/u1/weightEntries"


class TestDrain:
    """Tests for the write path."""

    @pytest.mark.asyncio
    async def test_empty_queue_is_idle(self, engine, remote):
        result = await engine.drain()

        assert result.attempted == 0
        assert result.ok
        assert engine.status is SyncStatus.IDLE
        assert remote.write_log == []

    @pytest.mark.asyncio
    async def test_offline_workout_reaches_remote(self, engine, store, queue, remote, sample_workout):
        item = await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)

        result = await engine.drain()

        assert result.confirmed == [item.id]
        assert await queue.count() == 0
        assert (await store.get("workouts", sample_workout.id))["isSynced"] is True
        remote_doc = remote.docs(WORKOUTS)[sample_workout.id]
        assert "isSynced" not in remote_doc
        assert remote_doc["exercises"][0]["exerciseId"] == "ex-bench"
        assert engine.state_of(item.id) is MutationState.CONFIRMED
        assert engine.status is SyncStatus.SUCCEEDED
        assert engine.last_synced_at is not None

    @pytest.mark.asyncio
    async def test_failed_head_does_not_block_other_entities(self, engine, store, queue, remote):
        w1 = WorkoutSession(date="2024-01-01")
        w2 = WorkoutSession(date="2024-01-02")
        entry = WeightEntry(weight=80.5, date="2024-01-02")
        first = await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, w1)
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, w2)
        await save_offline(store, queue, SyncItemType.CREATE_WEIGHT_ENTRY, entry)
        remote.fail_writes(doc_id=w1.id)

        result = await engine.drain()

        assert result.failed == [first.id]
        assert len(result.confirmed) == 2
        assert [i.id for i in await queue.drain_all()] == [first.id]
        assert w1.id not in remote.docs(WORKOUTS)
        assert w2.id in remote.docs(WORKOUTS)
        assert entry.id in remote.docs(weight_entries_path("u1"))
        assert (await store.get("workouts", w1.id))["isSynced"] is False
        assert engine.state_of(first.id) is MutationState.PENDING
        assert engine.status is SyncStatus.FAILED

        retry = await engine.drain()

        assert retry.confirmed == [first.id]
        assert await queue.count() == 0
        assert engine.status is SyncStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_replay_is_idempotent(self, engine, store, queue, remote, sample_workout):
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        # The earlier attempt reached the remote store but was never confirmed
        await remote.upsert(WORKOUTS, sample_workout.id, sample_workout.to_dict())

        await engine.drain()

        assert list(remote.docs(WORKOUTS)) == [sample_workout.id]
        assert await queue.count() == 0

    @pytest.mark.asyncio
    async def test_later_mutations_of_failed_entity_are_deferred(
        self, engine, store, queue, remote, sample_workout
    ):
        create = await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        sample_workout.exercises = []
        update = await save_offline(store, queue, SyncItemType.UPDATE_WORKOUT, sample_workout)
        remote.fail_writes(doc_id=sample_workout.id)

        result = await engine.drain()

        assert result.failed == [create.id]
        assert result.deferred == [update.id]
        assert remote.write_log == []
        assert [i.id for i in await queue.drain_all()] == [create.id, update.id]

        await engine.drain()

        assert remote.docs(WORKOUTS)[sample_workout.id]["exercises"] == []
        assert (await store.get("workouts", sample_workout.id))["isSynced"] is True

    @pytest.mark.asyncio
    async def test_entity_stays_unsynced_until_last_item_confirmed(
        self, engine, store, queue, remote, sample_workout
    ):
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        await save_offline(store, queue, SyncItemType.UPDATE_WORKOUT, sample_workout)
        # The first write succeeds, the second fails
        original_upsert = remote.upsert
        calls = []

        async def upsert(path, doc_id, data):
            calls.append(doc_id)
            if len(calls) == 2:
                remote.fail_writes()
            await original_upsert(path, doc_id, data)

        remote.upsert = upsert

        result = await engine.drain()

        assert len(result.confirmed) == 1
        assert len(result.failed) == 1
        assert (await store.get("workouts", sample_workout.id))["isSynced"] is False

    @pytest.mark.asyncio
    async def test_malformed_payload_is_skipped(self, engine, store, queue, remote):
        bad = await queue.enqueue(SyncItemType.CREATE_WORKOUT, {"id": "w-bad", "date": "nope"})
        entry = WeightEntry(weight=70, date="2024-02-01")
        await save_offline(store, queue, SyncItemType.CREATE_WEIGHT_ENTRY, entry)

        result = await engine.drain()

        assert result.skipped == [bad.id]
        assert len(result.confirmed) == 1
        assert [i.id for i in await queue.drain_all()] == [bad.id]
        assert engine.status is SyncStatus.FAILED

    @pytest.mark.asyncio
    async def test_delete_replay(self, engine, store, queue, remote, sample_workout):
        await remote.upsert(WORKOUTS, sample_workout.id, sample_workout.to_dict())
        await queue.enqueue(SyncItemType.DELETE_WORKOUT, {"id": sample_workout.id})

        result = await engine.drain()

        assert len(result.confirmed) == 1
        assert sample_workout.id not in remote.docs(WORKOUTS)

    @pytest.mark.asyncio
    async def test_unreachable_remote_keeps_everything(self, engine, store, queue, remote):
        for day in ("2024-01-01", "2024-01-02"):
            await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, WorkoutSession(date=day))
        remote.reachable = False

        result = await engine.drain()

        assert len(result.failed) == 2
        assert await queue.count() == 2

    @pytest.mark.asyncio
    async def test_status_callbacks(self, engine, store, queue, sample_workout):
        seen = []
        unsubscribe = engine.on_status(seen.append)
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        engine.mark_pending()

        await engine.drain()
        unsubscribe()
        engine.mark_pending()

        assert seen == [SyncStatus.PENDING, SyncStatus.SYNCING, SyncStatus.SUCCEEDED]


class TestPull:
    """Tests for the read path."""

    @pytest.mark.asyncio
    async def test_pull_is_bounded_and_prunes_old_synced_records(self, engine, store, remote):
        for day in range(1, 6):
            w = WorkoutSession(date=f"2024-01-0{day}", id=f"w{day}")
            await remote.upsert(WORKOUTS, w.id, w.to_dict())
        stale = WorkoutSession(date="2023-12-01", id="old", is_synced=True)
        await store.put("workouts", stale.to_dict())

        result = await engine.pull()

        assert result.workouts == 3
        assert result.pruned == 1
        ids = [r["id"] for r in await store.get_recent("workouts", "date", 10)]
        assert ids == ["w5", "w4", "w3"]
        assert all(r["isSynced"] for r in await store.get_all("workouts"))

    @pytest.mark.asyncio
    async def test_pull_keeps_records_with_pending_mutations(
        self, engine, store, queue, remote
    ):
        local = WorkoutSession(date="2024-01-01", id="w1")
        await save_offline(store, queue, SyncItemType.UPDATE_WORKOUT, local)
        unsynced_old = WorkoutSession(date="2023-01-01", id="w-old")
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, unsynced_old)
        remote_copy = WorkoutSession(date="2024-01-09", id="w1")
        await remote.upsert(WORKOUTS, "w1", remote_copy.to_dict())

        result = await engine.pull()

        assert result.kept_local == 1
        assert (await store.get("workouts", "w1"))["date"] == "2024-01-01"
        assert await store.get("workouts", "w-old") is not None

    @pytest.mark.asyncio
    async def test_pull_replaces_synced_exercise(self, engine, store, remote):
        await store.put("exercises", {"id": "e1", "name": "Bench", "coefficient": "x1",
                                      "isSynced": True, "updatedAt": 1})
        await remote.upsert(EXERCISES_PATH, "e1", {"name": "Bench Press", "coefficient": "x2"})
        await remote.upsert(EXERCISES_PATH, "e2", {"name": "Row"})

        result = await engine.pull()

        assert result.exercises == 2
        assert (await store.get("exercises", "e1"))["name"] == "Bench Press"
        assert (await store.get("exercises", "e2"))["coefficient"] == "x1"

    @pytest.mark.asyncio
    async def test_failed_read_serves_cached_copy(self, engine, store, remote):
        cached = WorkoutSession(date="2024-01-01", id="w1", is_synced=True)
        await store.put("workouts", cached.to_dict())
        remote.fail_reads()

        result = await engine.pull()

        assert not result.ok
        assert WORKOUTS in result.failed_paths
        assert await store.get("workouts", "w1") is not None

    @pytest.mark.asyncio
    async def test_malformed_remote_records_are_ignored(self, engine, store, remote):
        await remote.upsert(WORKOUTS, "bad", {"date": "not a date"})
        await remote.upsert(WORKOUTS, "good", WorkoutSession(date="2024-01-01").to_dict())

        result = await engine.pull()

        assert result.workouts == 1
        assert await store.get("workouts", "bad") is None


class TestSerialization:
    """Tests for manual and reconnect-triggered passes."""

    @pytest.mark.asyncio
    async def test_request_sync_runs_drain_then_pull(self, engine, store, queue, remote, sample_workout):
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)

        result = await engine.request_sync()

        assert result.drain.confirmed
        assert result.pull is not None and result.pull.workouts == 1

    @pytest.mark.asyncio
    async def test_manual_syncs_never_overlap(self, engine, store, queue, remote, sample_workout):
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        active = 0
        peak = 0
        original_upsert = remote.upsert

        async def slow_upsert(path, doc_id, data):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            await original_upsert(path, doc_id, data)
            active -= 1

        remote.upsert = slow_upsert

        first, second = await asyncio.gather(
            engine.request_sync(pull=False), engine.request_sync(pull=False)
        )

        assert peak == 1
        assert len(first.drain.confirmed) == 1
        assert second.drain.attempted == 0
        assert list(remote.docs(WORKOUTS)) == [sample_workout.id]

    @pytest.mark.asyncio
    async def test_reconnect_is_coalesced_while_running(self, engine, store, queue, remote, sample_workout):
        await save_offline(store, queue, SyncItemType.CREATE_WORKOUT, sample_workout)
        original_upsert = remote.upsert

        async def slow_upsert(path, doc_id, data):
            await asyncio.sleep(0.01)
            await original_upsert(path, doc_id, data)

        remote.upsert = slow_upsert

        running = asyncio.ensure_future(engine.trigger_reconnect())
        await asyncio.sleep(0)
        assert engine.is_running
        assert await engine.trigger_reconnect() is None

        result = await running
        assert result.drain.confirmed
        assert remote.write_log == [("upsert", WORKOUTS, sample_workout.id)]
