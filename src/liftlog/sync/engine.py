"""Reconciliation engine: drains the sync queue and pulls remote state.

A drain replays queued mutations against the remote store in FIFO order,
using each entity's own id as the remote document key so replays are
idempotent. A pull refreshes the local store's bounded working set from the
remote store. At most one drain or pull runs at a time per engine.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..db.store import LocalStore
from ..models.exercise import Exercise
from ..models.sync import MutationState, SyncItemType, SyncQueueItem, SyncStatus
from ..models.weight import WeightEntry
from ..models.workout import WorkoutSession
from ..remote.base import (
    EXERCISES_PATH,
    RemoteStore,
    strip_local_fields,
    weight_entries_path,
    workouts_path,
)
from .queue import SyncQueue

logger = logging.getLogger(__name__)

# Model used to validate each payload before it is replayed
_PAYLOAD_MODELS = {
    "exercises": Exercise,
    "workouts": WorkoutSession,
    "weightEntries": WeightEntry,
}


def remote_path(item_type: SyncItemType, user_id: str) -> str:
    """Remote collection path for the entity kind of ``item_type``."""
    collection = item_type.collection
    if collection == "exercises":
        return EXERCISES_PATH
    if collection == "workouts":
        return workouts_path(user_id)
    return weight_entries_path(user_id)


async def push_mutation(
    remote: RemoteStore, user_id: str, item_type: SyncItemType, payload: dict
) -> None:
    """Write one mutation to the remote store, keyed by the entity's own id."""
    path = remote_path(item_type, user_id)
    if item_type.is_delete:
        await remote.delete(path, payload["id"])
    else:
        await remote.upsert(path, payload["id"], strip_local_fields(payload))


@dataclass
class DrainResult:
    """Outcome of one drain pass (lists hold queue item ids)."""

    confirmed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.confirmed) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.deferred


@dataclass
class PullResult:
    """Outcome of one read-path reconciliation."""

    exercises: int = 0
    workouts: int = 0
    weight_entries: int = 0
    pruned: int = 0
    kept_local: int = 0
    failed_paths: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_paths


@dataclass
class ReconcileResult:
    drain: DrainResult
    pull: PullResult | None = None


class ReconciliationEngine:
    """Drains queued mutations and merges remote reads into the local store."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteStore,
        user_id: str = "local",
        recent_limit: int = 50,
        queue: SyncQueue | None = None,
    ):
        self.store = store
        self.remote = remote
        self.user_id = user_id
        self.recent_limit = recent_limit
        self.queue = queue or SyncQueue(store)
        self.last_synced_at: datetime | None = None
        self._lock = asyncio.Lock()
        self._states: dict[str, MutationState] = {}
        self._status = SyncStatus.IDLE
        self._status_callbacks: list[Callable[[SyncStatus], None]] = []

    # Status

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def on_status(self, callback: Callable[[SyncStatus], None]) -> Callable[[], None]:
        """Register a status indicator callback; returns an unsubscribe function."""
        self._status_callbacks.append(callback)
        return lambda: self._status_callbacks.remove(callback)

    def state_of(self, item_id: str) -> MutationState | None:
        """State of a queue item as last seen by this engine."""
        return self._states.get(item_id)

    def mark_pending(self) -> None:
        """Signal that a mutation was queued outside a drain."""
        if not self.is_running:
            self._set_status(SyncStatus.PENDING)

    def _set_status(self, status: SyncStatus) -> None:
        if status == self._status:
            return
        self._status = status
        for callback in list(self._status_callbacks):
            try:
                callback(status)
            except Exception:
                logger.exception("Sync status callback failed")

    # Entry points

    async def drain(self) -> DrainResult:
        """Run one drain pass, waiting for any running pass to finish first."""
        async with self._lock:
            return await self._drain()

    async def pull(self) -> PullResult:
        """Run the read-path reconciliation on demand."""
        async with self._lock:
            return await self._pull()

    async def request_sync(self, pull: bool = True) -> ReconcileResult:
        """Manual "sync now": serialized behind a running pass, never concurrent."""
        async with self._lock:
            return await self._reconcile(pull)

    async def trigger_reconnect(self) -> ReconcileResult | None:
        """Reconcile after going online; dropped if a pass is already running."""
        if self._lock.locked():
            logger.info("Reconnect sync coalesced into the running pass")
            return None
        async with self._lock:
            return await self._reconcile(pull=True)

    async def _reconcile(self, pull: bool) -> ReconcileResult:
        result = ReconcileResult(drain=await self._drain())
        if pull:
            result.pull = await self._pull()
        return result

    # Write path

    async def _drain(self) -> DrainResult:
        result = DrainResult()
        items = await self.queue.drain_all()
        stored = await self.queue.count()
        if stored > len(items):
            logger.warning("%d malformed sync queue rows left in place", stored - len(items))

        if not items:
            self._set_status(SyncStatus.IDLE if stored == 0 else SyncStatus.FAILED)
            return result

        self._set_status(SyncStatus.SYNCING)
        logger.info("Draining %d sync queue item(s)", len(items))

        # Entities with a failed mutation in this pass; their later
        # mutations must not be replayed ahead of the failed one.
        blocked: set[str] = set()

        for item in items:
            self._states[item.id] = MutationState.PENDING

            if item.entity_id in blocked:
                result.deferred.append(item.id)
                continue

            if not self._payload_valid(item):
                result.skipped.append(item.id)
                blocked.add(item.entity_id)
                continue

            self._states[item.id] = MutationState.IN_FLIGHT
            try:
                await self._write_remote(item)
                await self._confirm(item)
            except Exception as e:
                # RemoteError, StoreError, or an adapter's own transport error
                self._fail(item, e, result, blocked)
                continue

            self._states[item.id] = MutationState.CONFIRMED
            result.confirmed.append(item.id)

        if result.failed or result.deferred or result.skipped:
            self._set_status(SyncStatus.FAILED)
        else:
            self._set_status(SyncStatus.SUCCEEDED)
            self.last_synced_at = datetime.now()

        logger.info(
            "Drain finished: %d confirmed, %d failed, %d deferred, %d skipped",
            len(result.confirmed),
            len(result.failed),
            len(result.deferred),
            len(result.skipped),
        )
        return result

    def _fail(
        self, item: SyncQueueItem, error: Exception, result: DrainResult, blocked: set[str]
    ) -> None:
        logger.warning(
            "Sync of %s %s failed, keeping it queued: %s",
            item.type.value,
            item.entity_id,
            error,
        )
        self._states[item.id] = MutationState.PENDING
        result.failed.append(item.id)
        blocked.add(item.entity_id)

    def _payload_valid(self, item: SyncQueueItem) -> bool:
        if item.type.is_delete:
            return True
        model = _PAYLOAD_MODELS[item.type.collection]
        try:
            model.from_dict(item.payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Skipping sync queue item %s with malformed %s payload: %s",
                item.id,
                item.type.value,
                e,
            )
            return False
        return True

    async def push(self, item_type: SyncItemType, payload: dict) -> None:
        """Perform the single remote write implied by a mutation."""
        await push_mutation(self.remote, self.user_id, item_type, payload)

    async def mark_synced(
        self, collection: str, payload: dict, confirmed_item_id: str | None = None
    ) -> bool:
        """Flag the local record synced if it is still the confirmed ``payload``.

        A record edited after ``payload`` was written, or one with other
        queued mutations, stays unsynced. Returns True if the flag was set.
        """
        record = await self.store.get(collection, payload["id"])
        if record is None or record.get("isSynced"):
            return False
        if strip_local_fields(record) != strip_local_fields(payload):
            return False
        return await self.store.flag_synced(collection, record, confirmed_item_id)

    async def _write_remote(self, item: SyncQueueItem) -> None:
        await self.push(item.type, item.payload)

    async def _confirm(self, item: SyncQueueItem) -> None:
        """Mark the entity synced (if nothing else is pending) and dequeue the item."""
        if not item.type.is_delete:
            await self.mark_synced(item.type.collection, item.payload, item.id)
        await self.queue.remove(item.id)

    # Read path

    async def _pull(self) -> PullResult:
        result = PullResult()

        try:
            exercises = await self.remote.read_all(EXERCISES_PATH)
        except Exception as e:
            logger.warning("Could not read exercise catalog, serving cached copy: %s", e)
            result.failed_paths.append(EXERCISES_PATH)
        else:
            result.exercises = await self._merge("exercises", exercises, result)

        for collection, path in (
            ("workouts", workouts_path(self.user_id)),
            ("weightEntries", weight_entries_path(self.user_id)),
        ):
            try:
                records = await self.remote.read_recent(path, "date", self.recent_limit)
            except Exception as e:
                logger.warning("Could not read %s, serving cached copy: %s", path, e)
                result.failed_paths.append(path)
                continue
            merged = await self._merge(collection, records, result)
            if collection == "workouts":
                result.workouts = merged
            else:
                result.weight_entries = merged

        logger.info(
            "Pulled %d exercises, %d workouts, %d weight entries (%d pruned)",
            result.exercises,
            result.workouts,
            result.weight_entries,
            result.pruned,
        )
        return result

    async def _merge(self, collection: str, records: list[dict], result: PullResult) -> int:
        """Write remote records locally and prune synced records not among them.

        Unsynced local records and records with queued mutations keep their
        local version; the store checks this at write time, so an edit made
        while the remote read was in flight is kept. For exercises the remote
        list is the whole catalog; for the bounded collections it is the
        recent window, so pruning keeps the cache bounded.
        """
        model = _PAYLOAD_MODELS[collection]
        remote_ids = set()
        merged = 0

        for record in records:
            try:
                entity = model.from_dict(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring malformed remote %s record: %s", collection, e)
                continue
            remote_ids.add(entity.id)

            entity.is_synced = True
            if await self.store.put_unless_pending(collection, entity.to_dict()):
                merged += 1
            else:
                result.kept_local += 1

        for local in await self.store.get_all(collection):
            local_id = local.get("id")
            if local_id in remote_ids or not local.get("isSynced"):
                continue
            if await self.store.delete_if_synced(collection, local_id):
                result.pruned += 1

        return merged
