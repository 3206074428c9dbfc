"""Workout tracker service: the mutation and read API used by the CLI.

Every mutation has two independent effects:

1. an optimistic local write (``_apply_local``), visible to readers at once
   with ``isSynced = False``;
2. a durable side effect (``_push_or_enqueue``): the remote write is attempted
   immediately when online and no earlier mutation of the same entity is
   queued; otherwise, or if it fails, the mutation is queued for the next
   drain.

If the local store cannot be opened the tracker runs in remote-only mode.
"""

import logging
from collections.abc import AsyncIterator

from ..db.store import LocalStore, StoreHandle
from ..errors import StoreUnavailable
from ..models.exercise import DEFAULT_EXERCISES, Coefficient, Exercise
from ..models.sync import SyncItemType
from ..models.weight import WeightEntry
from ..models.workout import WorkoutExercise, WorkoutSession
from ..remote.base import (
    EXERCISES_PATH,
    RemoteStore,
    sort_recent,
    weight_entries_path,
    workouts_path,
)
from ..sync.engine import ReconcileResult, ReconciliationEngine, push_mutation
from ..sync.network import NetworkMonitor
from ..utils.ids import parse_day

logger = logging.getLogger(__name__)

Entity = Exercise | WorkoutSession | WeightEntry


class WorkoutTracker:
    """Application-facing facade over the local store and sync engine."""

    def __init__(
        self,
        handle: StoreHandle,
        remote: RemoteStore,
        network: NetworkMonitor,
        user_id: str = "local",
        recent_limit: int = 50,
    ):
        self.handle = handle
        self.remote = remote
        self.network = network
        self.user_id = user_id
        self.recent_limit = recent_limit
        self._engine: ReconciliationEngine | None = None
        self._degraded = False
        self._unbind = None

    @property
    def degraded(self) -> bool:
        """True when running remote-only because the local store is unavailable."""
        return self._degraded

    async def open(self) -> ReconciliationEngine | None:
        """Open the local store and wire reconnects to the engine.

        Returns None (and switches to remote-only mode) if the store is
        unavailable.
        """
        if self._engine is not None:
            return self._engine
        try:
            store = await self.handle.get()
        except StoreUnavailable as e:
            if not self._degraded:
                logger.warning("Local store unavailable, using remote store only: %s", e)
            self._degraded = True
            return None

        # A concurrent open() may have finished first
        if self._engine is not None:
            return self._engine
        self._degraded = False
        self._engine = ReconciliationEngine(
            store, self.remote, user_id=self.user_id, recent_limit=self.recent_limit
        )
        self._unbind = self.network.bind_engine(self._engine)
        return self._engine

    async def close(self) -> None:
        if self._unbind is not None:
            self._unbind()
            self._unbind = None
        self._engine = None
        await self.handle.close()

    @property
    def engine(self) -> ReconciliationEngine | None:
        return self._engine

    # Exercises

    async def add_exercise(
        self, name: str, coefficient: Coefficient | str = Coefficient.X1
    ) -> Exercise:
        exercise = Exercise(name=name, coefficient=Coefficient(coefficient))
        await self._mutate(SyncItemType.CREATE_EXERCISE, exercise)
        return exercise

    async def update_exercise(self, exercise: Exercise) -> Exercise:
        exercise.touch()
        await self._mutate(SyncItemType.UPDATE_EXERCISE, exercise)
        return exercise

    async def delete_exercise(self, exercise_id: str) -> None:
        await self._mutate_delete(SyncItemType.DELETE_EXERCISE, exercise_id)

    async def get_exercise(self, exercise_id: str) -> Exercise | None:
        for exercise in await self.list_exercises():
            if exercise.id == exercise_id:
                return exercise
        return None

    async def list_exercises(self) -> list[Exercise]:
        """The catalog, sorted by name."""
        engine = await self.open()
        if engine is None:
            records = await self.remote.read_all(EXERCISES_PATH)
        else:
            records = await engine.store.get_all("exercises")
        exercises = [Exercise.from_dict(r) for r in records]
        return sorted(exercises, key=lambda e: e.name.casefold())

    async def seed_default_exercises(self) -> list[Exercise]:
        """Add the starter exercises when the catalog is empty."""
        if await self.list_exercises():
            return []
        return [
            await self.add_exercise(name, coefficient)
            for name, coefficient in DEFAULT_EXERCISES
        ]

    # Workouts

    async def create_workout(
        self, date: str | None = None, exercises: list[WorkoutExercise] | None = None
    ) -> WorkoutSession:
        workout = WorkoutSession(exercises=exercises or [])
        if date:
            workout.date = parse_day(date)
        await self._mutate(SyncItemType.CREATE_WORKOUT, workout)
        return workout

    async def update_workout(self, workout: WorkoutSession) -> WorkoutSession:
        await self._mutate(SyncItemType.UPDATE_WORKOUT, workout)
        return workout

    async def delete_workout(self, workout_id: str) -> None:
        await self._mutate_delete(SyncItemType.DELETE_WORKOUT, workout_id)

    async def get_workout(self, workout_id: str) -> WorkoutSession | None:
        engine = await self.open()
        if engine is None:
            for record in await self.remote.read_all(workouts_path(self.user_id)):
                if record.get("id") == workout_id:
                    return WorkoutSession.from_dict(record)
            return None
        record = await engine.store.get("workouts", workout_id)
        return WorkoutSession.from_dict(record) if record else None

    async def list_workouts(self, limit: int | None = None) -> list[WorkoutSession]:
        """Most recent workouts first."""
        limit = limit or self.recent_limit
        engine = await self.open()
        if engine is None:
            records = await self.remote.read_recent(workouts_path(self.user_id), "date", limit)
        else:
            records = await engine.store.get_recent("workouts", "date", limit)
        return [WorkoutSession.from_dict(r) for r in records]

    def subscribe_workouts(self) -> AsyncIterator[dict]:
        """Live view of the user's remote workouts."""
        return self.remote.subscribe(workouts_path(self.user_id))

    # Body weight

    async def log_weight(self, weight: float, date: str | None = None) -> WeightEntry:
        entry = WeightEntry(weight=weight)
        if date:
            entry.date = parse_day(date)
        await self._mutate(SyncItemType.CREATE_WEIGHT_ENTRY, entry)
        return entry

    async def delete_weight_entry(self, entry_id: str) -> None:
        await self._mutate_delete(SyncItemType.DELETE_WEIGHT_ENTRY, entry_id)

    async def list_weight_entries(self, limit: int | None = None) -> list[WeightEntry]:
        """Recent weight entries, oldest first."""
        limit = limit or self.recent_limit
        engine = await self.open()
        if engine is None:
            records = await self.remote.read_all(weight_entries_path(self.user_id))
            records = sort_recent(records, "date", limit)
        else:
            records = await engine.store.get_recent("weightEntries", "date", limit)
        return sorted((WeightEntry.from_dict(r) for r in records), key=lambda e: e.date)

    # Sync

    async def sync_now(self, pull: bool = True) -> ReconcileResult | None:
        """Drain the queue (and pull) now, regardless of the monitor's state.

        Returns None in remote-only mode, where there is nothing to drain.
        """
        engine = await self.open()
        if engine is None:
            return None
        return await engine.request_sync(pull=pull)

    async def pending_count(self) -> int:
        engine = await self.open()
        if engine is None:
            return 0
        return await engine.queue.count()

    # Mutation plumbing

    async def _mutate(self, item_type: SyncItemType, entity: Entity) -> None:
        engine = await self.open()
        if engine is None:
            await self._push_remote_only(item_type, entity.to_dict())
            entity.is_synced = True
            return

        await self._apply_local(engine.store, item_type, entity)
        entity.is_synced = await self._push_or_enqueue(engine, item_type, entity.to_dict())

    async def _mutate_delete(self, item_type: SyncItemType, entity_id: str) -> None:
        payload = {"id": entity_id}
        engine = await self.open()
        if engine is None:
            await self._push_remote_only(item_type, payload)
            return

        # Queue (or push) before removing the row, so a concurrent pull sees
        # the pending delete and does not restore the record.
        await self._push_or_enqueue(engine, item_type, payload)
        await engine.store.delete(item_type.collection, entity_id)

    async def _apply_local(
        self, store: LocalStore, item_type: SyncItemType, entity: Entity
    ) -> None:
        """Optimistic local write; the entity is unsynced until confirmed."""
        entity.is_synced = False
        await store.put(item_type.collection, entity.to_dict())

    async def _push_or_enqueue(
        self, engine: ReconciliationEngine, item_type: SyncItemType, payload: dict
    ) -> bool:
        """Write through to the remote store or queue the mutation.

        Returns True if the remote write was confirmed and the local record
        (if any) is flagged synced.
        """
        entity_id = payload["id"]
        if self.network.online and not await engine.queue.pending_for(entity_id):
            try:
                await engine.push(item_type, payload)
            except Exception as e:
                logger.warning(
                    "Immediate sync of %s %s failed, queueing: %s",
                    item_type.value,
                    entity_id,
                    e,
                )
            else:
                if item_type.is_delete:
                    return True
                return await engine.mark_synced(item_type.collection, payload)

        await engine.queue.enqueue(item_type, payload)
        engine.mark_pending()
        return False

    async def _push_remote_only(self, item_type: SyncItemType, payload: dict) -> None:
        # Without a local store there is no queue; failures reach the caller.
        await push_mutation(self.remote, self.user_id, item_type, payload)
