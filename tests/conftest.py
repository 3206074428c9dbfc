"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from liftlog.db.store import StoreHandle
from liftlog.models.workout import SetEntry, WorkoutExercise, WorkoutSession
from liftlog.remote.memory import InMemoryRemoteStore
from liftlog.services.tracker import WorkoutTracker
from liftlog.sync.engine import ReconciliationEngine
from liftlog.sync.network import NetworkMonitor
from liftlog.sync.queue import SyncQueue


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
async def handle(temp_db_path):
    """Store handle on a temporary database, closed after the test."""
    store_handle = StoreHandle(temp_db_path)
    yield store_handle
    await store_handle.close()


@pytest.fixture
async def store(handle):
    return await handle.get()


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def queue(store):
    return SyncQueue(store)


@pytest.fixture
def engine(store, remote, queue):
    return ReconciliationEngine(store, remote, user_id="u1", recent_limit=3, queue=queue)


@pytest.fixture
def network():
    return NetworkMonitor(online=False)


@pytest.fixture
async def tracker(handle, remote, network):
    workout_tracker = WorkoutTracker(handle, remote, network, user_id="u1", recent_limit=3)
    await workout_tracker.open()
    yield workout_tracker
    await network.wait_for_callbacks()


@pytest.fixture
def sample_workout():
    """A workout dated 2024-01-01 with one exercise."""
    return WorkoutSession(
        date="2024-01-01",
        exercises=[
            WorkoutExercise(
                exercise_id="ex-bench",
                sets=[SetEntry(reps=5, weight=100), SetEntry(reps=5, weight=100)],
            )
        ],
    )
