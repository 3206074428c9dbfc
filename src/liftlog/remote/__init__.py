"""Remote store adapters."""

from .base import (
    EXERCISES_PATH,
    RemoteStore,
    strip_local_fields,
    weight_entries_path,
    workouts_path,
)
from .http import HttpRemoteStore
from .memory import InMemoryRemoteStore
from .sqlite import SqliteRemoteStore

__all__ = [
    "EXERCISES_PATH",
    "HttpRemoteStore",
    "InMemoryRemoteStore",
    "RemoteStore",
    "SqliteRemoteStore",
    "strip_local_fields",
    "weight_entries_path",
    "workouts_path",
]
