"""Data models for liftlog."""

from .exercise import Coefficient, Exercise, DEFAULT_EXERCISES
from .sync import MutationState, SyncItemType, SyncQueueItem, SyncStatus
from .weight import WeightEntry
from .workout import SetEntry, WeightUnit, WorkoutExercise, WorkoutSession

__all__ = [
    "Coefficient",
    "DEFAULT_EXERCISES",
    "Exercise",
    "MutationState",
    "SetEntry",
    "SyncItemType",
    "SyncQueueItem",
    "SyncStatus",
    "WeightEntry",
    "WeightUnit",
    "WorkoutExercise",
    "WorkoutSession",
]
