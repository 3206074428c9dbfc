"""Application services for liftlog."""

from .tracker import WorkoutTracker

__all__ = ["WorkoutTracker"]
