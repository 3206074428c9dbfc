"""CLI commands for liftlog."""

from .exercises import exercises
from .init import init
from .serve import serve
from .sync import sync
from .watch import watch
from .weight import weight
from .workout import workout

__all__ = [
    "exercises",
    "init",
    "serve",
    "sync",
    "watch",
    "weight",
    "workout",
]
