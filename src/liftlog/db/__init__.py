"""Local store for liftlog."""

from .engine import COLLECTIONS, SCHEMA_VERSION, get_schema_version, run_migrations
from .store import LocalStore, StoreHandle

__all__ = [
    "COLLECTIONS",
    "get_schema_version",
    "LocalStore",
    "run_migrations",
    "SCHEMA_VERSION",
    "StoreHandle",
]
