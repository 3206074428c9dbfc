"""Offline sync core: queue, network monitor and reconciliation engine."""

from .engine import DrainResult, PullResult, ReconcileResult, ReconciliationEngine
from .network import NetworkMonitor, NetworkTransition
from .queue import SyncQueue

__all__ = [
    "DrainResult",
    "NetworkMonitor",
    "NetworkTransition",
    "PullResult",
    "ReconcileResult",
    "ReconciliationEngine",
    "SyncQueue",
]
