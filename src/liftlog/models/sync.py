"""Sync queue and sync status models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import MalformedQueueItem
from ..utils.ids import new_id, now_millis


class SyncItemType(str, Enum):
    """Kind of mutation recorded in the sync queue."""

    CREATE_EXERCISE = "CREATE_EXERCISE"
    UPDATE_EXERCISE = "UPDATE_EXERCISE"
    DELETE_EXERCISE = "DELETE_EXERCISE"
    CREATE_WORKOUT = "CREATE_WORKOUT"
    UPDATE_WORKOUT = "UPDATE_WORKOUT"
    DELETE_WORKOUT = "DELETE_WORKOUT"
    CREATE_WEIGHT_ENTRY = "CREATE_WEIGHT_ENTRY"
    DELETE_WEIGHT_ENTRY = "DELETE_WEIGHT_ENTRY"

    @property
    def collection(self) -> str:
        """Local store collection holding the entity."""
        if self.value.endswith("_EXERCISE"):
            return "exercises"
        if self.value.endswith("_WORKOUT"):
            return "workouts"
        return "weightEntries"

    @property
    def is_delete(self) -> bool:
        return self.value.startswith("DELETE_")


class MutationState(str, Enum):
    """Lifecycle of a single queued mutation within the engine."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    CONFIRMED = "confirmed"


class SyncStatus(str, Enum):
    """Aggregate status shown by a sync indicator."""

    IDLE = "idle"
    PENDING = "pending"
    SYNCING = "syncing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SyncQueueItem:
    """A mutation that has not yet been confirmed by the remote store."""

    type: SyncItemType
    payload: dict[str, Any]
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_millis)

    @property
    def entity_id(self) -> str:
        return self.payload["id"]

    def to_dict(self) -> dict:
        """Convert to the queue wire shape."""
        return {
            "id": self.id,
            "type": self.type.value,
            "payload": self.payload,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SyncQueueItem":
        """Parse a stored queue row.

        Raises:
            MalformedQueueItem: If the row does not have the queue item shape
        """
        if not isinstance(data, dict):
            raise MalformedQueueItem("Queue item is not an object", raw=data)

        item_id = data.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise MalformedQueueItem("Queue item has no id", raw=data)

        try:
            item_type = SyncItemType(data.get("type"))
        except ValueError as e:
            raise MalformedQueueItem(
                f"Queue item {item_id} has unknown type {data.get('type')!r}", raw=data
            ) from e

        payload = data.get("payload")
        if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
            raise MalformedQueueItem(
                f"Queue item {item_id} has no entity payload", raw=data
            )

        created_at = data.get("createdAt")
        if not isinstance(created_at, int) or isinstance(created_at, bool):
            raise MalformedQueueItem(
                f"Queue item {item_id} has invalid createdAt", raw=data
            )

        return cls(id=item_id, type=item_type, payload=payload, created_at=created_at)
