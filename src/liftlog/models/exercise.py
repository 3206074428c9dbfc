"""Exercise catalog model."""

from dataclasses import dataclass, field
from enum import Enum

from ..utils.ids import new_id, now_millis


class Coefficient(str, Enum):
    """Volume coefficient applied to an exercise's sets.

    The coefficient only matters for presentation (volume math); the sync
    core stores and transports it unchanged.
    """

    X1 = "x1"
    X2 = "x2"
    GRAVITRON = "gravitron"


@dataclass
class Exercise:
    """An exercise in the global catalog."""

    name: str
    coefficient: Coefficient = Coefficient.X1
    id: str = field(default_factory=new_id)
    is_synced: bool = False
    updated_at: int = field(default_factory=now_millis)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Exercise name must not be empty")
        self.name = self.name.strip()
        self.coefficient = Coefficient(self.coefficient)

    def touch(self) -> None:
        """Bump ``updated_at`` after an in-place edit."""
        self.updated_at = now_millis()

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "name": self.name,
            "coefficient": self.coefficient.value,
            "isSynced": self.is_synced,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Exercise":
        """Create from dictionary.

        Records read back from the remote store carry no ``isSynced`` flag
        and may lack ``updatedAt`` or ``coefficient``.
        """
        return cls(
            id=data["id"],
            name=data["name"],
            coefficient=Coefficient(data.get("coefficient") or "x1"),
            is_synced=bool(data.get("isSynced", False)),
            updated_at=int(data.get("updatedAt") or 0),
        )


# Seeded into an empty catalog
DEFAULT_EXERCISES = [
    ("Bench Press", Coefficient.X1),
    ("Squat", Coefficient.X1),
    ("Deadlift", Coefficient.X1),
    ("Overhead Press", Coefficient.X1),
]
