"""Workout session models."""

from dataclasses import dataclass, field
from enum import Enum

from ..utils.ids import new_id, now_millis, parse_day, today_iso


class WeightUnit(str, Enum):
    """Unit the weights of a workout exercise were entered in."""

    KG = "kg"
    LB = "lb"


@dataclass
class SetEntry:
    """A single set of an exercise."""

    reps: int
    weight: float = 0
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if self.reps < 0:
            raise ValueError("reps must be >= 0")
        if self.weight < 0:
            raise ValueError("weight must be >= 0")

    def to_dict(self) -> dict:
        return {"id": self.id, "reps": self.reps, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict) -> "SetEntry":
        return cls(
            id=data["id"],
            reps=int(data.get("reps") or 0),
            weight=data.get("weight") or 0,
        )


@dataclass
class WorkoutExercise:
    """An exercise performed within a workout session.

    ``exercise_id`` references the catalog entry; the session does not own it.
    """

    exercise_id: str
    sets: list[SetEntry] = field(default_factory=list)
    weight_unit: WeightUnit = WeightUnit.KG
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.weight_unit = WeightUnit(self.weight_unit)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exerciseId": self.exercise_id,
            "sets": [s.to_dict() for s in self.sets],
            "weightUnit": self.weight_unit.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutExercise":
        return cls(
            id=data["id"],
            exercise_id=data["exerciseId"],
            sets=[SetEntry.from_dict(s) for s in data.get("sets", [])],
            weight_unit=WeightUnit(data.get("weightUnit") or "kg"),
        )


@dataclass
class WorkoutSession:
    """A workout logged on a calendar day."""

    date: str = field(default_factory=today_iso)
    exercises: list[WorkoutExercise] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    is_synced: bool = False
    created_at: int = field(default_factory=now_millis)

    def __post_init__(self):
        self.date = parse_day(self.date)

    @property
    def total_sets(self) -> int:
        return sum(len(ex.sets) for ex in self.exercises)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "date": self.date,
            "exercises": [ex.to_dict() for ex in self.exercises],
            "isSynced": self.is_synced,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSession":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            date=data["date"],
            exercises=[WorkoutExercise.from_dict(ex) for ex in data.get("exercises", [])],
            is_synced=bool(data.get("isSynced", False)),
            created_at=int(data.get("createdAt") or 0),
        )
