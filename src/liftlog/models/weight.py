"""Body-weight log model."""

from dataclasses import dataclass, field

from ..utils.ids import new_id, now_millis, parse_day, today_iso


@dataclass
class WeightEntry:
    """A body-weight measurement for one day, in kilograms."""

    weight: float
    date: str = field(default_factory=today_iso)
    id: str = field(default_factory=new_id)
    is_synced: bool = False
    created_at: int = field(default_factory=now_millis)

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError("weight must be > 0")
        self.date = parse_day(self.date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "weight": self.weight,
            "isSynced": self.is_synced,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeightEntry":
        return cls(
            id=data["id"],
            date=data["date"],
            weight=float(data["weight"]),
            is_synced=bool(data.get("isSynced", False)),
            created_at=int(data.get("createdAt") or 0),
        )
