"""Client-side id and timestamp helpers."""

import time
from datetime import date
from uuid import uuid4


def new_id() -> str:
    """Generate a globally unique entity id.

    Ids are generated by the writer before any persistence or network call
    and reused as the remote document key.
    """
    return str(uuid4())


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def today_iso() -> str:
    return date.today().isoformat()


def parse_day(value: str) -> str:
    """Validate a calendar day string and return it in ``YYYY-MM-DD`` form."""
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date: {value!r}") from e
