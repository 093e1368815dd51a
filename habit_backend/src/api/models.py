from __future__ import annotations

from datetime import datetime
from typing import List, TypedDict


# PUBLIC_INTERFACE
class HabitEntity(TypedDict):
    """
    A lightweight domain model representing a habit for non-ORM storage
    backends.

    Fields:
    - id: Unique integer identifier
    - name: Unique habit name (trimmed on input via schemas, compared case-sensitively)
    - completed_days: Day keys (see days.normalize_day) the habit was done on,
      sorted ascending and free of duplicates
    - created_at: Creation timestamp (aware, UTC)
    """

    id: int
    name: str
    completed_days: List[str]
    created_at: datetime


# PUBLIC_INTERFACE
class FocusTimeEntity(TypedDict):
    """
    A recorded focus-time interval. time_from/time_to are stored exactly as given.
    """

    id: int
    time_from: datetime
    time_to: datetime
    created_at: datetime
