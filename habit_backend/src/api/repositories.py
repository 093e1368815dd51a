from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import List, Optional, Tuple

from .errors import DuplicateNameError
from .models import FocusTimeEntity, HabitEntity
from .settings import get_settings


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing focus times.
    """
    limit: int = 50
    offset: int = 0
    sort: str = "-time_from"  # allowed: time_from, -time_from


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _copy_habit(habit: HabitEntity) -> HabitEntity:
    copied = habit.copy()
    copied["completed_days"] = list(habit["completed_days"])
    return copied


def utc_instant(value: datetime) -> datetime:
    """
    Sort key for focus-time instants. Naive values are read as UTC, matching
    SQLite's julianday().
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_direction(sort: Optional[str]) -> bool:
    """Return True when the focus-time sort key asks for descending order."""
    key = (sort or "-time_from").strip().lower()
    return key.startswith("-")


# PUBLIC_INTERFACE
class HabitRepository(ABC):
    """Abstract repository contract for habit storage backends."""

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[HabitEntity]:
        """Return the habit with exactly this name, or None."""

    @abstractmethod
    def find_by_id(self, habit_id: int) -> Optional[HabitEntity]:
        """Return a habit by id, or None if not found."""

    @abstractmethod
    def insert(self, name: str) -> HabitEntity:
        """
        Create a habit with no completed days.

        Raises:
            DuplicateNameError if a habit with this name exists. The check and the
            insert are a single atomic step.
        """

    @abstractmethod
    def delete_by_id(self, habit_id: int) -> bool:
        """Delete a habit permanently. Return True if deleted, False if not found."""

    @abstractmethod
    def list_all(self) -> List[HabitEntity]:
        """Return every habit sorted by name ascending."""

    @abstractmethod
    def add_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        """Add day_key to the habit's completed days. Return the updated habit or None."""

    @abstractmethod
    def remove_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        """Remove day_key from the habit's completed days. Return the updated habit or None."""

    @abstractmethod
    def toggle_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        """
        Remove day_key if present, add it otherwise, as one atomic step on the record.
        Return the updated habit or None if not found.
        """


# PUBLIC_INTERFACE
class FocusTimeRepository(ABC):
    """Abstract repository contract for focus-time storage backends."""

    @abstractmethod
    def create(self, time_from: datetime, time_to: datetime) -> FocusTimeEntity:
        """Persist and return a new interval."""

    @abstractmethod
    def get(self, focus_time_id: int) -> Optional[FocusTimeEntity]:
        """Return an interval by id, or None if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[FocusTimeEntity], int]:
        """
        Return a slice of intervals and the total count.
        - Supports limit/offset
        - Sorting by time_from (asc/desc)
        """


class InMemoryHabitRepository(HabitRepository):
    """
    Thread-safe in-memory habit repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, HabitEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def find_by_name(self, name: str) -> Optional[HabitEntity]:
        with self._lock:
            for item in self._items.values():
                if item["name"] == name:
                    return _copy_habit(item)
            return None

    def find_by_id(self, habit_id: int) -> Optional[HabitEntity]:
        with self._lock:
            item = self._items.get(habit_id)
            return None if item is None else _copy_habit(item)

    def insert(self, name: str) -> HabitEntity:
        with self._lock:
            if any(item["name"] == name for item in self._items.values()):
                raise DuplicateNameError(name)
            entity: HabitEntity = {
                "id": self._allocate_id(),
                "name": name,
                "completed_days": [],
                "created_at": _utcnow(),
            }
            self._items[entity["id"]] = entity
            return _copy_habit(entity)

    def delete_by_id(self, habit_id: int) -> bool:
        with self._lock:
            return self._items.pop(habit_id, None) is not None

    def list_all(self) -> List[HabitEntity]:
        with self._lock:
            items = sorted(self._items.values(), key=lambda h: (h["name"], h["id"]))
            return [_copy_habit(h) for h in items]

    def add_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with self._lock:
            existing = self._items.get(habit_id)
            if existing is None:
                return None
            if day_key not in existing["completed_days"]:
                existing["completed_days"] = sorted([*existing["completed_days"], day_key])
            return _copy_habit(existing)

    def remove_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with self._lock:
            existing = self._items.get(habit_id)
            if existing is None:
                return None
            existing["completed_days"] = [d for d in existing["completed_days"] if d != day_key]
            return _copy_habit(existing)

    def toggle_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with self._lock:
            existing = self._items.get(habit_id)
            if existing is None:
                return None
            days = existing["completed_days"]
            if day_key in days:
                existing["completed_days"] = [d for d in days if d != day_key]
            else:
                existing["completed_days"] = sorted([*days, day_key])
            return _copy_habit(existing)


class InMemoryFocusTimeRepository(FocusTimeRepository):
    """
    Thread-safe in-memory focus-time repository.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, FocusTimeEntity] = {}
        self._next_id = 1

    def create(self, time_from: datetime, time_to: datetime) -> FocusTimeEntity:
        with self._lock:
            entity: FocusTimeEntity = {
                "id": self._next_id,
                "time_from": time_from,
                "time_to": time_to,
                "created_at": _utcnow(),
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()

    def get(self, focus_time_id: int) -> Optional[FocusTimeEntity]:
        with self._lock:
            item = self._items.get(focus_time_id)
            return None if item is None else item.copy()

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[FocusTimeEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = list(self._items.values())
            total = len(items)

            reverse = sort_direction(q.sort)
            items_sorted = sorted(
                items, key=lambda t: (utc_instant(t["time_from"]), t["id"]), reverse=reverse
            )

            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            return [t.copy() for t in items_sorted[start:end]], total


def _build_repositories() -> Tuple[HabitRepository, FocusTimeRepository]:
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteFocusTimeRepository, SQLiteHabitRepository

        return (
            SQLiteHabitRepository(settings.sqlite_db_path),
            SQLiteFocusTimeRepository(settings.sqlite_db_path),
        )
    return InMemoryHabitRepository(), InMemoryFocusTimeRepository()


@lru_cache(maxsize=1)
def _repositories() -> Tuple[HabitRepository, FocusTimeRepository]:
    return _build_repositories()


# PUBLIC_INTERFACE
def get_habit_repository() -> HabitRepository:
    """
    Return the process-wide habit repository chosen by settings.
    - memory: InMemoryHabitRepository
    - sqlite: SQLiteHabitRepository
    """
    return _repositories()[0]


# PUBLIC_INTERFACE
def get_focus_time_repository() -> FocusTimeRepository:
    """Return the process-wide focus-time repository chosen by settings."""
    return _repositories()[1]
