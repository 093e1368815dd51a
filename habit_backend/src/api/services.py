"""
Habit and focus-time operations.

Each function takes its repository explicitly and raises the typed errors from
errors.py; routers translate nothing themselves. The toggle engine never reads
the clock or the configured timezone: callers pass both in.
"""
from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import List, Optional, Tuple

from .days import normalize_day
from .errors import (
    DuplicateNameError,
    FocusTimeNotFoundError,
    HabitNotFoundError,
    InvalidIntervalError,
)
from .models import FocusTimeEntity, HabitEntity
from .repositories import FocusTimeRepository, HabitRepository, ListQuery

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def create_habit(repo: HabitRepository, name: str) -> HabitEntity:
    """
    Create a habit named `name` with no completed days.

    Raises:
        DuplicateNameError if the name is taken. The lookup below covers the common
        case; concurrent creates are caught by the repository's atomic insert.
    """
    if repo.find_by_name(name) is not None:
        raise DuplicateNameError(name)
    created = repo.insert(name)
    logger.info(f"Created habit {created['id']} ({name!r})")
    return created


# PUBLIC_INTERFACE
def list_habits(repo: HabitRepository) -> List[HabitEntity]:
    """Return all habits ordered by name."""
    return repo.list_all()


# PUBLIC_INTERFACE
def get_habit(repo: HabitRepository, habit_id: int) -> HabitEntity:
    habit = repo.find_by_id(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


# PUBLIC_INTERFACE
def remove_habit(repo: HabitRepository, habit_id: int) -> None:
    """Delete a habit permanently. Raises HabitNotFoundError if it does not exist."""
    if not repo.delete_by_id(habit_id):
        raise HabitNotFoundError(habit_id)
    logger.info(f"Deleted habit {habit_id}")


# PUBLIC_INTERFACE
def toggle_habit(
    repo: HabitRepository,
    habit_id: int,
    reference_instant: datetime,
    tz: tzinfo,
) -> HabitEntity:
    """
    Flip whether the habit is done on the day `reference_instant` falls on in `tz`.

    Exactly one of add/remove runs per call, so two toggles on the same calendar day
    cancel out whatever their time of day. The membership check and the flip happen
    inside the repository as one atomic step, so concurrent toggles are never lost.

    Raises:
        HabitNotFoundError if the habit does not exist.
    """
    day_key = normalize_day(reference_instant, tz)
    updated = repo.toggle_completed_day(habit_id, day_key)
    if updated is None:
        raise HabitNotFoundError(habit_id)

    action = "done" if day_key in updated["completed_days"] else "undone"
    logger.info(f"Habit {habit_id} marked {action} for {day_key}")
    return updated


# PUBLIC_INTERFACE
def record_focus_time(
    repo: FocusTimeRepository, time_from: datetime, time_to: datetime
) -> FocusTimeEntity:
    """
    Persist a focus-time interval as given.

    Raises:
        InvalidIntervalError if time_to is strictly before time_from. Equal instants are allowed.
    """
    if time_to < time_from:
        raise InvalidIntervalError()
    created = repo.create(time_from, time_to)
    logger.info(f"Recorded focus time {created['id']} ({time_from.isoformat()} -> {time_to.isoformat()})")
    return created


# PUBLIC_INTERFACE
def get_focus_time(repo: FocusTimeRepository, focus_time_id: int) -> FocusTimeEntity:
    item = repo.get(focus_time_id)
    if item is None:
        raise FocusTimeNotFoundError(focus_time_id)
    return item


# PUBLIC_INTERFACE
def list_focus_times(
    repo: FocusTimeRepository, query: Optional[ListQuery] = None
) -> Tuple[List[FocusTimeEntity], int]:
    return repo.list(query)
