from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..days import get_day_timezone
from ..repositories import HabitRepository, get_habit_repository
from ..schemas import HabitCreate, HabitOut, parse_instant
from .. import services

router = APIRouter(
    prefix="/api/v1/habits",
    tags=["habits"],
)


def _get_repo(repo: HabitRepository = Depends(get_habit_repository)) -> HabitRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=HabitOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Habit",
    description="Create a new habit with no completed days. Names are unique.",
    responses={
        201: {"description": "Habit created successfully"},
        409: {"description": "A habit with this name already exists"},
        422: {"description": "Validation error"},
    },
)
def create_habit(payload: HabitCreate, repo: HabitRepository = Depends(_get_repo)) -> HabitOut:
    """
    Create a new habit.
    """
    created = services.create_habit(repo, payload.name)
    return HabitOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[HabitOut],
    summary="List Habits",
    description="List all habits sorted by name ascending.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_habits(repo: HabitRepository = Depends(_get_repo)) -> List[HabitOut]:
    return [HabitOut(**h) for h in services.list_habits(repo)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{habit_id}",
    response_model=HabitOut,
    summary="Get Habit",
    description="Get a single habit by ID.",
    responses={
        200: {"description": "Habit found"},
        404: {"description": "Habit not found"},
    },
)
def get_habit(habit_id: int, repo: HabitRepository = Depends(_get_repo)) -> HabitOut:
    return HabitOut(**services.get_habit(repo, habit_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Habit",
    description="Delete a habit and its completion history permanently.",
    responses={
        204: {"description": "Habit deleted"},
        404: {"description": "Habit not found"},
    },
)
def delete_habit(habit_id: int, repo: HabitRepository = Depends(_get_repo)) -> None:
    """
    Delete a habit. Returns 204 on success, 404 if not found.
    """
    services.remove_habit(repo, habit_id)
    return None


# PUBLIC_INTERFACE
@router.patch(
    "/{habit_id}/toggle",
    response_model=HabitOut,
    summary="Toggle Habit",
    description=(
        "Mark the habit done for a day, or undo it if it was already done.\n\n"
        "Query parameters:\n"
        "- at: ISO8601 instant or date selecting the day (defaults to now). "
        "The day is taken in the server's DAY_TIMEZONE."
    ),
    responses={
        200: {"description": "Habit toggled"},
        404: {"description": "Habit not found"},
        422: {"description": "Invalid 'at' value"},
    },
)
def toggle_habit(
    habit_id: int,
    at: Optional[str] = Query(None, description="Instant or date to toggle; defaults to now"),
    repo: HabitRepository = Depends(_get_repo),
    tz: tzinfo = Depends(get_day_timezone),
) -> HabitOut:
    """
    Toggle today's (or the given day's) completion of a habit.
    """
    if at is None:
        reference = datetime.now(timezone.utc)
    else:
        try:
            reference = parse_instant(at)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
    updated = services.toggle_habit(repo, habit_id, reference, tz)
    return HabitOut(**updated)  # type: ignore[arg-type]
