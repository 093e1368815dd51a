from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..repositories import FocusTimeRepository, ListQuery, get_focus_time_repository
from ..schemas import FocusTimeCreate, FocusTimeOut, PaginationEnvelope
from .. import services

router = APIRouter(
    prefix="/api/v1/focus-times",
    tags=["focus-times"],
)


def _get_repo(
    repo: FocusTimeRepository = Depends(get_focus_time_repository),
) -> FocusTimeRepository:
    return repo


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=FocusTimeOut,
    status_code=status.HTTP_201_CREATED,
    summary="Record Focus Time",
    description="Record a focus-time interval. time_to may equal but not precede time_from.",
    responses={
        201: {"description": "Focus time recorded"},
        400: {"description": "time_to is before time_from"},
        422: {"description": "Validation error"},
    },
)
def record_focus_time(
    payload: FocusTimeCreate, repo: FocusTimeRepository = Depends(_get_repo)
) -> FocusTimeOut:
    """
    Record a new focus-time interval.
    """
    created = services.record_focus_time(repo, payload.time_from, payload.time_to)
    return FocusTimeOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="List Focus Times",
    description=(
        "List recorded focus-time intervals.\n\n"
        "Query parameters:\n"
        "- limit: max number of items to return (0..1000)\n"
        "- offset: number of items to skip (>=0)\n"
        "- order: 'asc' or 'desc' by time_from (default desc)"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_focus_times(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    order: Optional[str] = Query(None, description="Sort direction by time_from: 'asc' or 'desc'"),
    repo: FocusTimeRepository = Depends(_get_repo),
) -> PaginationEnvelope:
    ord_norm = (order or "desc").strip().lower()
    if ord_norm not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="order must be 'asc' or 'desc'")

    query = ListQuery(
        limit=limit,
        offset=offset,
        sort="-time_from" if ord_norm == "desc" else "time_from",
    )
    items, total = services.list_focus_times(repo, query)
    return PaginationEnvelope(
        items=[FocusTimeOut(**it) for it in items],  # type: ignore[arg-type]
        total=total,
        limit=limit,
        offset=offset,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{focus_time_id}",
    response_model=FocusTimeOut,
    summary="Get Focus Time",
    description="Get a single focus-time interval by ID.",
    responses={
        200: {"description": "Focus time found"},
        404: {"description": "Focus time not found"},
    },
)
def get_focus_time(
    focus_time_id: int, repo: FocusTimeRepository = Depends(_get_repo)
) -> FocusTimeOut:
    return FocusTimeOut(**services.get_focus_time(repo, focus_time_id))  # type: ignore[arg-type]
