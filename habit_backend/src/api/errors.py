"""
Typed errors raised by the habit and focus-time services.

Each error carries a stable code and the HTTP status the API maps it to; the
global handler in main.py turns any HabitTrackerError into a JSON response.
"""
from __future__ import annotations

from typing import Any, Dict


class HabitTrackerError(Exception):
    """Base class for all domain and storage errors."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


# PUBLIC_INTERFACE
class DuplicateNameError(HabitTrackerError):
    """A habit with the same name already exists."""

    code = "DUPLICATE_NAME"
    http_status = 409

    def __init__(self, name: str) -> None:
        super().__init__(f"Habit '{name}' already exists")
        self.name = name


# PUBLIC_INTERFACE
class NotFoundError(HabitTrackerError):
    """Requested resource does not exist."""

    code = "NOT_FOUND"
    http_status = 404
    resource = "Resource"

    def __init__(self, resource_id: int) -> None:
        super().__init__(f"{self.resource} not found")
        self.resource_id = resource_id


class HabitNotFoundError(NotFoundError):
    resource = "Habit"


class FocusTimeNotFoundError(NotFoundError):
    resource = "Focus time"


# PUBLIC_INTERFACE
class InvalidIntervalError(HabitTrackerError):
    """time_to lies strictly before time_from."""

    code = "INVALID_INTERVAL"
    http_status = 400

    def __init__(self) -> None:
        super().__init__("time_to cannot be before time_from")


# PUBLIC_INTERFACE
class StorageError(HabitTrackerError):
    """The persistence backend failed. Not retried and not classified further."""

    code = "STORAGE_ERROR"
    http_status = 500
