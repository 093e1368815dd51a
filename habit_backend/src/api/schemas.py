from __future__ import annotations

from datetime import date, datetime
from typing import List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

# Shared type for incoming instants which can be a date, datetime, or ISO8601 string
InstantInput = Union[date, datetime, str]


# PUBLIC_INTERFACE
def parse_instant(value: InstantInput) -> datetime:
    """
    Normalize instant input into a datetime (naive allowed).
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - If value is a datetime, return as-is.
    """
    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        # fromisoformat only learned the 'Z' suffix in Python 3.11
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid instant format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for instant; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
class HabitCreate(BaseModel):
    """
    Schema for creating a new habit.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Meditate"}})

    name: str = Field(..., description="Unique habit name", min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= 200):
            raise ValueError("name length must be between 1 and 200 characters")
        return s


# PUBLIC_INTERFACE
class HabitOut(BaseModel):
    """
    Schema returned by the API for a habit.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Meditate",
                "completed_days": ["2024-03-05T00:00:00Z"],
                "created_at": "2024-03-01T10:15:30.123456Z",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the habit")
    name: str = Field(..., description="Habit name")
    completed_days: List[datetime] = Field(
        default_factory=list,
        description="Start-of-day instants of the days the habit was completed, ascending",
    )
    created_at: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class FocusTimeCreate(BaseModel):
    """
    Schema for recording a focus-time interval. Accepts snake_case or camelCase keys.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "time_from": "2024-03-05T09:00:00Z",
                "time_to": "2024-03-05T09:25:00Z",
            }
        }
    )

    time_from: datetime = Field(
        ...,
        validation_alias=AliasChoices("time_from", "timeFrom"),
        description="Start of the interval. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    time_to: datetime = Field(
        ...,
        validation_alias=AliasChoices("time_to", "timeTo"),
        description="End of the interval; must not be before time_from",
    )

    @field_validator("time_from", "time_to", mode="before")
    @classmethod
    def parse_times(cls, v: InstantInput) -> datetime:
        """
        Normalize time_from/time_to from str/date/datetime to datetime.
        """
        return parse_instant(v)

    @model_validator(mode="after")
    def check_comparable(self) -> "FocusTimeCreate":
        """
        Both instants must carry a UTC offset, or neither; ordering is checked by the recorder.
        """
        if (self.time_from.tzinfo is None) != (self.time_to.tzinfo is None):
            raise ValueError("time_from and time_to must both include a UTC offset or both omit it")
        return self


# PUBLIC_INTERFACE
class FocusTimeOut(BaseModel):
    """
    Schema returned by the API for a focus-time interval.
    """

    id: int = Field(..., description="Unique identifier of the interval")
    time_from: datetime = Field(..., description="Start of the interval, as recorded")
    time_to: datetime = Field(..., description="End of the interval, as recorded")
    created_at: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated focus-time list responses.
    """
    items: List[FocusTimeOut] = Field(..., description="List of focus-time intervals")
    total: int = Field(..., description="Total number of recorded intervals")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")
