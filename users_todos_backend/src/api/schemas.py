from __future__ import annotations

from datetime import date, datetime
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Bounds of a PostgreSQL INTEGER / SERIAL column
INT4_MAX = 2_147_483_647
INT4_MIN = -INT4_MAX - 1

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]

T = TypeVar("T")


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Internal helper to normalize due_date input into a calendar date.
    - If value is a string, accept an ISO date or an ISO datetime (the time part is dropped).
    - If value is a datetime, keep its date part.
    - If value is a date, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


def _require_text(value: str, field: str, max_length: int) -> str:
    s = value.strip()
    if not (1 <= len(s) <= max_length):
        raise ValueError(f"{field} length must be between 1 and {max_length} characters")
    return s


class _UserIdentity(BaseModel):
    """
    Fields every user write must carry. The capitalized `Name`/`Email` keys sent by
    older clients are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        ...,
        validation_alias=AliasChoices("name", "Name"),
        description="Display name of the user",
        min_length=1,
        max_length=100,
    )
    email: str = Field(
        ...,
        validation_alias=AliasChoices("email", "Email"),
        description="Email address; must be unique across users",
        min_length=1,
        max_length=100,
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip whitespace and enforce 1..100 length."""
        return _require_text(v, "name", 100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Strip whitespace and enforce 1..100 length."""
        return _require_text(v, "email", 100)


# PUBLIC_INTERFACE
class UserCreate(_UserIdentity):
    """
    Schema for creating a new user.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Ana",
                "email": "ana@x.com",
                "age": 31,
                "phone": "+34600111222",
                "address": "Calle Mayor 1, Madrid",
            }
        },
    )

    age: Optional[int] = Field(default=None, ge=0, le=INT4_MAX, description="Optional age in years")
    phone: Optional[str] = Field(default=None, max_length=15, description="Optional phone number")
    address: Optional[str] = Field(default=None, description="Optional postal address")


# PUBLIC_INTERFACE
class UserUpdate(_UserIdentity):
    """
    Schema for updating a user. Both `name` and `email` are overwritten, so both are required.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"name": "Ana Maria", "email": "ana.maria@x.com"}},
    )


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """
    Schema returned by the API for a user row.
    """

    id: int = Field(..., description="Unique identifier of the user")
    name: str = Field(..., description="Display name of the user")
    email: str = Field(..., description="Email address of the user")
    age: Optional[int] = Field(default=None, description="Age in years")
    phone: Optional[str] = Field(default=None, description="Phone number")
    address: Optional[str] = Field(default=None, description="Postal address")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a todo. Also used by PUT, which replaces every mutable field.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": 1,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "due_date": "2025-02-01",
            }
        }
    )

    user_id: Optional[int] = Field(default=None, ge=INT4_MIN, le=INT4_MAX, description="Owning user id")
    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(default=False, description="Completion status flag")
    due_date: Optional[date] = Field(
        default=None,
        description="Due date of the todo item. Accepts an ISO8601 date or datetime; the time part is dropped",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _require_text(v, "title", 200)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        """
        Normalize due_date from str/date/datetime to date.
        """
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a todo row.
    """

    id: int = Field(..., description="Unique identifier of the todo item")
    user_id: Optional[int] = Field(default=None, description="Owning user id")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    due_date: Optional[date] = Field(default=None, description="Due date as an ISO8601 date")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class Envelope(BaseModel, Generic[T]):
    """
    Uniform response body shared by every JSON endpoint.
    """

    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Operation payload, when any")
    details: Optional[Any] = Field(default=None, description="Extra error information, when any")
