from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority

# Shared type for incoming dueDate which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Internal helper to normalize dueDate input into a UTC-aware datetime.
    - None or a blank string means "no due date".
    - Strings are parsed as ISO8601; a trailing 'Z' is accepted, naive values are
      taken as UTC and bare dates are promoted to midnight UTC.
    - A date (not datetime) becomes midnight UTC of that day.
    - A datetime is converted to UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s[-1] in "Zz":
            s = s[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(s))
        except ValueError as e:
            raise ValueError(
                "Invalid dueDate format. Use ISO8601 date or datetime string "
                "(e.g., '2025-10-15' or '2025-10-15T18:00:00Z')."
            ) from e

    raise ValueError("Invalid type for dueDate; expected date, datetime, or ISO8601 string.")


def _clean_title(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("Title cannot be empty")
    if len(s) > 200:
        raise ValueError("title length must be between 1 and 200 characters")
    return s


def _clean_assignee(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = v.strip()
    return s or None


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item. Also the parameter struct of the
    create_todo tool.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Study for upcoming quiz",
                "priority": "high",
                "dueDate": "2025-10-15T18:00:00Z",
                "assignee": "Student",
            }
        },
    )

    title: str = Field(..., description="The title of the todo item")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority level of the todo (default: medium)")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date in ISO 8601 format (e.g., 2025-10-15T10:00:00Z)",
    )
    assignee: Optional[str] = Field(default=None, description="Person assigned to this todo")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: object) -> object:
        # An explicit null on create means "use the default"
        return Priority.MEDIUM if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        """
        Normalize dueDate from str/date/datetime to datetime.
        """
        return _parse_due_date(v)

    @field_validator("assignee")
    @classmethod
    def validate_assignee(cls, v: Optional[str]) -> Optional[str]:
        return _clean_assignee(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated. An explicit
    null clears dueDate/assignee and is rejected for title, completed and priority.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "completed": True,
                "priority": "urgent",
                "dueDate": None,
            }
        },
    )

    title: Optional[str] = Field(default=None, description="The new title of the todo item")
    completed: Optional[bool] = Field(default=None, description="The completion status of the todo item")
    priority: Optional[Priority] = Field(default=None, description="Priority level of the todo")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date in ISO 8601 format; null clears it",
    )
    assignee: Optional[str] = Field(default=None, description="Person assigned to this todo; null clears it")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Title cannot be empty")
        return _clean_title(v)

    @field_validator("completed", "priority")
    @classmethod
    def reject_null(cls, v: object, info: ValidationInfo) -> object:
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return _parse_due_date(v)

    @field_validator("assignee")
    @classmethod
    def validate_assignee(cls, v: Optional[str]) -> Optional[str]:
        return _clean_assignee(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned for a Todo item. Field order is the canonical serialization
    order used by every transport.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "5f2b7c0e9d1a4c3b8e6f0a1b2c3d4e5f",
                "title": "Study for upcoming quiz",
                "completed": False,
                "priority": "high",
                "dueDate": "2025-10-15T18:00:00Z",
                "assignee": "Student",
                "createdAt": "2025-10-10T09:15:30.123456Z",
                "updatedAt": "2025-10-10T09:15:30.123456Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    completed: bool = Field(..., description="Completion status flag")
    priority: Priority = Field(..., description="Priority level")
    due_date: Optional[datetime] = Field(default=None, description="Due date/time as an ISO8601 datetime")
    assignee: Optional[str] = Field(default=None, description="Person assigned to this todo")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class DeleteResponse(BaseModel):
    """Confirmation returned after a delete, carrying the removed record."""

    message: str = Field(default="Todo deleted successfully")
    todo: TodoOut


# Tool parameter structs (one per catalog operation)


class NoParams(BaseModel):
    """Parameters of tools that take no arguments."""


class TodoIdParams(BaseModel):
    """Parameters of tools addressing a single todo by id."""

    id: str = Field(..., min_length=1, description="The ID of the todo item")


class UpdateTodoParams(TodoUpdate):
    """Parameters of the update_todo tool: an id plus any TodoUpdate fields."""

    id: str = Field(..., min_length=1, description="The ID of the todo item")
