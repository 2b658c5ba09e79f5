from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Closed set of priority levels for a Todo."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_VALUES = [p.value for p in Priority]


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo record as stored by the
    repository backends.

    Fields:
    - id: Opaque store-generated identifier (uuid4 hex), never reused
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - completed: Boolean completion flag
    - priority: One of low/medium/high/urgent
    - due_date: Optional due datetime (timezone-aware, UTC)
    - assignee: Optional free-text assignee
    - created_at: UTC creation timestamp
    - updated_at: UTC last update timestamp
    """

    id: str
    title: str
    completed: bool
    priority: Priority
    due_date: Optional[datetime]
    assignee: Optional[str]
    created_at: datetime
    updated_at: datetime
