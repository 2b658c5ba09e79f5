from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from .logging import get_logger
from .models import TodoEntity
from .settings import Settings, get_settings

logger = get_logger(__name__)

# Fields callers may write; id and timestamps are owned by the store.
WRITABLE_FIELDS = ("title", "completed", "priority", "due_date", "assignee")


def new_todo_id() -> str:
    """Return a fresh opaque identifier; uuid4 values are never reused."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract store contract for todo records. Every operation is independent,
    single-record and non-transactional. Backend faults surface as StorageError.
    """

    @abstractmethod
    def insert(self, fields: Mapping[str, Any]) -> TodoEntity:
        """Persist a new record from validated writable fields and return it."""

    @abstractmethod
    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a record by id, or None if not found."""

    @abstractmethod
    def find_all(self) -> List[TodoEntity]:
        """Return every record, newest first (created_at descending)."""

    @abstractmethod
    def update_partial(self, todo_id: str, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        """
        Apply only the given fields to an existing record and refresh updated_at.
        Return the updated record, or None if not found.
        """

    @abstractmethod
    def delete_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        """Delete a record and return it as it was, or None if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}

    def _now(self) -> datetime:
        return utcnow()

    def insert(self, fields: Mapping[str, Any]) -> TodoEntity:
        now = self._now()
        entity: TodoEntity = {
            "id": new_todo_id(),
            "title": fields["title"],
            "completed": bool(fields.get("completed", False)),
            "priority": fields["priority"],
            "due_date": fields.get("due_date"),
            "assignee": fields.get("assignee"),
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()  # type: ignore[return-value]

    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def find_all(self) -> List[TodoEntity]:
        with self._lock:
            # sorted() is stable, so same-instant inserts keep reverse insertion order
            items = list(reversed(list(self._items.values())))
            items_sorted = sorted(items, key=lambda t: t["created_at"], reverse=True)
            return [t.copy() for t in items_sorted]  # type: ignore[misc]

    def update_partial(self, todo_id: str, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            for key in WRITABLE_FIELDS:
                if key in fields:
                    updated[key] = fields[key]  # type: ignore[literal-required]
            updated["updated_at"] = self._now()

            self._items[todo_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            return self._items.pop(todo_id, None)


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by the standard library sqlite3 module

    Opening the sqlite store happens here, once, at process start; failures
    propagate so start-up aborts.
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using sqlite store at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory store")
    return InMemoryRepository()
