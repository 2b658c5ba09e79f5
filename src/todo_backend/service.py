"""
Record lifecycle service.

Single home of the todo business rules (defaults, trimming, priority and due
date validation, partial-update semantics). The REST routes, the dispatch
bridge and the chat agent all go through one TodoService instance.
"""

from __future__ import annotations

import locale
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .errors import TodoValidationError, from_pydantic
from .logging import get_logger
from .models import TodoEntity
from .repositories import Repository, get_repository
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings

logger = get_logger(__name__)

_ZONEINFO_MARKER = "zoneinfo/"
_LOCALTIME_PATH = "/etc/localtime"
_TIMEZONE_FILE = "/etc/timezone"


def _local_timezone_name() -> str:
    """
    Best-effort IANA name of the process time zone.

    Checked in order: TZ, the /etc/localtime symlink target, /etc/timezone.
    When none of these names a zone the C library abbreviation (e.g. CET) is
    returned, and a UTC clock is reported as "UTC".
    """
    tz = os.environ.get("TZ", "").lstrip(":")
    if tz:
        return tz
    target = os.path.realpath(_LOCALTIME_PATH)
    if _ZONEINFO_MARKER in target:
        return target.split(_ZONEINFO_MARKER, 1)[1]
    try:
        with open(_TIMEZONE_FILE, encoding="utf-8") as fh:
            name = fh.read().strip()
    except OSError:
        name = ""
    if name:
        return name
    abbreviation = time.tzname[0]
    if not abbreviation or abbreviation in ("UTC", "GMT"):
        return "UTC"
    return abbreviation


# PUBLIC_INTERFACE
def use_system_time_locale() -> None:
    """
    Render "%c" in the user's locale (LANG/LC_ALL/LC_TIME) instead of C.
    Called once by the console entry points; an unknown locale keeps C.
    """
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as exc:
        logger.warning("Cannot apply system time locale, using C: %s", exc)


# PUBLIC_INTERFACE
class TodoService:
    """Create, read, update and delete todos on top of a Repository."""

    def __init__(self, repository: Repository) -> None:
        self._repository = repository

    @property
    def repository(self) -> Repository:
        return self._repository

    def create_todo(
        self,
        title: Optional[str] = None,
        priority: Optional[str] = None,
        due_date: Any = None,
        assignee: Optional[str] = None,
    ) -> TodoEntity:
        """
        Validate and persist a new todo.

        title is required; priority defaults to medium; due_date may be an
        ISO8601 string, date or datetime.

        Raises:
            TodoValidationError: when any field is missing or malformed. Nothing
            is persisted in that case.
        """
        if title is None:
            raise TodoValidationError("Title is required")
        raw: Dict[str, Any] = {"title": title}
        if priority is not None:
            raw["priority"] = priority
        if due_date is not None:
            raw["due_date"] = due_date
        if assignee is not None:
            raw["assignee"] = assignee
        try:
            data = TodoCreate.model_validate(raw)
        except ValidationError as exc:
            raise from_pydantic(exc) from exc

        todo = self._repository.insert(data.model_dump())
        logger.debug("Created todo %s", todo["id"])
        return todo

    def get_all_todos(self) -> List[TodoEntity]:
        """Return every todo, newest first."""
        return self._repository.find_all()

    def get_todo_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        """Return the todo, or None when no record has this id."""
        return self._repository.find_by_id(todo_id)

    def update_todo(self, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        """
        Apply a partial update.

        Only keys present in ``changes`` are written (camelCase or snake_case
        keys are both accepted). An explicit None clears dueDate/assignee. An
        empty mapping changes nothing but still refreshes updatedAt.

        Returns:
            The updated todo, or None when no record has this id.

        Raises:
            TodoValidationError: when a supplied field is malformed.
        """
        try:
            data = TodoUpdate.model_validate(dict(changes))
        except ValidationError as exc:
            raise from_pydantic(exc) from exc

        fields = {key: getattr(data, key) for key in data.model_fields_set}
        todo = self._repository.update_partial(todo_id, fields)
        if todo is not None:
            logger.debug("Updated todo %s fields=%s", todo_id, sorted(fields))
        return todo

    def delete_todo(self, todo_id: str) -> Optional[TodoEntity]:
        """Delete the todo and return its last state, or None when absent."""
        todo = self._repository.delete_by_id(todo_id)
        if todo is not None:
            logger.debug("Deleted todo %s", todo_id)
        return todo

    def get_current_datetime(self) -> Dict[str, Any]:
        """
        Describe the current instant for scheduling:
        ISO-8601 UTC string, epoch milliseconds, IANA zone name and a
        locale-rendered local time.
        """
        now = datetime.now(timezone.utc)
        return {
            "datetime": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "timestamp": int(now.timestamp() * 1000),
            "timezone": _local_timezone_name(),
            "formatted": now.astimezone().strftime("%c"),
        }


# PUBLIC_INTERFACE
def build_service(settings: Optional[Settings] = None) -> TodoService:
    """Open the configured store and wrap it in a TodoService."""
    return TodoService(get_repository(settings))


__all__ = ["TodoService", "TodoValidationError", "build_service", "use_system_time_locale"]
