"""Error types shared by the service, the bridge and the transports."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError


class TodoError(Exception):
    """Base class for todo backend errors."""


class TodoValidationError(TodoError):
    """Raised when caller input is missing or malformed."""

    def __init__(self, message: str, details: Optional[List[Mapping[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])


class StorageError(TodoError):
    """Raised when the persistence layer fails (connectivity, constraint, I/O)."""


# PUBLIC_INTERFACE
def from_pydantic(exc: PydanticValidationError) -> TodoValidationError:
    """
    Convert a pydantic ValidationError into a TodoValidationError whose message
    names each offending field, e.g. "priority: Input should be 'low', ...".
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = str(err.get("msg", "invalid value"))
        # Drop pydantic's "Value error, " prefix from custom validator messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    details = exc.errors(include_url=False, include_context=False, include_input=False)
    return TodoValidationError("; ".join(parts) or "Invalid input", details=details)
