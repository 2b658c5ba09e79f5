from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Mapping, Optional

from .errors import StorageError
from .logging import get_logger
from .models import Priority, TodoEntity
from .repositories import WRITABLE_FIELDS, Repository, new_todo_id, utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    completed: str = "completed"
    priority: str = "priority"
    due_date: str = "due_date"
    assignee: str = "assignee"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    Records are keyed by an opaque text id generated on insert.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open todo store at {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("sqlite operation failed: %s", exc)
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.priority} TEXT NOT NULL DEFAULT 'medium',
                    {_COLS.due_date} TEXT NULL,
                    {_COLS.assignee} TEXT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        def parse_dt(s: Optional[str]) -> Optional[datetime]:
            if s is None:
                return None
            return datetime.fromisoformat(s)

        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "completed": bool(row[_COLS.completed]),
            "priority": Priority(row[_COLS.priority]),
            "due_date": parse_dt(row[_COLS.due_date]),
            "assignee": row[_COLS.assignee],
            "created_at": parse_dt(row[_COLS.created_at]),  # type: ignore
            "updated_at": parse_dt(row[_COLS.updated_at]),  # type: ignore
        }  # type: ignore

    @staticmethod
    def _to_column(key: str, value: Any) -> Any:
        if value is None:
            return None
        if key == "completed":
            return 1 if value else 0
        if key == "priority":
            return Priority(value).value
        if key == "due_date":
            return value.isoformat()
        return value

    def _select(self, conn: sqlite3.Connection, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()

    def insert(self, fields: Mapping[str, Any]) -> TodoEntity:
        now = utcnow().isoformat()
        new_id = new_todo_id()
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.completed}, {_COLS.priority},
                    {_COLS.due_date}, {_COLS.assignee}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    fields["title"],
                    self._to_column("completed", fields.get("completed", False)),
                    self._to_column("priority", fields["priority"]),
                    self._to_column("due_date", fields.get("due_date")),
                    fields.get("assignee"),
                    now,
                    now,
                ),
            )
            row = self._select(conn, new_id)
            assert row is not None
            return self._row_to_entity(row)

    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select(conn, todo_id)
            return self._row_to_entity(row) if row else None

    def find_all(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.created_at} DESC, rowid DESC"
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def update_partial(self, todo_id: str, fields: Mapping[str, Any]) -> Optional[TodoEntity]:
        assignments = [f"{key} = ?" for key in WRITABLE_FIELDS if key in fields]
        params = [self._to_column(key, fields[key]) for key in WRITABLE_FIELDS if key in fields]
        assignments.append(f"{_COLS.updated_at} = ?")
        params.append(utcnow().isoformat())

        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {', '.join(assignments)} WHERE {_COLS.id} = ?",
                [*params, todo_id],
            )
            if cur.rowcount == 0:
                return None
            row = self._select(conn, todo_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select(conn, todo_id)
            if row is None:
                return None
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            return self._row_to_entity(row)
