from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generator, List, Optional, Tuple

from .errors import DuplicateNameError, StorageError
from .models import FocusTimeEntity, HabitEntity
from .repositories import FocusTimeRepository, HabitRepository, ListQuery, sort_direction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _HabitCols:
    table: str = "habits"
    id: str = "id"
    name: str = "name"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _DayCols:
    table: str = "habit_completed_days"
    habit_id: str = "habit_id"
    day_key: str = "day_key"


@dataclass(frozen=True)
class _FocusCols:
    table: str = "focus_times"
    id: str = "id"
    time_from: str = "time_from"
    time_to: str = "time_to"
    created_at: str = "created_at"


_HABITS = _HabitCols()
_DAYS = _DayCols()
_FOCUS = _FocusCols()


@contextmanager
def _connect(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """
    Open a connection for a single operation: commit on success, roll back and
    raise StorageError on any sqlite failure, always close.
    """
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as exc:
        raise StorageError(f"Cannot open database: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        logger.error(f"SQLite operation failed on {db_path}: {exc}")
        raise StorageError(f"Storage operation failed: {exc}") from exc
    finally:
        conn.close()


def _init_db(db_path: str) -> None:
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    with _connect(db_path) as conn:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_HABITS.table} (
                {_HABITS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                {_HABITS.name} TEXT NOT NULL UNIQUE,
                {_HABITS.created_at} TEXT NOT NULL
            )
            """
        )
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_DAYS.table} (
                {_DAYS.habit_id} INTEGER NOT NULL
                    REFERENCES {_HABITS.table}({_HABITS.id}) ON DELETE CASCADE,
                {_DAYS.day_key} TEXT NOT NULL,
                PRIMARY KEY ({_DAYS.habit_id}, {_DAYS.day_key})
            )
            """
        )
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_FOCUS.table} (
                {_FOCUS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                {_FOCUS.time_from} TEXT NOT NULL,
                {_FOCUS.time_to} TEXT NOT NULL,
                {_FOCUS.created_at} TEXT NOT NULL
            )
            """
        )
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{_FOCUS.table}_time_from ON {_FOCUS.table}({_FOCUS.time_from})"
        )


class SQLiteHabitRepository(HabitRepository):
    """
    SQLite habit repository. Name uniqueness is a UNIQUE constraint; completed days
    live in their own table keyed by (habit_id, day_key).
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        _init_db(db_path)

    def _load(self, conn: sqlite3.Connection, habit_id: int) -> Optional[HabitEntity]:
        row = conn.execute(
            f"SELECT * FROM {_HABITS.table} WHERE {_HABITS.id} = ?", (habit_id,)
        ).fetchone()
        if row is None:
            return None
        days = conn.execute(
            f"""
            SELECT {_DAYS.day_key} FROM {_DAYS.table}
            WHERE {_DAYS.habit_id} = ?
            ORDER BY {_DAYS.day_key}
            """,
            (habit_id,),
        ).fetchall()
        return {
            "id": int(row[_HABITS.id]),
            "name": str(row[_HABITS.name]),
            "completed_days": [str(d[_DAYS.day_key]) for d in days],
            "created_at": datetime.fromisoformat(row[_HABITS.created_at]),
        }

    def find_by_name(self, name: str) -> Optional[HabitEntity]:
        with _connect(self._db_path) as conn:
            row = conn.execute(
                f"SELECT {_HABITS.id} FROM {_HABITS.table} WHERE {_HABITS.name} = ?", (name,)
            ).fetchone()
            return self._load(conn, int(row[_HABITS.id])) if row else None

    def find_by_id(self, habit_id: int) -> Optional[HabitEntity]:
        with _connect(self._db_path) as conn:
            return self._load(conn, habit_id)

    def insert(self, name: str) -> HabitEntity:
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self._db_path) as conn:
            try:
                cur = conn.execute(
                    f"INSERT INTO {_HABITS.table} ({_HABITS.name}, {_HABITS.created_at}) VALUES (?, ?)",
                    (name, now),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateNameError(name) from exc
            created = self._load(conn, int(cur.lastrowid))
            if created is None:
                raise StorageError(f"Habit '{name}' missing right after insert")
            return created

    def delete_by_id(self, habit_id: int) -> bool:
        with _connect(self._db_path) as conn:
            conn.execute(f"DELETE FROM {_DAYS.table} WHERE {_DAYS.habit_id} = ?", (habit_id,))
            cur = conn.execute(f"DELETE FROM {_HABITS.table} WHERE {_HABITS.id} = ?", (habit_id,))
            return cur.rowcount > 0

    def list_all(self) -> List[HabitEntity]:
        with _connect(self._db_path) as conn:
            rows = conn.execute(
                f"SELECT {_HABITS.id} FROM {_HABITS.table} ORDER BY {_HABITS.name} ASC, {_HABITS.id} ASC"
            ).fetchall()
            habits = [self._load(conn, int(r[_HABITS.id])) for r in rows]
            return [h for h in habits if h is not None]

    def _insert_day(self, conn: sqlite3.Connection, habit_id: int, day_key: str) -> None:
        # Conditional insert: no row is written when the habit does not exist
        conn.execute(
            f"""
            INSERT OR IGNORE INTO {_DAYS.table} ({_DAYS.habit_id}, {_DAYS.day_key})
            SELECT {_HABITS.id}, ? FROM {_HABITS.table} WHERE {_HABITS.id} = ?
            """,
            (day_key, habit_id),
        )

    def _delete_day(self, conn: sqlite3.Connection, habit_id: int, day_key: str) -> int:
        cur = conn.execute(
            f"DELETE FROM {_DAYS.table} WHERE {_DAYS.habit_id} = ? AND {_DAYS.day_key} = ?",
            (habit_id, day_key),
        )
        return cur.rowcount

    def add_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with _connect(self._db_path) as conn:
            self._insert_day(conn, habit_id, day_key)
            return self._load(conn, habit_id)

    def remove_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with _connect(self._db_path) as conn:
            self._delete_day(conn, habit_id, day_key)
            return self._load(conn, habit_id)

    def toggle_completed_day(self, habit_id: int, day_key: str) -> Optional[HabitEntity]:
        with _connect(self._db_path) as conn:
            # Take the write lock up front so concurrent toggles run one after another
            conn.execute("BEGIN IMMEDIATE")
            if self._delete_day(conn, habit_id, day_key) == 0:
                self._insert_day(conn, habit_id, day_key)
            return self._load(conn, habit_id)


class SQLiteFocusTimeRepository(FocusTimeRepository):
    """
    SQLite focus-time repository. Instants are stored as ISO text, exactly as given.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        _init_db(db_path)

    def _row_to_entity(self, row: sqlite3.Row) -> FocusTimeEntity:
        return {
            "id": int(row[_FOCUS.id]),
            "time_from": datetime.fromisoformat(row[_FOCUS.time_from]),
            "time_to": datetime.fromisoformat(row[_FOCUS.time_to]),
            "created_at": datetime.fromisoformat(row[_FOCUS.created_at]),
        }

    def create(self, time_from: datetime, time_to: datetime) -> FocusTimeEntity:
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self._db_path) as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_FOCUS.table} ({_FOCUS.time_from}, {_FOCUS.time_to}, {_FOCUS.created_at})
                VALUES (?, ?, ?)
                """,
                (time_from.isoformat(), time_to.isoformat(), now),
            )
            row = conn.execute(
                f"SELECT * FROM {_FOCUS.table} WHERE {_FOCUS.id} = ?", (cur.lastrowid,)
            ).fetchone()
            if row is None:
                raise StorageError("Focus time missing right after insert")
            return self._row_to_entity(row)

    def get(self, focus_time_id: int) -> Optional[FocusTimeEntity]:
        with _connect(self._db_path) as conn:
            row = conn.execute(
                f"SELECT * FROM {_FOCUS.table} WHERE {_FOCUS.id} = ?", (focus_time_id,)
            ).fetchone()
            return self._row_to_entity(row) if row else None

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[FocusTimeEntity], int]:
        q = query or ListQuery()
        direction = "DESC" if sort_direction(q.sort) else "ASC"
        # julianday() compares instants in UTC whatever offset the text carries
        order_sql = f"ORDER BY julianday({_FOCUS.time_from}) {direction}, {_FOCUS.id} {direction}"

        with _connect(self._db_path) as conn:
            count_row = conn.execute(f"SELECT COUNT(*) as cnt FROM {_FOCUS.table}").fetchone()
            total = int(count_row["cnt"]) if count_row else 0

            rows = conn.execute(
                f"""
                SELECT * FROM {_FOCUS.table}
                {order_sql}
                LIMIT ? OFFSET ?
                """,
                [max(q.limit, 0), max(q.offset, 0)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows], total
