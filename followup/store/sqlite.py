from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from followup.store.migrations import apply_schema


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


class SqliteSession:
    """One connection, one transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute(self, query: str, params: Iterable[Any] | None = None) -> int:
        cur = self._conn.execute(query, list(params or []))
        return cur.rowcount

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        cur = self._conn.execute(query, list(params or []))
        return cur.fetchall()

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        cur = self._conn.execute(query, list(params or []))
        return cur.fetchone()

    def insert(self, table: str, values: dict[str, Any]) -> None:
        columns = list(values)
        query = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({_placeholders(columns)})"
        )
        self.execute(query, [values[c] for c in columns])

    def update(self, table: str, id_field: str, record_id: str, values: dict[str, Any]) -> int:
        assignments = ", ".join(f"{column} = ?" for column in values)
        query = f"UPDATE {table} SET {assignments} WHERE {id_field} = ?"
        return self.execute(query, [*values.values(), record_id])


class SqliteStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[SqliteSession]:
        with self.connect() as conn:
            yield SqliteSession(conn)

    def apply_schema(self, schema_path: Path) -> None:
        with self.connect() as conn:
            apply_schema(conn, schema_path)

    def execute(self, query: str, params: Iterable[Any] | None = None) -> int:
        with self.session() as session:
            return session.execute(query, params)

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        with self.session() as session:
            return session.fetch_all(query, params)

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        with self.session() as session:
            return session.fetch_one(query, params)

    def fetch_in(
        self, query_prefix: str, column: str, values: Sequence[Any], suffix: str = ""
    ) -> list[sqlite3.Row]:
        """Run ``query_prefix WHERE column IN (...) suffix``; empty ``values`` matches nothing."""
        if not values:
            return []
        query = f"{query_prefix} WHERE {column} IN ({_placeholders(values)}) {suffix}".rstrip()
        return self.fetch_all(query, values)
