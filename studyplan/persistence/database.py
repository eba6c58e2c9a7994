"""
SQLite storage for backend records.

Every record lives in one ``entities`` table keyed by (id, type). ``data``
holds the backend-shaped record as JSON; the lifecycle columns mirror
``AbstractEntity`` so they survive a round trip without touching the record.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS entities (
        id TEXT NOT NULL,
        type TEXT NOT NULL,
        data TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        PRIMARY KEY (id, type)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_entities_type_created ON entities (type, created_at)",
)

Statement = Tuple[str, Sequence[Any]]


class DatabaseManager(ABC):
    """Minimal SQL surface the repositories need."""

    @abstractmethod
    def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a SELECT and return rows as dictionaries."""
        pass

    @abstractmethod
    def execute(self, query: str, params: Sequence[Any] = ()) -> int:
        """Run one write statement and return the affected row count."""
        pass

    @abstractmethod
    def execute_many(self, statements: Iterable[Statement]) -> int:
        """Run several write statements atomically; returns total affected rows."""
        pass


class SQLiteDatabase(DatabaseManager):
    """DatabaseManager over a SQLite file.

    A fresh connection is opened per call and calls are serialized on one
    lock, so a single instance can be shared across request threads.
    """

    def __init__(self, database_path: str = "studyplan.db"):
        self._database_path = database_path
        self._lock = threading.RLock()
        self._migrate()

    @property
    def database_path(self) -> str:
        return self._database_path

    @property
    def schema_version(self) -> int:
        with self._lock, self._connect() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def _migrate(self) -> None:
        with self._lock, self._connect() as conn:
            current = conn.execute("PRAGMA user_version").fetchone()[0]
            if current > SCHEMA_VERSION:
                raise PersistenceError(
                    f"Database {self._database_path} has schema version {current}, "
                    f"this release supports up to {SCHEMA_VERSION}"
                )
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
        logger.debug("SQLite database ready at %s (schema %d)", self._database_path, SCHEMA_VERSION)

    @contextmanager
    def _connect(self):
        conn = None
        try:
            conn = sqlite3.connect(self._database_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn is not None:
                conn.rollback()
            logger.error("SQLite error on %s: %s", self._database_path, e)
            raise PersistenceError(f"Database error: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self._lock, self._connect() as conn:
            return [dict(row) for row in conn.execute(query, tuple(params))]

    def execute(self, query: str, params: Sequence[Any] = ()) -> int:
        return self.execute_many([(query, params)])

    def execute_many(self, statements: Iterable[Statement]) -> int:
        affected = 0
        with self._lock, self._connect() as conn:
            for query, params in statements:
                affected += conn.execute(query, tuple(params)).rowcount
            conn.commit()
        return affected
