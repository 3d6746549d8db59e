"""
Queue store for the coordinator.

Durable mapping (collection, job_id) -> record text. Backends:
- SqliteQueueStore: one row per entry, SQLite with WAL mode (default)
- DirectoryQueueStore: <root>/<collection>/<job_id> files

The store does NOT contain lifecycle rules and does NOT take the
coordinator lock; callers hold CoordinatorLock around multi-step sequences.
`move` itself is atomic and never overwrites an existing destination.
"""

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from .entities import Collection

logger = logging.getLogger(__name__)


class MoveResult(str, Enum):
    OK = "ok"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"


class QueueStore(ABC):
    """Abstract queue store interface."""

    @abstractmethod
    def exists(self, collection: Collection, job_id: int) -> bool:
        """Check whether `job_id` is present in `collection`."""

    @abstractmethod
    def move(self, source: Collection, target: Collection, job_id: int) -> MoveResult:
        """
        Atomically move a job between collections.

        Returns ALREADY_EXISTS (nothing changed) if `target` already holds
        the id, NOT_FOUND if `source` does not.
        """

    @abstractmethod
    def list_ids(self, collection: Collection) -> set[int]:
        """All job ids in `collection`."""

    @abstractmethod
    def clear(self, collection: Collection) -> int:
        """Delete every entry of `collection`; returns the number removed."""

    @abstractmethod
    def create(self, collection: Collection, job_id: int, record: str) -> bool:
        """Create an entry; returns False if the id already exists there."""

    @abstractmethod
    def read(self, collection: Collection, job_id: int) -> Optional[str]:
        """Record text of an entry, or None if absent."""

    @abstractmethod
    def append(self, collection: Collection, job_id: int, text: str) -> bool:
        """Append to an entry's record; returns False if absent."""

    def locate(self, job_id: int) -> list[Collection]:
        """Collections currently holding `job_id`, in lifecycle order."""
        return [c for c in Collection if self.exists(c, job_id)]


class SqliteQueueStore(QueueStore):
    """
    SQLite-backed queue store.

    The primary key is (collection, job_id), so the schema itself does not
    forbid one id in two collections; the lifecycle detects that case as an
    invariant violation.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS job_entries (
                    collection TEXT NOT NULL,
                    job_id INTEGER NOT NULL,
                    record TEXT NOT NULL DEFAULT '',
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, job_id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_job_entries_job_id
                ON job_entries (job_id)
            """)

    @staticmethod
    def _now() -> str:
        return datetime.utcnow().isoformat() + "Z"

    def exists(self, collection: Collection, job_id: int) -> bool:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM job_entries WHERE collection = ? AND job_id = ?",
                (collection.value, job_id),
            ).fetchone()
        return row is not None

    def move(self, source: Collection, target: Collection, job_id: int) -> MoveResult:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT 1 FROM job_entries WHERE collection = ? AND job_id = ?",
                (target.value, job_id),
            ).fetchone()
            if row is not None:
                return MoveResult.ALREADY_EXISTS

            cursor = conn.execute(
                """
                UPDATE job_entries
                SET collection = ?, updated_at = ?
                WHERE collection = ? AND job_id = ?
                """,
                (target.value, self._now(), source.value, job_id),
            )
            if cursor.rowcount == 0:
                return MoveResult.NOT_FOUND

        return MoveResult.OK

    def list_ids(self, collection: Collection) -> set[int]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT job_id FROM job_entries WHERE collection = ?",
                (collection.value,),
            ).fetchall()
        return {row["job_id"] for row in rows}

    def clear(self, collection: Collection) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM job_entries WHERE collection = ?",
                (collection.value,),
            )
            return cursor.rowcount

    def create(self, collection: Collection, job_id: int, record: str) -> bool:
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO job_entries (collection, job_id, record, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (collection.value, job_id, record, self._now()),
                )
        except sqlite3.IntegrityError:
            return False
        return True

    def read(self, collection: Collection, job_id: int) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT record FROM job_entries WHERE collection = ? AND job_id = ?",
                (collection.value, job_id),
            ).fetchone()
        return row["record"] if row is not None else None

    def append(self, collection: Collection, job_id: int, text: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE job_entries
                SET record = record || ?, updated_at = ?
                WHERE collection = ? AND job_id = ?
                """,
                (text, self._now(), collection.value, job_id),
            )
            return cursor.rowcount > 0

    def locate(self, job_id: int) -> list[Collection]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT collection FROM job_entries WHERE job_id = ?",
                (job_id,),
            ).fetchall()
        found = {Collection(row["collection"]) for row in rows}
        return [c for c in Collection if c in found]


class DirectoryQueueStore(QueueStore):
    """
    Directory-backed queue store: one directory per collection, one file
    per job named by its id.

    `move` is a single rename after checking the destination; the rename
    would replace an existing file, so the check relies on the caller
    holding the coordinator lock.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        for collection in Collection:
            self._dir(collection).mkdir(parents=True, exist_ok=True)

    def _dir(self, collection: Collection) -> Path:
        return self.root / collection.value

    def _path(self, collection: Collection, job_id: int) -> Path:
        return self._dir(collection) / str(job_id)

    def exists(self, collection: Collection, job_id: int) -> bool:
        return self._path(collection, job_id).is_file()

    def move(self, source: Collection, target: Collection, job_id: int) -> MoveResult:
        src = self._path(source, job_id)
        dst = self._path(target, job_id)
        if dst.exists():
            return MoveResult.ALREADY_EXISTS
        try:
            os.rename(src, dst)
        except FileNotFoundError:
            return MoveResult.NOT_FOUND
        return MoveResult.OK

    def list_ids(self, collection: Collection) -> set[int]:
        return {
            int(path.name)
            for path in self._dir(collection).iterdir()
            if path.is_file() and path.name.isdigit()
        }

    def clear(self, collection: Collection) -> int:
        removed = 0
        for job_id in self.list_ids(collection):
            self._path(collection, job_id).unlink(missing_ok=True)
            removed += 1
        return removed

    def create(self, collection: Collection, job_id: int, record: str) -> bool:
        try:
            with open(self._path(collection, job_id), "x", encoding="utf-8", newline="") as f:
                f.write(record)
        except FileExistsError:
            return False
        return True

    def read(self, collection: Collection, job_id: int) -> Optional[str]:
        try:
            with open(self._path(collection, job_id), encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def append(self, collection: Collection, job_id: int, text: str) -> bool:
        path = self._path(collection, job_id)
        if not path.is_file():
            return False
        with open(path, "a", encoding="utf-8", newline="") as f:
            f.write(text)
        return True


def open_store(backend: str, data_dir: str | Path) -> QueueStore:
    """Create the configured store backend under `data_dir`."""
    data_dir = Path(data_dir)
    if backend == "sqlite":
        return SqliteQueueStore(data_dir / "queue.db")
    if backend == "directory":
        return DirectoryQueueStore(data_dir / "jobs")
    raise ValueError(f"Unknown store backend: {backend!r} (expected 'sqlite' or 'directory')")
