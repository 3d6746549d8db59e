"""
Coordinator lock.

A single named mutual-exclusion resource held for the whole of one
request. Backed by an exclusive SQLite transaction on a dedicated lock
database, so it serializes threads of one server process as well as
separate CGI processes sharing the data directory.
"""

import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Optional

from .errors import LockTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 30.0


class CoordinatorLock:
    """
    Exclusive lock acquired with `with lock:`.

    One instance may be shared by many threads; each thread holds its own
    connection to the lock database. Acquisition blocks up to `timeout`
    seconds and then raises LockTimeoutError. Release happens on every
    exit path, including exceptions raised inside the block.
    """

    def __init__(self, lock_path: str | Path, timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.lock_path = str(lock_path)
        self.timeout = timeout
        self._local = threading.local()
        Path(self.lock_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_conn(self) -> Optional[sqlite3.Connection]:
        return getattr(self._local, "conn", None)

    @property
    def held(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._get_conn() is not None

    def acquire(self) -> None:
        if self.held:
            raise RuntimeError(f"Lock already held by this thread: {self.lock_path}")

        started = time.monotonic()
        conn = sqlite3.connect(self.lock_path, timeout=self.timeout, isolation_level=None)
        try:
            conn.execute("BEGIN EXCLUSIVE")
        except sqlite3.OperationalError as e:
            conn.close()
            logger.warning(f"Lock busy after {self.timeout}s ({self.lock_path}): {e}")
            raise LockTimeoutError(self.lock_path, self.timeout) from e

        waited = time.monotonic() - started
        if waited > 1.0:
            logger.info(f"Acquired lock after waiting {waited:.1f}s")
        self._local.conn = conn

    def release(self) -> None:
        conn = self._get_conn()
        if conn is None:
            return
        self._local.conn = None
        try:
            conn.execute("ROLLBACK")
        finally:
            conn.close()

    def __enter__(self) -> "CoordinatorLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
