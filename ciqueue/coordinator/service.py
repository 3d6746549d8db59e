"""
Coordinator service.

Wires store, lock, record codec, lifecycle and reconciler together and
provides the read-side queries (waiting ids, raw records, job views).
"""

import logging
from pathlib import Path
from typing import Optional

from .entities import Collection, Job
from .errors import ErrorKind, Failure, Ok, RecordFormatError, Result
from .interfaces import SnapshotSource, StatusNotifier
from .lifecycle import JobLifecycle
from .lock import CoordinatorLock
from .reconciler import SnapshotReconciler
from .records import JobRecordCodec
from .store import QueueStore, open_store

logger = logging.getLogger(__name__)


class CoordinatorService:
    """Single entry point used by the request router and the CLI."""

    def __init__(
        self,
        store: QueueStore,
        lock: CoordinatorLock,
        source: SnapshotSource,
        notifier: StatusNotifier,
        public_url: str = "",
        codec: Optional[JobRecordCodec] = None,
    ):
        self.store = store
        self.lock = lock
        self.codec = codec or JobRecordCodec()
        self.lifecycle = JobLifecycle(store, self.codec, notifier, public_url=public_url)
        self.reconciler = SnapshotReconciler(store, self.codec, source)

    @classmethod
    def create(
        cls,
        backend: str,
        data_dir: str | Path,
        source: SnapshotSource,
        notifier: StatusNotifier,
        lock_timeout: float = 30.0,
        public_url: str = "",
    ) -> "CoordinatorService":
        """
        Create a service with the configured store backend.

        Args:
            backend: "sqlite" or "directory"
            data_dir: Root directory for the store and the lock file
            source: Snapshot source for refresh
            notifier: Status notifier for claim/stop
            lock_timeout: Seconds to wait for the coordinator lock
            public_url: Base URL for job links
        """
        data_dir = Path(data_dir)
        store = open_store(backend, data_dir)
        lock = CoordinatorLock(data_dir / "coordinator.lock", timeout=lock_timeout)
        logger.debug(f"Coordinator using {backend} store in {data_dir}")
        return cls(store, lock, source, notifier, public_url=public_url)

    # =========================================================================
    # Queries
    # =========================================================================

    def waiting_ids(self) -> list[int]:
        return sorted(self.store.list_ids(Collection.WAITING))

    def fetch_record(self, job_id: int) -> Result:
        """Raw record of a job, from whichever collection holds it."""
        collections = self.store.locate(job_id)
        if not collections:
            return Failure(ErrorKind.NOT_FOUND, f"no job {job_id}")
        if len(collections) > 1:
            names = ", ".join(c.value for c in collections)
            return Failure(ErrorKind.INVARIANT_VIOLATION, f"job {job_id} is in {names}")
        return Ok(self.store.read(collections[0], job_id) or "")

    def load_job(self, job_id: int) -> Optional[Job]:
        """
        Job view for the detail page, or None if unknown.

        Raises:
            RecordFormatError: If the stored record cannot be parsed
        """
        collections = self.store.locate(job_id)
        if not collections:
            return None
        # The most advanced collection wins if the store is inconsistent
        collection = collections[-1]
        record = self.store.read(collection, job_id) or ""
        return self.codec.read_job(job_id, collection, record)

    def load_jobs(self) -> dict[Collection, list[Job]]:
        """All jobs grouped by collection, newest id first; unreadable records are skipped."""
        jobs: dict[Collection, list[Job]] = {}
        for collection in Collection:
            jobs[collection] = []
            for job_id in sorted(self.store.list_ids(collection), reverse=True):
                record = self.store.read(collection, job_id) or ""
                try:
                    jobs[collection].append(self.codec.read_job(job_id, collection, record))
                except RecordFormatError as e:
                    logger.warning(f"Overview skipping job {job_id}: {e}")
        return jobs
