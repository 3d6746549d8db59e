"""
Snapshot reconciliation.

Recomputes the WAITING collection from the upstream snapshot feed:
1. Fetch the desired snapshots (before anything is changed)
2. Drop snapshots whose head is already RUNNING (same-head)
3. Drop snapshots already tested and STOPPED (same full triple)
4. Replace WAITING with the rest, assigning fresh increasing ids that
   collide with nothing in RUNNING, STOPPED or ABORTED

Callers MUST hold the CoordinatorLock for the whole call.
"""

import logging

from .entities import Collection, Snapshot
from .errors import (
    ErrorKind,
    Failure,
    Ok,
    RecordFormatError,
    Result,
    SnapshotFetchError,
)
from .interfaces import SnapshotSource
from .records import JobRecordCodec
from .store import QueueStore

logger = logging.getLogger(__name__)


def filter_snapshots(
    fetched: list[Snapshot],
    running: list[Snapshot],
    stopped: list[Snapshot],
) -> list[Snapshot]:
    """
    Snapshots that still need a WAITING job, in discovery order.

    A running job blocks any snapshot with the same head even if its base
    has moved since; a stopped job blocks only the identical triple.
    Repeats within `fetched` are collapsed to their first occurrence.
    """
    remaining: list[Snapshot] = []
    for snapshot in fetched:
        if any(snapshot.same_head(other) for other in running):
            continue
        if any(snapshot.same_snapshot(other) for other in stopped):
            continue
        if any(snapshot.same_snapshot(other) for other in remaining):
            continue
        remaining.append(snapshot)
    return remaining


def assign_ids(count: int, taken: set[int]) -> list[int]:
    """
    `count` fresh ids in strictly increasing order, skipping `taken`.

    The candidate counter starts at 1 and continues from the last assigned
    id, so the result is deterministic for a given `taken` set.
    """
    ids: list[int] = []
    candidate = 1
    while len(ids) < count:
        if candidate not in taken:
            ids.append(candidate)
        candidate += 1
    return ids


class SnapshotReconciler:
    """Implements `refresh`."""

    def __init__(self, store: QueueStore, codec: JobRecordCodec, source: SnapshotSource):
        self.store = store
        self.codec = codec
        self.source = source

    def _snapshots_of(self, collection: Collection) -> list[Snapshot]:
        snapshots = []
        for job_id in sorted(self.store.list_ids(collection)):
            record = self.store.read(collection, job_id) or ""
            snapshots.append(self.codec.read_header(job_id, record))
        return snapshots

    def refresh(self) -> Result:
        """
        Rebuild WAITING from the snapshot source.

        Returns Ok whose body is the space-separated list of new WAITING ids.
        On fetch or record failure WAITING is left untouched.
        """
        try:
            fetched = self.source.fetch()
        except SnapshotFetchError as e:
            logger.error(f"Refresh aborted, snapshot fetch failed: {e}")
            return Failure(ErrorKind.UNHANDLED, f"snapshot fetch failed: {e}")

        try:
            running = self._snapshots_of(Collection.RUNNING)
            stopped = self._snapshots_of(Collection.STOPPED)
        except RecordFormatError as e:
            logger.error(f"Refresh aborted: {e}")
            return Failure(ErrorKind.RECORD_FORMAT_ERROR, str(e))

        cleared = self.store.clear(Collection.WAITING)

        taken = (
            self.store.list_ids(Collection.RUNNING)
            | self.store.list_ids(Collection.STOPPED)
            | self.store.list_ids(Collection.ABORTED)
        )
        remaining = filter_snapshots(fetched, running, stopped)
        new_ids = assign_ids(len(remaining), taken)

        for job_id, snapshot in zip(new_ids, remaining):
            if not self.store.create(Collection.WAITING, job_id, self.codec.format_header(snapshot)):
                logger.warning(f"Job {job_id} already exists in waiting; skipped {snapshot.short()}")
                continue
            logger.debug(f"Job {job_id} waiting: {snapshot.short()}")

        logger.info(
            f"Refresh: fetched {len(fetched)}, cleared {cleared} waiting, "
            f"queued {len(new_ids)} ({len(running)} running, {len(stopped)} stopped)"
        )
        return Ok(" ".join(str(job_id) for job_id in new_ids))
