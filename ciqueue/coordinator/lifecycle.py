"""
Job lifecycle operations.

Implements claim/append/log/stop/abort against the QueueStore:
- WAITING → RUNNING (claim): posts a pending commit status
- RUNNING (append/log): record grows, state unchanged
- RUNNING → STOPPED (stop): posts the final status and sends email
- STOPPED → ABORTED (abort): no notification

Callers MUST hold the CoordinatorLock for the whole call.

Ordering: the record is read and validated BEFORE the move, so an
unparseable record leaves the job where it was. The external notification
happens AFTER the move and is not rolled back if it fails; the job keeps
its new collection and the failure is reported as Unhandled.
"""

import logging
from typing import Optional

from .entities import Collection, Outcome, Snapshot
from .errors import (
    ErrorKind,
    Failure,
    NotificationError,
    Ok,
    RecordFormatError,
    Result,
)
from .interfaces import StatusNotifier
from .records import JobRecordCodec
from .store import MoveResult, QueueStore

logger = logging.getLogger(__name__)


class JobLifecycle:
    """Preconditioned, forward-only transitions of individual jobs."""

    def __init__(
        self,
        store: QueueStore,
        codec: JobRecordCodec,
        notifier: StatusNotifier,
        public_url: str = "",
    ):
        self.store = store
        self.codec = codec
        self.notifier = notifier
        self.public_url = public_url.rstrip("/")

    def job_url(self, job_id: int) -> str:
        return f"{self.public_url}/job/{job_id}"

    # =========================================================================
    # Precondition helpers
    # =========================================================================

    def _check_transition(
        self, job_id: int, source: Collection, target: Collection
    ) -> Optional[Failure]:
        """Job must be in `source` and not already in `target`."""
        in_source = self.store.exists(source, job_id)
        in_target = self.store.exists(target, job_id)

        if in_source and in_target:
            logger.error(f"Job {job_id} found in both {source.value} and {target.value}")
            return Failure(
                ErrorKind.INVARIANT_VIOLATION,
                f"job {job_id} is in both {source.value} and {target.value}",
            )
        if not in_source:
            return Failure(ErrorKind.CONFLICT, f"job {job_id} is not {source.value}")
        return None

    def _move(self, job_id: int, source: Collection, target: Collection) -> Optional[Failure]:
        result = self.store.move(source, target, job_id)
        if result == MoveResult.ALREADY_EXISTS:
            return Failure(
                ErrorKind.INVARIANT_VIOLATION,
                f"job {job_id} already exists in {target.value}",
            )
        if result == MoveResult.NOT_FOUND:
            return Failure(ErrorKind.CONFLICT, f"job {job_id} is not {source.value}")

        logger.info(f"Job {job_id}: {source.value} → {target.value}")
        return None

    def _read_header(self, job_id: int, collection: Collection) -> Snapshot:
        record = self.store.read(collection, job_id) or ""
        return self.codec.read_header(job_id, record)

    # =========================================================================
    # Transitions
    # =========================================================================

    def claim(self, job_id: int, worker_name: str) -> Result:
        """
        Claim a waiting job for `worker_name`.

        Returns Ok with the job's snapshot triple as body.
        """
        failure = self._check_transition(job_id, Collection.WAITING, Collection.RUNNING)
        if failure:
            return failure

        try:
            snapshot = self._read_header(job_id, Collection.WAITING)
        except RecordFormatError as e:
            logger.error(str(e))
            return Failure(ErrorKind.RECORD_FORMAT_ERROR, str(e))

        failure = self._move(job_id, Collection.WAITING, Collection.RUNNING)
        if failure:
            return failure

        self.store.append(Collection.RUNNING, job_id, self.codec.format_claim(worker_name))
        logger.info(f"Job {job_id} claimed by {worker_name} ({snapshot.short()})")

        try:
            self.notifier.set_status(snapshot.head_sha, Outcome.PENDING, self.job_url(job_id))
        except NotificationError as e:
            logger.error(f"Job {job_id} claimed but pending status not posted: {e}")
            return Failure(
                ErrorKind.UNHANDLED,
                f"job {job_id} claimed but status update failed: {e}",
            )

        return Ok(f"{snapshot.head_sha} {snapshot.base_sha} {snapshot.secondary_sha}")

    def append(self, job_id: int, line: str) -> Result:
        """Append one timestamped log line to a running job."""
        if not self.store.append(Collection.RUNNING, job_id, self.codec.format_log_line(line)):
            return Failure(ErrorKind.CONFLICT, f"job {job_id} is not running")
        return Ok()

    def log(self, job_id: int, data: bytes) -> Result:
        """Append raw log bytes verbatim to a running job."""
        if not self.store.append(Collection.RUNNING, job_id, self.codec.format_raw(data)):
            return Failure(ErrorKind.CONFLICT, f"job {job_id} is not running")
        logger.debug(f"Job {job_id}: appended {len(data)} bytes of log")
        return Ok()

    def stop(self, job_id: int, status: Optional[Outcome] = None) -> Result:
        """
        Stop a running job and report its outcome.

        `status`, when given, is recorded as the final status. Otherwise the
        last status line of the record is used, and a job that never
        reported one is stopped with status error.
        """
        failure = self._check_transition(job_id, Collection.RUNNING, Collection.STOPPED)
        if failure:
            return failure

        record = self.store.read(Collection.RUNNING, job_id) or ""
        try:
            snapshot = self.codec.read_header(job_id, record)
        except RecordFormatError as e:
            logger.error(str(e))
            return Failure(ErrorKind.RECORD_FORMAT_ERROR, str(e))
        claim = self.codec.read_claim(job_id, record)
        recorded = None if status is not None else self.codec.read_status(job_id, record)

        failure = self._move(job_id, Collection.RUNNING, Collection.STOPPED)
        if failure:
            return failure

        outcome = status or recorded or Outcome.ERROR
        if recorded is None:
            self.store.append(Collection.STOPPED, job_id, self.codec.format_status(outcome))
        logger.info(f"Job {job_id} stopped with status {outcome.value}")

        worker = claim.worker_name if claim else "unknown"
        subject = f"[ci] job {job_id} {outcome.value}: {snapshot.head_sha[:10]}"
        body = (
            f"Job {job_id} finished with status {outcome.value}.\n"
            f"\n"
            f"Head:      {snapshot.head_sha}\n"
            f"Base:      {snapshot.base_sha}\n"
            f"Secondary: {snapshot.secondary_sha}\n"
            f"Worker:    {worker}\n"
            f"\n"
            f"{self.job_url(job_id)}\n"
        )

        try:
            self.notifier.set_status(snapshot.head_sha, outcome, self.job_url(job_id))
            self.notifier.send_email(subject, body)
        except NotificationError as e:
            logger.error(f"Job {job_id} stopped but notification failed: {e}")
            return Failure(
                ErrorKind.UNHANDLED,
                f"job {job_id} stopped but notification failed: {e}",
            )

        return Ok(outcome.value)

    def abort(self, job_id: int) -> Result:
        """Abort a stopped job. No external notification."""
        failure = self._check_transition(job_id, Collection.STOPPED, Collection.ABORTED)
        if failure:
            return failure

        failure = self._move(job_id, Collection.STOPPED, Collection.ABORTED)
        if failure:
            return failure

        return Ok()
