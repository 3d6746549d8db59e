"""
Job coordinator core.

Lifecycle state machine (WAITING → RUNNING → STOPPED → ABORTED) and
snapshot reconciliation over a durable, lock-guarded queue store.
"""

from .entities import (
    Collection,
    Outcome,
    Snapshot,
    Claim,
    Job,
)
from .errors import (
    ErrorKind,
    Ok,
    Failure,
    Result,
    CoordinatorError,
    RecordFormatError,
    SnapshotFetchError,
    NotificationError,
    LockTimeoutError,
)
from .interfaces import SnapshotSource, StatusNotifier
from .lock import CoordinatorLock
from .store import (
    MoveResult,
    QueueStore,
    SqliteQueueStore,
    DirectoryQueueStore,
    open_store,
)
from .records import JobRecordCodec
from .lifecycle import JobLifecycle
from .reconciler import SnapshotReconciler
from .service import CoordinatorService

__all__ = [
    # Entities
    "Collection",
    "Outcome",
    "Snapshot",
    "Claim",
    "Job",
    # Errors
    "ErrorKind",
    "Ok",
    "Failure",
    "Result",
    "CoordinatorError",
    "RecordFormatError",
    "SnapshotFetchError",
    "NotificationError",
    "LockTimeoutError",
    # Collaborators
    "SnapshotSource",
    "StatusNotifier",
    # Lock
    "CoordinatorLock",
    # Store
    "MoveResult",
    "QueueStore",
    "SqliteQueueStore",
    "DirectoryQueueStore",
    "open_store",
    # Records
    "JobRecordCodec",
    # Lifecycle
    "JobLifecycle",
    # Reconciliation
    "SnapshotReconciler",
    # Service
    "CoordinatorService",
]
