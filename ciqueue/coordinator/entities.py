"""
Coordinator Domain Entities.

- Collection: the four disjoint job groupings
- Snapshot: commit triple under test (head, base, secondary)
- Claim: worker claim metadata
- Outcome: final job status / external commit status
- Job: a job as read back from its stored record

Collections are ordered; a job only ever moves one step forward:
WAITING → RUNNING → STOPPED → ABORTED.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Collection(str, Enum):
    """
    Job collections (one per lifecycle state).

    The value doubles as the on-disk name of the collection.
    """

    WAITING = "waiting"
    RUNNING = "running"
    STOPPED = "stopped"
    ABORTED = "aborted"

    @property
    def rank(self) -> int:
        """Position in the lifecycle order (0 = WAITING)."""
        return _ORDER.index(self)


_ORDER = [
    Collection.WAITING,
    Collection.RUNNING,
    Collection.STOPPED,
    Collection.ABORTED,
]


class Outcome(str, Enum):
    """
    Commit status values.

    PENDING is posted on claim; the other three are final job statuses.
    """

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"

    @classmethod
    def final_values(cls) -> list[str]:
        return [cls.SUCCESS.value, cls.FAILURE.value, cls.ERROR.value]


def now_iso() -> str:
    """Get current time as ISO format string."""
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


@dataclass(frozen=True)
class Snapshot:
    """Commit triple defining exactly what is under test."""

    head_sha: str
    base_sha: str
    secondary_sha: str

    def same_head(self, other: "Snapshot") -> bool:
        return self.head_sha == other.head_sha

    def same_snapshot(self, other: "Snapshot") -> bool:
        return self == other

    def short(self) -> str:
        return f"{self.head_sha[:10]} on {self.base_sha[:10]} (+{self.secondary_sha[:10]})"


@dataclass(frozen=True)
class Claim:
    """Worker claim metadata written when a job starts running."""

    worker_name: str
    claimed_at: str


@dataclass
class Job:
    """
    A job as reconstructed from its stored record.

    Only used for read-side views (pages, listings); the lifecycle works
    on collections and records directly.
    """

    job_id: int
    collection: Collection
    snapshot: Snapshot
    claim: Optional[Claim] = None
    log: list[str] = field(default_factory=list)
    final_status: Optional[Outcome] = None

    @property
    def state(self) -> Collection:
        return self.collection
