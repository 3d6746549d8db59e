"""
Coordinator errors and typed results.

Collaborator faults (record parsing, upstream fetch, notification, lock
acquisition) are raised as exceptions deriving from CoordinatorError.
Public coordinator operations never raise for expected failures; they
return Ok or Failure, and Failure.kind maps to an HTTP status code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ErrorKind(str, Enum):
    """Failure taxonomy with its HTTP status mapping."""

    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INVARIANT_VIOLATION = "InvariantViolation"
    RECORD_FORMAT_ERROR = "RecordFormatError"
    UNHANDLED = "Unhandled"
    BUSY = "Busy"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVARIANT_VIOLATION: 500,
    ErrorKind.RECORD_FORMAT_ERROR: 500,
    ErrorKind.UNHANDLED: 500,
    ErrorKind.BUSY: 503,
}


@dataclass(frozen=True)
class Ok:
    """Successful result; body is the plain-text response payload."""

    body: str = "OK"

    @property
    def ok(self) -> bool:
        return True

    @property
    def status_code(self) -> int:
        return 200


@dataclass(frozen=True)
class Failure:
    """Failed result carrying its ErrorKind and a human-readable message."""

    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def body(self) -> str:
        return f"{self.kind.value}: {self.message}"


Result = Union[Ok, Failure]


class CoordinatorError(Exception):
    """Base exception for all coordinator collaborator errors."""
    pass


class RecordFormatError(CoordinatorError):
    """Raised when a stored job record cannot be parsed."""

    def __init__(self, job_id: int, detail: str):
        self.job_id = job_id
        self.detail = detail
        super().__init__(f"Malformed record for job {job_id}: {detail}")


class SnapshotFetchError(CoordinatorError):
    """Raised when the upstream snapshot set cannot be fetched."""
    pass


class NotificationError(CoordinatorError):
    """Raised when posting a commit status or sending email fails."""
    pass


class LockTimeoutError(CoordinatorError):
    """
    Raised when the coordinator lock is held by another request for
    longer than the configured timeout. Retryable.
    """

    def __init__(self, lock_path: str, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(f"Coordinator lock busy after {timeout}s: {lock_path}")
