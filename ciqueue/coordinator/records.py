"""
Job record codec.

A job record is UTF-8 text, one entry per line:

    snapshot <head_sha> <base_sha> <secondary_sha>
    claim <worker_name> <claimed_at>
    log <timestamp> <text>
    <raw uploaded log bytes, verbatim>
    status <success|failure|error>

The snapshot line is always first. Readers take the last claim/status line,
so a re-uploaded log carrying its own status line wins over earlier ones.
"""

from typing import Optional

from .entities import Claim, Collection, Job, Outcome, Snapshot, now_iso
from .errors import RecordFormatError


class JobRecordCodec:
    """Parses and formats the lines of a stored job record."""

    HEADER_TAG = "snapshot"
    CLAIM_TAG = "claim"
    LOG_TAG = "log"
    STATUS_TAG = "status"

    # =========================================================================
    # Formatting
    # =========================================================================

    def format_header(self, snapshot: Snapshot) -> str:
        for sha in (snapshot.head_sha, snapshot.base_sha, snapshot.secondary_sha):
            if not sha or any(c.isspace() for c in sha):
                raise ValueError(f"Invalid commit reference in snapshot: {sha!r}")
        return (
            f"{self.HEADER_TAG} {snapshot.head_sha} "
            f"{snapshot.base_sha} {snapshot.secondary_sha}\n"
        )

    def format_claim(self, worker_name: str, claimed_at: Optional[str] = None) -> str:
        # Worker names are a single token on the claim line
        name = "_".join(worker_name.split()) or "unknown"
        return f"{self.CLAIM_TAG} {name} {claimed_at or now_iso()}\n"

    def format_log_line(self, line: str, timestamp: Optional[str] = None) -> str:
        text = " ".join(line.splitlines())
        return f"{self.LOG_TAG} {timestamp or now_iso()} {text}\n"

    def format_raw(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")
        if text and not text.endswith("\n"):
            text += "\n"
        return text

    def format_status(self, outcome: Outcome) -> str:
        if outcome == Outcome.PENDING:
            raise ValueError("pending is not a final job status")
        return f"{self.STATUS_TAG} {outcome.value}\n"

    # =========================================================================
    # Parsing
    # =========================================================================

    def read_header(self, job_id: int, record: str) -> Snapshot:
        """
        Parse the snapshot line.

        Raises:
            RecordFormatError: If the first line is not a snapshot line
        """
        first = record.split("\n", 1)[0]
        parts = first.split()
        if len(parts) != 4 or parts[0] != self.HEADER_TAG:
            raise RecordFormatError(job_id, f"bad snapshot header {first[:80]!r}")
        return Snapshot(head_sha=parts[1], base_sha=parts[2], secondary_sha=parts[3])

    def read_claim(self, job_id: int, record: str) -> Optional[Claim]:
        claim = None
        for line in record.splitlines():
            parts = line.split()
            # Uploaded raw logs may contain other lines starting with "claim"
            if len(parts) == 3 and parts[0] == self.CLAIM_TAG:
                claim = Claim(worker_name=parts[1], claimed_at=parts[2])
        return claim

    def _is_status(self, parts: list[str]) -> bool:
        return (
            len(parts) == 2
            and parts[0] == self.STATUS_TAG
            and parts[1] in Outcome.final_values()
        )

    def read_status(self, job_id: int, record: str) -> Optional[Outcome]:
        """
        Outcome of the last status line, or None if the job never reported one.

        Only lines naming a final outcome count; raw worker output such as
        `status ok` is log text.
        """
        outcome = None
        for line in record.splitlines():
            parts = line.split()
            if self._is_status(parts):
                outcome = Outcome(parts[1])
        return outcome

    def read_log(self, record: str) -> list[str]:
        """All lines after the header except claim and status lines."""
        entries = []
        for line in record.splitlines()[1:]:
            parts = line.split()
            if len(parts) == 3 and parts[0] == self.CLAIM_TAG:
                continue
            if self._is_status(parts):
                continue
            entries.append(line)
        return entries

    def read_job(self, job_id: int, collection: Collection, record: str) -> Job:
        """Reconstruct a Job view from its record."""
        final_status = None
        if collection.rank >= Collection.STOPPED.rank:
            final_status = self.read_status(job_id, record)
        return Job(
            job_id=job_id,
            collection=collection,
            snapshot=self.read_header(job_id, record),
            claim=self.read_claim(job_id, record),
            log=self.read_log(record),
            final_status=final_status,
        )
