"""
Collaborator interfaces used by the coordinator core.

Concrete implementations live in ciqueue.infra (GitHub, SMTP).
"""

from abc import ABC, abstractmethod
from typing import Optional

from .entities import Outcome, Snapshot


class SnapshotSource(ABC):
    """Produces the current desired snapshot set from upstream."""

    @abstractmethod
    def fetch(self) -> list[Snapshot]:
        """
        Fetch snapshots in discovery order.

        Raises:
            SnapshotFetchError: If upstream cannot be read
        """
        ...


class StatusNotifier(ABC):
    """Posts commit status and sends the completion email."""

    @abstractmethod
    def set_status(
        self,
        commit_sha: str,
        outcome: Outcome,
        target_url: Optional[str] = None,
    ) -> None:
        """
        Set the external commit status of `commit_sha`.

        Raises:
            NotificationError: If the status service rejects the update
        """
        ...

    @abstractmethod
    def send_email(self, subject: str, body: str) -> None:
        """
        Send a notification email.

        Raises:
            NotificationError: If the message cannot be delivered
        """
        ...
