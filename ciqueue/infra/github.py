"""
GitHub collaborators.

- GitHubSnapshotSource: branch head + one snapshot per open, mergeable pull
  request of the primary repository; the secondary repository's branch head
  is the dependency commit of every snapshot
- GitHubStatusNotifier: commit statuses via the REST API; completion email
  is delegated to a Mailer

Failed calls are not retried.
"""

import logging
from typing import Any, Optional

import httpx

from ciqueue import __version__
from ciqueue.coordinator.entities import Outcome, Snapshot
from ciqueue.coordinator.errors import NotificationError, SnapshotFetchError
from ciqueue.coordinator.interfaces import SnapshotSource, StatusNotifier
from ciqueue.infra.mailer import Mailer

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
PULLS_PER_PAGE = 100

# Placeholder dependency commit when no secondary repository is configured
NO_SECONDARY = "-"

STATUS_DESCRIPTIONS = {
    Outcome.PENDING: "Regression tests running",
    Outcome.SUCCESS: "Regression tests passed",
    Outcome.FAILURE: "Regression tests failed",
    Outcome.ERROR: "Regression tests errored",
}


def _build_client(api_url: str, token: str, timeout: float) -> httpx.Client:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": f"ciqueue/{__version__}",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.Client(base_url=api_url, headers=headers, timeout=timeout)


class GitHubSnapshotSource(SnapshotSource):
    """Reads the desired snapshot set from GitHub."""

    def __init__(
        self,
        repo: str,
        branch: str = "main",
        secondary_repo: str = "",
        secondary_branch: str = "main",
        api_url: str = DEFAULT_API_URL,
        token: str = "",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.repo = repo
        self.branch = branch
        self.secondary_repo = secondary_repo
        self.secondary_branch = secondary_branch
        self.api_url = api_url
        self.token = token
        self.timeout = timeout

    def _get(self, client: httpx.Client, path: str, params: Optional[dict] = None) -> Any:
        response = client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def _branch_head(self, client: httpx.Client, repo: str, branch: str) -> str:
        data = self._get(client, f"/repos/{repo}/branches/{branch}")
        return data["commit"]["sha"]

    def _open_pulls(self, client: httpx.Client) -> list[dict]:
        pulls: list[dict] = []
        page = 1
        while True:
            batch = self._get(
                client,
                f"/repos/{self.repo}/pulls",
                params={
                    "state": "open",
                    "base": self.branch,
                    "per_page": PULLS_PER_PAGE,
                    "page": page,
                },
            )
            pulls.extend(batch)
            if len(batch) < PULLS_PER_PAGE:
                break
            page += 1
        return sorted(pulls, key=lambda pr: pr["number"])

    def fetch(self) -> list[Snapshot]:
        if not self.repo:
            raise SnapshotFetchError("No repository configured (CIQUEUE_REPO)")

        try:
            with _build_client(self.api_url, self.token, self.timeout) as client:
                base_sha = self._branch_head(client, self.repo, self.branch)
                if self.secondary_repo:
                    secondary_sha = self._branch_head(
                        client, self.secondary_repo, self.secondary_branch
                    )
                else:
                    secondary_sha = NO_SECONDARY

                snapshots = [Snapshot(base_sha, base_sha, secondary_sha)]

                for pr in self._open_pulls(client):
                    # The list endpoint omits mergeability
                    detail = self._get(client, f"/repos/{self.repo}/pulls/{pr['number']}")
                    if detail.get("mergeable") is not True:
                        logger.debug(f"Skipping PR #{pr['number']}: mergeable={detail.get('mergeable')}")
                        continue
                    snapshots.append(Snapshot(detail["head"]["sha"], base_sha, secondary_sha))

        except httpx.HTTPStatusError as e:
            raise SnapshotFetchError(
                f"HTTP {e.response.status_code} from {e.request.url}: {e.response.text[:200]}"
            ) from e
        except httpx.TimeoutException as e:
            raise SnapshotFetchError(f"Timeout after {self.timeout}s: {e}") from e
        except httpx.RequestError as e:
            raise SnapshotFetchError(f"Request error: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotFetchError(f"Unexpected response shape: {e}") from e

        logger.info(f"Fetched {len(snapshots)} snapshot(s) from {self.repo}@{self.branch}")
        return snapshots


class GitHubStatusNotifier(StatusNotifier):
    """Posts commit statuses to GitHub and sends email through a Mailer."""

    def __init__(
        self,
        repo: str,
        mailer: Mailer,
        context: str = "ci/regression",
        api_url: str = DEFAULT_API_URL,
        token: str = "",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.repo = repo
        self.mailer = mailer
        self.context = context
        self.api_url = api_url
        self.token = token
        self.timeout = timeout

    def set_status(
        self,
        commit_sha: str,
        outcome: Outcome,
        target_url: Optional[str] = None,
    ) -> None:
        if not self.repo:
            logger.info(f"No repository configured; status {outcome.value} for {commit_sha[:10]} not posted")
            return

        payload = {
            "state": outcome.value,
            "description": STATUS_DESCRIPTIONS[outcome],
            "context": self.context,
        }
        if target_url:
            payload["target_url"] = target_url

        try:
            with _build_client(self.api_url, self.token, self.timeout) as client:
                response = client.post(f"/repos/{self.repo}/statuses/{commit_sha}", json=payload)
        except httpx.TimeoutException as e:
            raise NotificationError(f"Status update timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise NotificationError(f"Status update request error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"Status update for {commit_sha[:10]} failed: "
                f"HTTP {response.status_code}: {response.text[:200]}"
            )

        logger.info(f"Commit status {outcome.value} posted for {commit_sha[:10]}")

    def send_email(self, subject: str, body: str) -> None:
        self.mailer.send(subject, body)
