"""
Environment configuration for ciqueue.

All settings come from environment variables (a .env file is loaded by the
entry points via python-dotenv). Malformed numeric values are logged and
replaced by their defaults.

Environment Variables:
- CIQUEUE_DATA_DIR: Root for queue store, lock file and logs (default: data)
- CIQUEUE_STORE: Store backend, "sqlite" or "directory" (default: sqlite)
- CIQUEUE_LOCK_TIMEOUT: Seconds to wait for the coordinator lock (default: 30)
- CIQUEUE_API_TOKEN: Bearer secret for mutating requests (default: disabled)
- CIQUEUE_WEBHOOK_HEADER: Header identifying the webhook sender (default: User-Agent)
- CIQUEUE_WEBHOOK_PREFIX: Trusted webhook sender prefix (default: GitHub-Hookshot/)
- CIQUEUE_PUBLIC_URL: Base URL used in job links (default: http://localhost:8000)
- GITHUB_API_URL, GITHUB_TOKEN: GitHub REST API access
- CIQUEUE_REPO, CIQUEUE_BRANCH: Primary repository under test
- CIQUEUE_SECONDARY_REPO, CIQUEUE_SECONDARY_BRANCH: Dependency repository
- CIQUEUE_STATUS_CONTEXT: Commit status context (default: ci/regression)
- CIQUEUE_HTTP_TIMEOUT: Upstream HTTP timeout in seconds (default: 30)
- SMTP_HOST, SMTP_PORT, MAIL_FROM, MAIL_TO: Completion email
- LOG_LEVEL: Logging level (default: INFO)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Settings] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return float(val)
        except ValueError:
            logger.warning(f"[Settings] Invalid number for {key}: {val}, using default: {default}")
    return default


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    store_backend: str = "sqlite"
    lock_timeout: float = 30.0

    api_token: str = ""
    webhook_header: str = "User-Agent"
    webhook_prefix: str = "GitHub-Hookshot/"
    public_url: str = "http://localhost:8000"

    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    repo: str = ""
    branch: str = "main"
    secondary_repo: str = ""
    secondary_branch: str = "main"
    status_context: str = "ci/regression"
    http_timeout: float = 30.0

    smtp_host: str = "localhost"
    smtp_port: int = 25
    mail_from: str = "ciqueue@localhost"
    mail_to: str = ""

    log_level: str = "INFO"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        return cls(
            data_dir=Path(os.getenv("CIQUEUE_DATA_DIR", "data")),
            store_backend=os.getenv("CIQUEUE_STORE", "sqlite").lower(),
            lock_timeout=_get_env_float("CIQUEUE_LOCK_TIMEOUT", 30.0),
            api_token=os.getenv("CIQUEUE_API_TOKEN", ""),
            webhook_header=os.getenv("CIQUEUE_WEBHOOK_HEADER", "User-Agent"),
            webhook_prefix=os.getenv("CIQUEUE_WEBHOOK_PREFIX", "GitHub-Hookshot/"),
            public_url=os.getenv("CIQUEUE_PUBLIC_URL", "http://localhost:8000"),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            github_token=os.getenv("GITHUB_TOKEN", ""),
            repo=os.getenv("CIQUEUE_REPO", ""),
            branch=os.getenv("CIQUEUE_BRANCH", "main"),
            secondary_repo=os.getenv("CIQUEUE_SECONDARY_REPO", ""),
            secondary_branch=os.getenv("CIQUEUE_SECONDARY_BRANCH", "main"),
            status_context=os.getenv("CIQUEUE_STATUS_CONTEXT", "ci/regression"),
            http_timeout=_get_env_float("CIQUEUE_HTTP_TIMEOUT", 30.0),
            smtp_host=os.getenv("SMTP_HOST", "localhost"),
            smtp_port=_get_env_int("SMTP_PORT", 25),
            mail_from=os.getenv("MAIL_FROM", "ciqueue@localhost"),
            mail_to=os.getenv("MAIL_TO", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
