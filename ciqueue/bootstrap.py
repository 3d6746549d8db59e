"""
Wiring of the coordinator from Settings.

Shared by the FastAPI app, the CGI adapter and the CLI.
"""

from ciqueue.coordinator import CoordinatorService
from ciqueue.infra import GitHubSnapshotSource, GitHubStatusNotifier, Mailer, Settings


def build_service(settings: Settings) -> CoordinatorService:
    """Create a CoordinatorService with the GitHub and SMTP collaborators."""
    source = GitHubSnapshotSource(
        repo=settings.repo,
        branch=settings.branch,
        secondary_repo=settings.secondary_repo,
        secondary_branch=settings.secondary_branch,
        api_url=settings.github_api_url,
        token=settings.github_token,
        timeout=settings.http_timeout,
    )
    mailer = Mailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.mail_from,
        recipients=settings.mail_to,
    )
    notifier = GitHubStatusNotifier(
        repo=settings.repo,
        mailer=mailer,
        context=settings.status_context,
        api_url=settings.github_api_url,
        token=settings.github_token,
        timeout=settings.http_timeout,
    )
    return CoordinatorService.create(
        backend=settings.store_backend,
        data_dir=settings.data_dir,
        source=source,
        notifier=notifier,
        lock_timeout=settings.lock_timeout,
        public_url=settings.public_url,
    )
