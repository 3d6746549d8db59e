"""
Infrastructure: configuration, logging and external collaborators.
"""

from .settings import Settings
from .logging_config import DailyRotatingFileHandler, setup_logging
from .mailer import Mailer
from .github import GitHubSnapshotSource, GitHubStatusNotifier

__all__ = [
    "Settings",
    "DailyRotatingFileHandler",
    "setup_logging",
    "Mailer",
    "GitHubSnapshotSource",
    "GitHubStatusNotifier",
]
