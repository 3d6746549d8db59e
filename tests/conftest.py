"""
Pytest configuration and shared fixtures.
"""

import logging
import os
import pytest

ENV_KEYS = [
    "CIQUEUE_DATA_DIR",
    "CIQUEUE_STORE",
    "CIQUEUE_LOCK_TIMEOUT",
    "CIQUEUE_API_TOKEN",
    "CIQUEUE_WEBHOOK_HEADER",
    "CIQUEUE_WEBHOOK_PREFIX",
    "CIQUEUE_PUBLIC_URL",
    "CIQUEUE_REPO",
    "CIQUEUE_BRANCH",
    "CIQUEUE_SECONDARY_REPO",
    "CIQUEUE_SECONDARY_BRANCH",
    "CIQUEUE_STATUS_CONTEXT",
    "CIQUEUE_HTTP_TIMEOUT",
    "GITHUB_API_URL",
    "GITHUB_TOKEN",
    "SMTP_HOST",
    "SMTP_PORT",
    "MAIL_FROM",
    "MAIL_TO",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True, scope="function")
def reset_environment():
    """
    Reset ciqueue environment variables and the router singleton.

    Tests run with no configuration from the developer's shell or .env,
    unless the test explicitly sets it.
    """
    original = {key: os.environ.get(key) for key in ENV_KEYS}
    for key in ENV_KEYS:
        os.environ.pop(key, None)

    yield

    for key, value in original.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)

    from ciqueue.api._coordinator_state import set_router
    set_router(None)

    # Undo setup_logging() so caplog sees ciqueue records again
    logger = logging.getLogger("ciqueue")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True


# =============================================================================
# HTTP Fixtures
# =============================================================================

API_TOKEN = "test-token"


@pytest.fixture
def fake_source():
    from fakes import FakeSnapshotSource
    return FakeSnapshotSource()


@pytest.fixture
def fake_notifier():
    from fakes import FakeStatusNotifier
    return FakeStatusNotifier()


@pytest.fixture
def coordinator_service(tmp_path, fake_source, fake_notifier):
    """SQLite-backed service in a temporary data directory."""
    from fakes import PUBLIC_URL
    from ciqueue.coordinator import CoordinatorService

    return CoordinatorService.create(
        backend="sqlite",
        data_dir=tmp_path,
        source=fake_source,
        notifier=fake_notifier,
        lock_timeout=0.2,
        public_url=PUBLIC_URL,
    )


@pytest.fixture
def router(coordinator_service):
    from ciqueue.api import Authorizer, RequestRouter

    authorizer = Authorizer(api_token=API_TOKEN, webhook_prefix="GitHub-Hookshot/")
    return RequestRouter(coordinator_service, authorizer)
